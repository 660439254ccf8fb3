"""
Recommendation stages.

- similarity: weighted Jaccard metadata score
- series: series identity extraction from titles
- sequels: SequelDetector
- similar_items: vector neighbours hydrated from the repository
- aggregator: per-type blend of sequels and similarity
- profile_resolver / orchestrator: user entry points
"""

from .aggregator import RecommendationAggregator, per_seed_top_k
from .orchestrator import RecommendationOrchestrator
from .profile_resolver import UserProfileResolver
from .sequels import SequelDetector
from .series import SERIES_MATCHERS, SeriesIdentity, SeriesMatcher, extract_series_identity
from .similar_items import SimilarItemsFinder
from .similarity import ATTRIBUTE_WEIGHTS, jaccard, metadata_similarity

__all__ = [
    "RecommendationAggregator",
    "per_seed_top_k",
    "RecommendationOrchestrator",
    "UserProfileResolver",
    "SequelDetector",
    "SERIES_MATCHERS",
    "SeriesIdentity",
    "SeriesMatcher",
    "extract_series_identity",
    "SimilarItemsFinder",
    "ATTRIBUTE_WEIGHTS",
    "jaccard",
    "metadata_similarity",
]
