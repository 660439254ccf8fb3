"""Typed models shared by the recommendation stages and ingestion pipeline."""

from .candidate import Candidate, CandidateSource, RecommendationResult, ResultStatus, clamp_score
from .config import (
    DEFAULT_CONFIG,
    DEFAULT_INGESTION_CONFIG,
    IngestionConfig,
    RecommendationConfig,
    resolve_config,
    resolve_ingestion_config,
)
from .content import (
    CONTENT_TYPE_ORDER,
    USER_LISTS_COLLECTION,
    ContentItem,
    ContentType,
    canonical_id,
    content_ids_from_entries,
    derived_object_id,
    names,
)
from .profile import ResolvedProfile, UserProfile

__all__ = [
    "Candidate",
    "CandidateSource",
    "RecommendationResult",
    "ResultStatus",
    "clamp_score",
    "DEFAULT_CONFIG",
    "DEFAULT_INGESTION_CONFIG",
    "IngestionConfig",
    "RecommendationConfig",
    "resolve_config",
    "resolve_ingestion_config",
    "CONTENT_TYPE_ORDER",
    "USER_LISTS_COLLECTION",
    "ContentItem",
    "ContentType",
    "canonical_id",
    "content_ids_from_entries",
    "derived_object_id",
    "names",
    "ResolvedProfile",
    "UserProfile",
]
