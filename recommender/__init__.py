"""
Content Recommendation Engine — sequels first, vector similarity second.

Single entry point for the engine package:
- models/: ContentType, ContentItem, UserProfile, Candidate, RecommendationResult, configs
- stages/: similarity scorer, series identity, sequel detector, aggregator, orchestrator
- embedding/: get_embed_text, model constants
- ingestion/: IngestionPipeline with back-off and batch isolation
- ports: protocols for the repository, vector index and embedding service
"""

from .errors import (
    ConfigurationError,
    EmbeddingTimeout,
    NotFound,
    PartialFailure,
    RateLimited,
    RecommenderError,
    RetriesExhausted,
    UnknownContentType,
)
from .models import (
    CONTENT_TYPE_ORDER,
    Candidate,
    CandidateSource,
    ContentItem,
    ContentType,
    IngestionConfig,
    RecommendationConfig,
    RecommendationResult,
    UserProfile,
)
from .ports import ContentRepository, EmbeddingRecord, EmbeddingService, VectorIndex, VectorMatch
from .stages import RecommendationOrchestrator
from .ingestion import IngestionPipeline, IngestionReport
from .embedding import (
    get_embed_text,
    STRATEGY_VERSION,
    EMBEDDING_MODEL,
    EMBEDDING_DIMENSIONS,
)

__all__ = [
    "ConfigurationError",
    "EmbeddingTimeout",
    "NotFound",
    "PartialFailure",
    "RateLimited",
    "RecommenderError",
    "RetriesExhausted",
    "UnknownContentType",
    "CONTENT_TYPE_ORDER",
    "Candidate",
    "CandidateSource",
    "ContentItem",
    "ContentType",
    "IngestionConfig",
    "RecommendationConfig",
    "RecommendationResult",
    "UserProfile",
    "ContentRepository",
    "EmbeddingRecord",
    "EmbeddingService",
    "VectorIndex",
    "VectorMatch",
    "RecommendationOrchestrator",
    "IngestionPipeline",
    "IngestionReport",
    "get_embed_text",
    "STRATEGY_VERSION",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSIONS",
]
