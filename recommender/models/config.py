"""
Engine configuration — recommendation and ingestion parameters.

RecommendationConfig and IngestionConfig defaults are defined here. Callers may pass a
dict (e.g. from a JSON file); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation path."""

    # -------------------------------------------------------------------------
    # Sequel detection
    # -------------------------------------------------------------------------

    # Max same-series items fetched from the repository per consumed item.
    sequel_query_limit: int = Field(default=5, ge=1)
    # Max sequel candidates kept per consumed item (after scoring).
    sequels_per_item: int = Field(default=3, ge=1)
    # Max sequel candidates per user/type pair. Detection stops once reached.
    sequel_total_cap: int = Field(default=10, ge=1)
    # Titles longer than this are used whole when no series pattern matches.
    min_fallback_title_length: int = Field(default=4, ge=0)

    # -------------------------------------------------------------------------
    # Similarity fallback
    # -------------------------------------------------------------------------

    # Consumed items (in profile order) used as vector-search seeds.
    similarity_seed_count: int = Field(default=3, ge=1)
    # top_k per seed = ceil(remaining / seeds) * overfetch_factor.
    overfetch_factor: int = Field(default=2, ge=1)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    default_top_k: int = Field(default=10, ge=1)
    max_top_k: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def per_item_within_total(self):
        if self.sequels_per_item > self.sequel_total_cap:
            raise ValueError(
                f"sequels_per_item ({self.sequels_per_item}) exceeds sequel_total_cap ({self.sequel_total_cap})"
            )
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """Create config from dictionary (e.g., loaded from JSON). Unknown keys are ignored."""
        flat = dict(config_dict)
        if "sequels" in config_dict:
            sq = config_dict["sequels"]
            flat["sequel_query_limit"] = sq.get("query_limit", 5)
            flat["sequels_per_item"] = sq.get("per_item", 3)
            flat["sequel_total_cap"] = sq.get("total_cap", 10)
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


class IngestionConfig(BaseModel):
    """Configuration for the ingestion pipeline. Durations are in seconds."""

    # Records per repository chunk (one embedding call and one upsert per chunk).
    chunk_size: int = Field(default=50, ge=1)

    # -------------------------------------------------------------------------
    # Call-level retry: wait = initial_wait * backoff_factor ** (attempt - 1)
    # -------------------------------------------------------------------------

    max_attempts: int = Field(default=5, ge=1)
    initial_wait: float = Field(default=4.4, ge=0)
    backoff_factor: float = Field(default=1.5, ge=1)

    # -------------------------------------------------------------------------
    # Batch-level isolation: wait = batch_failure_base_delay * consecutive_failures
    # -------------------------------------------------------------------------

    batch_failure_base_delay: float = Field(default=5.0, ge=0)
    # Consecutive failures of one batch before it is skipped.
    max_consecutive_batch_failures: int = Field(default=5, ge=1)
    # Pause after each successful batch.
    inter_batch_delay: float = Field(default=1.0, ge=0)

    # Progress log interval (records).
    log_every: int = Field(default=100, ge=1)

    # -------------------------------------------------------------------------
    # Embedding model
    # -------------------------------------------------------------------------

    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = Field(default=1536, ge=1)

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "IngestionConfig":
        allowed = set(cls.model_fields)
        return cls.model_validate({k: v for k, v in config_dict.items() if k in allowed})


DEFAULT_CONFIG = RecommendationConfig()
DEFAULT_INGESTION_CONFIG = IngestionConfig()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG


def resolve_ingestion_config(config: Optional["IngestionConfig"]) -> "IngestionConfig":
    """Return config or DEFAULT_INGESTION_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_INGESTION_CONFIG
