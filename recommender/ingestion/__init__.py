"""Ingestion: batched embedding and vector upsert with back-off and failure isolation."""

from .pipeline import BatchState, IngestionPipeline, IngestionReport, IngestionState
from .retry import backoff_delay, with_backoff

__all__ = [
    "BatchState",
    "IngestionPipeline",
    "IngestionReport",
    "IngestionState",
    "backoff_delay",
    "with_backoff",
]
