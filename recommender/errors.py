"""
Error taxonomy for the recommendation engine and ingestion pipeline.

Adapters translate vendor exceptions (OpenAI, Pinecone, Firestore) into these
types so stages can decide what to retry, what to skip, and what is fatal.
"""

from typing import Optional


class RecommenderError(Exception):
    """Base class for all engine errors."""


class NotFound(RecommenderError):
    """An id could not be resolved in the repository (treated as absent)."""


class RateLimited(RecommenderError):
    """External service signalled a rate limit (retried with back-off)."""


class EmbeddingTimeout(RecommenderError):
    """External service call timed out (retried with back-off)."""


class UnknownContentType(RecommenderError, ValueError):
    """Content type tag outside the closed enumeration. Never retried."""

    def __init__(self, tag: object):
        super().__init__(f"Unknown content type: {tag!r}")
        self.tag = tag


class PartialFailure(RecommenderError):
    """One sub-operation of a fan-out failed; its slot contributes an empty result."""

    def __init__(self, label: str, cause: BaseException):
        super().__init__(f"{label} failed: {type(cause).__name__}: {cause}")
        self.label = label
        self.cause = cause


class RetriesExhausted(RecommenderError):
    """All attempts of a retry envelope failed."""

    def __init__(self, operation: str, attempts: int, last_error: Optional[BaseException]):
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class ConfigurationError(RecommenderError):
    """Required credentials or settings are missing."""
