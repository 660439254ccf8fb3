"""
Candidate and result models — what the recommendation stages produce.

Contains:
- Candidate: one recommended item with its score and the strategy that found it
- RecommendationResult: per-type buckets plus the flattened list
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .content import CONTENT_TYPE_ORDER, ContentItem, ContentType


class CandidateSource(str, Enum):
    SEQUEL = "sequel"
    SIMILARITY = "similarity"


class ResultStatus(str, Enum):
    OK = "ok"
    NO_DATA = "no_data"


def clamp_score(score: float) -> float:
    """Clamp to [0, 1]; cosine scores from the vector index can dip below zero."""
    return max(0.0, min(1.0, float(score)))


class Candidate(BaseModel):
    """A recommended item. Transient, never persisted."""

    id: str
    type: ContentType
    score: float = Field(ge=0.0, le=1.0)
    source: CandidateSource
    data: ContentItem


class RecommendationResult(BaseModel):
    """Per-type buckets and the flattened list (movies, TV, anime, games)."""

    status: ResultStatus = ResultStatus.OK
    reason: Optional[str] = None
    movies: List[Candidate] = []
    tv_series: List[Candidate] = []
    animes: List[Candidate] = []
    games: List[Candidate] = []
    all: List[Candidate] = []

    @classmethod
    def empty(cls, reason: Optional[str] = None) -> "RecommendationResult":
        return cls(status=ResultStatus.NO_DATA, reason=reason)

    @classmethod
    def from_buckets(
        cls,
        buckets: Dict[ContentType, List[Candidate]],
        reason_if_empty: str = "no_recommendations",
    ) -> "RecommendationResult":
        """Assemble from per-type lists; flattened order is fixed regardless of input order."""
        by_key = {ct.bucket: list(buckets.get(ct, [])) for ct in CONTENT_TYPE_ORDER}
        flat = [c for ct in CONTENT_TYPE_ORDER for c in by_key[ct.bucket]]
        if not flat:
            return cls(status=ResultStatus.NO_DATA, reason=reason_if_empty, **by_key)
        return cls(all=flat, **by_key)

    def bucket(self, content_type: ContentType) -> List[Candidate]:
        return getattr(self, content_type.bucket)

    @property
    def is_empty(self) -> bool:
        return not self.all
