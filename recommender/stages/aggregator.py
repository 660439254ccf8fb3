"""
Per-type aggregation — sequels first, vector similarity fills the remaining slots.

1. Sequel detection over the consumed items.
2. Enough sequels: return the first per_type_count (similarity is skipped).
3. Otherwise query the vector index around up to N seed items concurrently,
   over-fetching for filtering headroom, and keep same-type, unconsumed, unseen
   matches up to the remaining slot count.
"""

import logging
import math
from typing import List, Optional, Sequence, Set

from ..concurrency import gather_outcomes
from ..models import (
    Candidate,
    ContentItem,
    ContentType,
    RecommendationConfig,
    resolve_config,
)
from ..ports import ContentRepository, VectorIndex
from .sequels import SequelDetector
from .similar_items import SimilarItemsFinder

logger = logging.getLogger(__name__)


def per_seed_top_k(remaining: int, seed_count: int, overfetch_factor: int = 2) -> int:
    """Neighbours requested per seed: ceil(remaining / seeds) * overfetch_factor."""
    if remaining <= 0 or seed_count <= 0:
        return 0
    return math.ceil(remaining / seed_count) * overfetch_factor


def _filter_similarity(
    candidates: Sequence[Candidate],
    content_type: ContentType,
    consumed_ids: Set[str],
    taken_ids: Set[str],
    limit: int,
) -> List[Candidate]:
    """Same type, not consumed, not already taken; first `limit` in seed order."""
    kept: List[Candidate] = []
    seen = set(taken_ids)
    for c in candidates:
        if len(kept) >= limit:
            break
        if c.type != content_type or not c.id:
            continue
        if c.id in consumed_ids or c.id in seen:
            continue
        seen.add(c.id)
        kept.append(c)
    return kept


class RecommendationAggregator:
    """Builds one content type's bucket from sequel and similarity candidates."""

    def __init__(
        self,
        repository: ContentRepository,
        vector_index: VectorIndex,
        config: Optional[RecommendationConfig] = None,
    ):
        self._config = resolve_config(config)
        self._sequels = SequelDetector(repository, self._config)
        self._similar = SimilarItemsFinder(repository, vector_index)

    async def aggregate(
        self,
        items: Sequence[ContentItem],
        content_type: ContentType,
        per_type_count: int,
        consumed_ids: Set[str],
    ) -> List[Candidate]:
        """Ranked candidates for one type: sequels, then similarity matches."""
        if not items or per_type_count <= 0:
            return []

        sequel_recs = await self._sequels.detect(items, content_type, consumed_ids)
        if len(sequel_recs) >= per_type_count:
            return sequel_recs[:per_type_count]

        remaining = per_type_count - len(sequel_recs)
        seeds = [it.id for it in items[: self._config.similarity_seed_count] if it.id]
        if not seeds:
            logger.info("[aggregate] no valid seed ids for %s", content_type.value)
            return sequel_recs

        top_k = per_seed_top_k(remaining, len(seeds), self._config.overfetch_factor)
        outcomes = await gather_outcomes(
            [(f"similar:{content_type.value}:{seed}", self._similar.find(seed, top_k)) for seed in seeds]
        )
        pooled = [c for outcome in outcomes for c in outcome.value_or([])]

        similarity_recs = _filter_similarity(
            pooled,
            content_type,
            consumed_ids,
            {c.id for c in sequel_recs},
            remaining,
        )
        logger.info(
            "[aggregate] %s: %d sequels + %d similar (seeds=%d, top_k=%d, pooled=%d)",
            content_type.value, len(sequel_recs), len(similarity_recs), len(seeds), top_k, len(pooled),
        )
        return sequel_recs + similarity_recs
