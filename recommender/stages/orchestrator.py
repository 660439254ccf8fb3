"""
Pipeline orchestrator — the two public entry points of the recommendation surface.

recommend_for_user resolves the profile, then runs the four per-type aggregations
concurrently and merges them; recommend_by_id is a plain similar-items lookup.
Both degrade to an empty RecommendationResult instead of raising.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..concurrency import gather_outcomes
from ..errors import UnknownContentType
from ..models import (
    CONTENT_TYPE_ORDER,
    Candidate,
    ContentType,
    RecommendationConfig,
    RecommendationResult,
    ResolvedProfile,
    resolve_config,
)
from ..ports import ContentRepository, VectorIndex
from .aggregator import RecommendationAggregator
from .profile_resolver import UserProfileResolver
from .similar_items import SimilarItemsFinder

logger = logging.getLogger(__name__)


class RecommendationOrchestrator:
    """Top-level entry point; collaborators are injected, never global."""

    def __init__(
        self,
        repository: ContentRepository,
        vector_index: VectorIndex,
        config: Optional[RecommendationConfig] = None,
    ):
        self._config = resolve_config(config)
        self._resolver = UserProfileResolver(repository)
        self._aggregator = RecommendationAggregator(repository, vector_index, self._config)
        self._similar = SimilarItemsFinder(repository, vector_index)

    async def recommend_for_user(self, user_ids: Sequence[str], top_k: Optional[int] = None) -> RecommendationResult:
        """
        Up to top_k recommendations for EACH content type (not divided across types).

        Only the first user id is honoured. No profile, or no resolvable history,
        yields an empty result with status no_data.
        """
        if not user_ids:
            return RecommendationResult.empty("no_user_id")
        top_k = top_k if top_k is not None else self._config.default_top_k
        user_id = user_ids[0]
        logger.info("[recommend] generating recommendations for user %s (top_k=%d)", user_id, top_k)
        try:
            resolved = await self._resolver.resolve(user_id)
            if resolved is None:
                return RecommendationResult.empty("no_profile")
            if resolved.total_items == 0:
                logger.warning("[recommend] user %s has no content to base recommendations on", user_id)
                return RecommendationResult.empty("no_history")
            buckets = await self._aggregate_all(resolved, top_k)
        except UnknownContentType:
            raise
        except Exception as e:
            logger.error("[recommend] recommend_for_user(%s) failed: %s: %s", user_id, type(e).__name__, e)
            return RecommendationResult.empty("error")

        result = RecommendationResult.from_buckets(buckets)
        logger.info(
            "[recommend] user %s -> movies=%d tv=%d anime=%d games=%d",
            user_id, len(result.movies), len(result.tv_series), len(result.animes), len(result.games),
        )
        return result

    async def _aggregate_all(self, resolved: ResolvedProfile, top_k: int) -> Dict[ContentType, List[Candidate]]:
        """Run per-type aggregations concurrently; a failed type yields an empty bucket."""
        active = [ct for ct in CONTENT_TYPE_ORDER if resolved.items_for(ct)]
        outcomes = await gather_outcomes(
            [
                (
                    f"aggregate:{ct.value}",
                    self._aggregator.aggregate(resolved.items_for(ct), ct, top_k, resolved.consumed_set(ct)),
                )
                for ct in active
            ]
        )
        buckets: Dict[ContentType, List[Candidate]] = {ct: [] for ct in CONTENT_TYPE_ORDER}
        for ct, outcome in zip(active, outcomes):
            buckets[ct] = outcome.value_or([])
        return buckets

    async def recommend_by_id(self, item_id: str, top_k: Optional[int] = None) -> RecommendationResult:
        """Items similar to item_id (itself excluded), bucketed by type."""
        top_k = top_k if top_k is not None else self._config.default_top_k
        if not item_id:
            return RecommendationResult.empty("no_item_id")
        try:
            candidates = await self._similar.find(item_id, top_k)
        except Exception as e:
            logger.error("[recommend] recommend_by_id(%s) failed: %s: %s", item_id, type(e).__name__, e)
            return RecommendationResult.empty("error")

        buckets: Dict[ContentType, List[Candidate]] = {ct: [] for ct in CONTENT_TYPE_ORDER}
        seen = set()
        for c in candidates:
            if c.id in seen:
                continue
            seen.add(c.id)
            buckets[c.type].append(c)
        return RecommendationResult.from_buckets(buckets)
