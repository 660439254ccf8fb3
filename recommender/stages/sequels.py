"""
Sequel detection — unconsumed items from the same series as consumed items.

For each consumed item (sequentially, in profile order): derive a series identity from
its title, search the repository for same-type titles containing it, drop consumed
items, score the rest against the source with metadata_similarity, and keep the best
few. Detection stops as soon as the per-user/type cap is reached.
"""

import logging
from typing import List, Optional, Sequence, Set

from ..errors import UnknownContentType
from ..models import (
    Candidate,
    CandidateSource,
    ContentItem,
    ContentType,
    RecommendationConfig,
    resolve_config,
)
from ..ports import ContentRepository
from .series import extract_series_identity
from .similarity import metadata_similarity

logger = logging.getLogger(__name__)


class SequelDetector:
    """Finds series continuations for a user's consumed items of one type."""

    def __init__(self, repository: ContentRepository, config: Optional[RecommendationConfig] = None):
        self._repository = repository
        self._config = resolve_config(config)

    async def candidates_for_item(
        self,
        item: ContentItem,
        content_type: ContentType,
        consumed_ids: Set[str],
    ) -> List[Candidate]:
        """Scored sequel candidates for one consumed item, best first, at most sequels_per_item."""
        identity = extract_series_identity(item.display_title, self._config.min_fallback_title_length)
        if identity is None:
            return []
        logger.debug("[sequels] %s %r -> series %r (%s)", content_type.value, item.display_title, identity.name, identity.matcher)

        matches = await self._repository.find_by_title_substring(
            identity.name,
            content_type,
            exclude_id=item.id,
            limit=self._config.sequel_query_limit,
        )
        unconsumed = [m for m in matches if m.id and m.id != item.id and m.id not in consumed_ids]
        if not unconsumed:
            return []

        scored = [
            Candidate(
                id=m.id,
                type=content_type,
                score=metadata_similarity(item, m, content_type),
                source=CandidateSource.SEQUEL,
                data=m,
            )
            for m in unconsumed
        ]
        # Stable sort keeps repository order among equal scores
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored[: self._config.sequels_per_item]

    async def detect(
        self,
        items: Sequence[ContentItem],
        content_type: ContentType,
        consumed_ids: Set[str],
    ) -> List[Candidate]:
        """
        Sequel candidates across all consumed items of one type.

        Capped at sequel_total_cap; an id is emitted at most once. A failure on one
        item (e.g. a malformed title) is logged and the remaining items still run.
        """
        cap = self._config.sequel_total_cap
        recommendations: List[Candidate] = []
        seen: Set[str] = set()

        for item in items:
            if len(recommendations) >= cap:
                break
            try:
                found = await self.candidates_for_item(item, content_type, consumed_ids)
            except UnknownContentType:
                raise
            except Exception as e:
                logger.warning("[sequels] skipping %s item %s: %s: %s", content_type.value, item.id or "unknown", type(e).__name__, e)
                continue
            for candidate in found:
                if candidate.id in seen:
                    continue
                seen.add(candidate.id)
                recommendations.append(candidate)
                if len(recommendations) >= cap:
                    break

        logger.info("[sequels] %d sequel candidates for %s", len(recommendations), content_type.value)
        return recommendations
