"""
Profile resolution — a user's consumed ids per type, hydrated into ContentItems.

The repository's join_user_lists does the multi-collection lookup; hydration runs
one batched find_many_by_ids per type, concurrently. Ids that resolve under neither
the native key nor the derived object-id form are dropped.
"""

import logging
from typing import Dict, List, Optional

from ..concurrency import gather_outcomes
from ..models import CONTENT_TYPE_ORDER, ContentItem, ContentType, ResolvedProfile
from ..ports import ContentRepository

logger = logging.getLogger(__name__)


class UserProfileResolver:
    def __init__(self, repository: ContentRepository):
        self._repository = repository

    async def resolve(self, user_id: str) -> Optional[ResolvedProfile]:
        """ResolvedProfile for user_id, or None when the user has no profile."""
        profile = await self._repository.join_user_lists(user_id)
        if profile is None:
            logger.warning("[profile] no user found with id %s", user_id)
            return None

        outcomes = await gather_outcomes(
            [
                (f"hydrate:{ct.value}", self._hydrate(profile.ids_for(ct), ct))
                for ct in CONTENT_TYPE_ORDER
            ]
        )
        items: Dict[ContentType, List[ContentItem]] = {
            ct: outcome.value_or([]) for ct, outcome in zip(CONTENT_TYPE_ORDER, outcomes)
        }
        logger.info(
            "[profile] user %s: movies=%d tv=%d anime=%d games=%d",
            user_id,
            len(items[ContentType.MOVIE]),
            len(items[ContentType.TV_SERIES]),
            len(items[ContentType.ANIME]),
            len(items[ContentType.GAME]),
        )
        return ResolvedProfile(profile=profile, items=items)

    async def _hydrate(self, ids: List[str], content_type: ContentType) -> List[ContentItem]:
        ids = [i for i in ids if i]
        if not ids:
            return []
        found = await self._repository.find_many_by_ids(ids, content_type)
        by_id = {item.id: item for item in found}
        # Keep profile order; the first consumed items are the similarity seeds
        ordered = [by_id[i] for i in dict.fromkeys(ids) if i in by_id]
        logger.debug("[profile] found %d %s items out of %d ids", len(ordered), content_type.value, len(ids))
        return ordered
