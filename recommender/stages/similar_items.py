"""
Similar items — nearest neighbours of a stored item, hydrated from the repository.

The query uses the item's existing embedding in the vector index (query by id), so no
embedding call is made on the recommendation path.
"""

import asyncio
import logging
from typing import List, Optional

from ..errors import NotFound, UnknownContentType
from ..models import Candidate, CandidateSource, ContentType, clamp_score
from ..ports import ContentRepository, VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


class SimilarItemsFinder:
    """Vector search by item id plus repository hydration of each match."""

    def __init__(self, repository: ContentRepository, vector_index: VectorIndex):
        self._repository = repository
        self._index = vector_index

    async def find(self, item_id: str, top_k: int) -> List[Candidate]:
        """
        Up to top_k neighbours of item_id, excluding item_id itself.

        Requests one extra match to absorb the item's own hit. Matches with no
        usable type tag, or that no longer exist in the repository, are dropped. An id
        the index cannot resolve has no neighbours.
        """
        if top_k <= 0:
            return []
        try:
            matches = await self._index.query_by_id(item_id, top_k + 1)
        except NotFound as e:
            logger.info("[similar] %s not in vector index: %s", item_id, e)
            return []
        filtered = [m for m in matches if m.id != item_id][:top_k]
        hydrated = await asyncio.gather(*(self._hydrate(m) for m in filtered))
        return [c for c in hydrated if c is not None]

    async def _hydrate(self, match: VectorMatch) -> Optional[Candidate]:
        if not match.type_tag:
            return None
        try:
            content_type = ContentType.parse(match.type_tag)
        except UnknownContentType:
            logger.warning("[similar] match %s has unknown type tag %r", match.id, match.type_tag)
            return None
        try:
            item = await self._repository.find_by_id(match.id, content_type)
        except Exception as e:
            logger.warning("[similar] hydrate %s/%s failed: %s", content_type.value, match.id, e)
            return None
        if item is None:
            return None
        return Candidate(
            id=item.id,
            type=content_type,
            score=clamp_score(match.score),
            source=CandidateSource.SIMILARITY,
            data=item,
        )
