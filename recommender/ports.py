"""
Interfaces of the external collaborators: document store, vector index, embedding service.

Implementations live in server.services (Firestore, JSON/in-memory, Pinecone, OpenAI).
Tests substitute fakes.
"""

from typing import AsyncIterator, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict

from .models import ContentItem, ContentType, UserProfile


class VectorMatch(BaseModel):
    """One nearest-neighbour hit. type_tag is the raw metadata tag (may be missing)."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    type_tag: Optional[str] = None


class EmbeddingRecord(BaseModel):
    """A vector ready for upsert; created per batch and discarded after writing."""

    id: str
    vector: List[float]
    type_tag: str


class ContentRepository(Protocol):
    """Protocol for content and user-list access. Implement for Firestore or JSON."""

    async def find_by_id(self, item_id: str, content_type: ContentType) -> Optional[ContentItem]:
        """Native key lookup, then the derived object-id form, before returning None."""
        ...

    async def find_by_title_substring(
        self,
        pattern: str,
        content_type: ContentType,
        exclude_id: Optional[str],
        limit: int,
    ) -> List[ContentItem]:
        """Items whose title fields contain pattern (case-insensitive, literal match)."""
        ...

    async def find_many_by_ids(self, ids: Sequence[str], content_type: ContentType) -> List[ContentItem]:
        """Batched lookup; unresolved ids are silently absent from the result."""
        ...

    def stream_all(self, content_type: ContentType, chunk_size: int) -> AsyncIterator[List[ContentItem]]:
        """
        Cursor-paginated chunks of the whole collection. Finite; restartable per call.

        Every yielded chunk is non-empty; documents that fail normalisation are dropped
        and a page holding only those is skipped rather than yielded empty.
        """
        ...

    async def join_user_lists(self, user_id: str) -> Optional[UserProfile]:
        """Consumed ids across all list collections, or None when the user does not exist."""
        ...


class VectorIndex(Protocol):
    """Protocol for approximate nearest-neighbour search over stored embeddings."""

    async def query_by_id(self, item_id: str, top_k: int) -> List[VectorMatch]:
        ...

    async def query_by_vector(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        ...

    async def upsert(self, records: Sequence[EmbeddingRecord]) -> None:
        ...


class EmbeddingService(Protocol):
    """Protocol for text embedding. Raises RateLimited / EmbeddingTimeout / other errors."""

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """One vector per input text, in input order."""
        ...
