"""
Pinecone vector index for content embeddings.

Requires pinecone[asyncio] (pip install 'pinecone[asyncio]'). Index creation and host
resolution use the sync client once; queries and upserts go through
pc.IndexAsyncio(host=...). Every vector carries metadata {"type": <tag>} with tags
movie, tvseries, anime, game.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone, ServerlessSpec

from recommender.errors import ConfigurationError, NotFound, RateLimited
from recommender.ports import EmbeddingRecord, VectorMatch

logger = logging.getLogger(__name__)

PINECONE_ASYNC_REQUIRED_MSG = (
    "Pinecone asyncio support is required. Install with: pip install 'pinecone[asyncio]'"
)

# Default dimension for OpenAI text-embedding-3-small
DEFAULT_DIMENSION = 1536
UPSERT_BATCH_SIZE = 100


def _field(obj: Any, name: str) -> Any:
    """Attribute or dict key; SDK responses come back as either."""
    value = getattr(obj, name, None)
    if value is None and isinstance(obj, dict):
        value = obj.get(name)
    return value


def _status(exc: Exception) -> Any:
    return getattr(exc, "status", None) or getattr(exc, "status_code", None)


def _is_rate_limited(exc: Exception) -> bool:
    status = _status(exc)
    if status == 429:
        return True
    msg = str(exc).lower()
    return "429" in msg or "too many requests" in msg


def matches_from_response(result: Any) -> List[VectorMatch]:
    """Convert a query response to VectorMatch rows (type tag from metadata)."""
    out = []
    for m in _field(result, "matches") or []:
        mid = _field(m, "id")
        mscore = _field(m, "score")
        if not mid or mscore is None:
            continue
        metadata = _field(m, "metadata") or {}
        tag = metadata.get("type") if isinstance(metadata, dict) else None
        out.append(VectorMatch(id=str(mid), score=float(mscore), type_tag=tag))
    return out


class PineconeVectorIndex:
    """
    Content vectors in one Pinecone index, keyed by content id.

    Uses PINECONE_API_KEY from env via ServerConfig. The index is created on first
    use when missing (cosine, serverless).
    """

    DEFAULT_INDEX_NAME = "content-recommendations"

    def __init__(
        self,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        dimension: int = DEFAULT_DIMENSION,
        cloud: str = "aws",
        region: str = "us-east-1",
        namespace: Optional[str] = None,
    ):
        self._api_key = (api_key or "").strip()
        if not self._api_key:
            raise ConfigurationError("PINECONE_API_KEY is required for PineconeVectorIndex")
        self._index_name = (index_name or self.DEFAULT_INDEX_NAME).strip()
        self._dimension = dimension
        self._cloud = cloud
        self._region = region
        self._namespace = namespace or None
        self._client: Optional[Pinecone] = None
        self._index_host: Optional[str] = None

    @property
    def client(self) -> Pinecone:
        if self._client is None:
            self._client = Pinecone(api_key=self._api_key)
        return self._client

    @property
    def index_name(self) -> str:
        return self._index_name

    def ensure_index(self) -> None:
        """Create the index if it does not exist yet."""
        if self.client.has_index(self._index_name):
            logger.info("[Pinecone] index %r already exists", self._index_name)
            return
        logger.info("[Pinecone] creating index %r (dimension=%d, cosine)", self._index_name, self._dimension)
        self.client.create_index(
            name=self._index_name,
            dimension=self._dimension,
            metric="cosine",
            spec=ServerlessSpec(cloud=self._cloud, region=self._region),
        )

    def _get_index_host(self) -> str:
        """Resolve index host for the asyncio client (cached)."""
        if self._index_host is not None:
            return self._index_host
        try:
            self.ensure_index()
            desc = self.client.describe_index(self._index_name)
        except Exception as e:
            logger.error("[Pinecone] resolving index host failed: %s", e)
            raise RuntimeError(f"Could not resolve Pinecone index host for {self._index_name!r}: {e}") from e
        host = _field(desc, "host")
        if not host:
            raise RuntimeError(f"Pinecone index {self._index_name!r} has no host; check index exists and API key.")
        self._index_host = host
        logger.info("[Pinecone] index host resolved: %r", host)
        return host

    def _translate(self, operation: str, e: Exception) -> Exception:
        logger.warning("[Pinecone] %s failed: %s: %s", operation, type(e).__name__, e)
        if _is_rate_limited(e):
            return RateLimited(f"Pinecone {operation} rate limited: {e}")
        if _status(e) == 404:
            return NotFound(f"Pinecone {operation}: {e}")
        err_msg = str(e).lower()
        if "asyncio" in err_msg or "additional dependencies" in err_msg:
            return ImportError(PINECONE_ASYNC_REQUIRED_MSG)
        return e

    async def _host(self) -> str:
        # Sync control-plane calls run off the event loop; the host is cached after the first one
        if self._index_host is not None:
            return self._index_host
        return await asyncio.to_thread(self._get_index_host)

    async def _query(self, top_k: int, **kwargs) -> List[VectorMatch]:
        host = await self._host()
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                result = await idx.query(
                    top_k=top_k,
                    namespace=self._namespace,
                    include_values=False,
                    include_metadata=True,
                    **kwargs,
                )
        except Exception as e:
            translated = self._translate("query", e)
            if translated is e:
                raise
            raise translated from e
        matches = matches_from_response(result)
        logger.debug("[Pinecone] query top_k=%d returned=%d", top_k, len(matches))
        return matches

    async def query_by_id(self, item_id: str, top_k: int) -> List[VectorMatch]:
        """Neighbours of a stored vector. The stored item itself is usually the first hit."""
        if not item_id or top_k <= 0:
            return []
        return await self._query(top_k, id=str(item_id))

    async def query_by_vector(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        if not vector or top_k <= 0:
            return []
        return await self._query(top_k, vector=list(vector))

    async def upsert(self, records: Sequence[EmbeddingRecord]) -> None:
        """Upsert records with metadata {"type": tag}; idempotent per id."""
        if not records:
            return
        vectors: List[Dict[str, Any]] = [
            {"id": r.id, "values": list(r.vector), "metadata": {"type": r.type_tag}}
            for r in records
        ]
        host = await self._host()
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                for i in range(0, len(vectors), UPSERT_BATCH_SIZE):
                    await idx.upsert(vectors=vectors[i : i + UPSERT_BATCH_SIZE], namespace=self._namespace)
        except Exception as e:
            translated = self._translate("upsert", e)
            if translated is e:
                raise
            raise translated from e
        logger.info("[Pinecone] upserted %d vectors to index %r", len(vectors), self._index_name)
