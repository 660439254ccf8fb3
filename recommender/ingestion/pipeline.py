"""
Ingestion pipeline — repository records to embeddings to vector index.

Per content type the pipeline moves through
    idle -> streaming -> (batch_ready -> embedding -> upserting -> streaming)* -> completed | aborted

Each chunk of records becomes one batched embedding call and one batched upsert,
both wrapped in with_backoff. A chunk that still fails is retried after
batch_failure_base_delay * consecutive_failures; after max_consecutive_batch_failures
it is skipped so a collection always runs to completion. An unrecoverable error for
one content type aborts that type only.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from ..embedding import get_embed_text, validate_item_for_embedding
from ..errors import RecommenderError, UnknownContentType
from ..models import (
    CONTENT_TYPE_ORDER,
    ContentItem,
    ContentType,
    IngestionConfig,
    resolve_ingestion_config,
)
from ..ports import ContentRepository, EmbeddingRecord, EmbeddingService, VectorIndex
from .retry import Sleep, with_backoff

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    BATCH_READY = "batch_ready"
    EMBEDDING = "embedding"
    UPSERTING = "upserting"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class BatchState:
    """Process-local progress for one content type; never persisted."""

    cursor: Optional[str] = None
    consecutive_failures: int = 0
    processed: int = 0
    ingested: int = 0
    skipped: int = 0
    batches: int = 0


class IngestionReport(BaseModel):
    """Outcome of ingesting one content type."""

    content_type: ContentType
    state: IngestionState
    processed: int = 0
    ingested: int = 0
    skipped: int = 0
    batches: int = 0
    error: Optional[str] = None


class EmbeddingCountMismatch(RecommenderError):
    """The embedding service returned a different number of vectors than texts sent."""


class IngestionPipeline:
    """Streams, embeds and upserts every record of each content type."""

    def __init__(
        self,
        repository: ContentRepository,
        embedder: EmbeddingService,
        vector_index: VectorIndex,
        config: Optional[IngestionConfig] = None,
        sleep: Optional[Sleep] = None,
    ):
        self._repository = repository
        self._embedder = embedder
        self._index = vector_index
        self._config = resolve_ingestion_config(config)
        self._sleep = sleep or asyncio.sleep
        self.state = IngestionState.IDLE

    async def run(
        self,
        content_types: Optional[Iterable[object]] = None,
        limit: Optional[int] = None,
    ) -> List[IngestionReport]:
        """Ingest each content type in turn; one type's failure never stops the others."""
        types = [ContentType.parse(t) for t in (content_types or CONTENT_TYPE_ORDER)]
        reports = []
        for content_type in types:
            try:
                report = await self.ingest_type(content_type, limit=limit)
            except UnknownContentType:
                raise
            except Exception as e:
                logger.error("[ingest] error ingesting %s: %s: %s", content_type.collection, type(e).__name__, e)
                self.state = IngestionState.ABORTED
                report = IngestionReport(
                    content_type=content_type,
                    state=IngestionState.ABORTED,
                    error=f"{type(e).__name__}: {e}",
                )
            reports.append(report)
        return reports

    async def ingest_type(self, content_type: ContentType, limit: Optional[int] = None) -> IngestionReport:
        """Drain one collection. Errors from the repository stream propagate to run()."""
        logger.info("[ingest] starting ingestion for collection %s", content_type.collection)
        batch_state = BatchState()
        self.state = IngestionState.STREAMING

        async for chunk in self._repository.stream_all(content_type, self._config.chunk_size):
            if not chunk:
                break
            if limit is not None:
                chunk = chunk[: max(0, limit - batch_state.processed)]
                if not chunk:
                    break
            self.state = IngestionState.BATCH_READY
            await self._process_with_isolation(chunk, content_type, batch_state)
            batch_state.cursor = chunk[-1].id
            self.state = IngestionState.STREAMING
            if limit is not None and batch_state.processed >= limit:
                break

        self.state = IngestionState.COMPLETED
        logger.info(
            "[ingest] completed %s: %d processed, %d ingested, %d skipped",
            content_type.collection, batch_state.processed, batch_state.ingested, batch_state.skipped,
        )
        return IngestionReport(
            content_type=content_type,
            state=IngestionState.COMPLETED,
            processed=batch_state.processed,
            ingested=batch_state.ingested,
            skipped=batch_state.skipped,
            batches=batch_state.batches,
        )

    async def _process_with_isolation(
        self,
        chunk: Sequence[ContentItem],
        content_type: ContentType,
        batch_state: BatchState,
    ) -> None:
        """Process one chunk, retrying the whole chunk until it succeeds or is skipped."""
        cfg = self._config
        batch_state.batches += 1
        while True:
            try:
                ingested = await self._process_batch(chunk, content_type)
            except UnknownContentType:
                raise
            except Exception as e:
                batch_state.consecutive_failures += 1
                if batch_state.consecutive_failures >= cfg.max_consecutive_batch_failures:
                    logger.error(
                        "[ingest] %s batch %d failed %d times, skipping %d records: %s",
                        content_type.value, batch_state.batches, batch_state.consecutive_failures, len(chunk), e,
                    )
                    self._advance(batch_state, len(chunk), content_type)
                    batch_state.skipped += len(chunk)
                    batch_state.consecutive_failures = 0
                    return
                delay = cfg.batch_failure_base_delay * batch_state.consecutive_failures
                logger.warning(
                    "[ingest] %s batch %d failed (%d consecutive), retrying in %.1fs: %s",
                    content_type.value, batch_state.batches, batch_state.consecutive_failures, delay, e,
                )
                await self._sleep(delay)
                continue

            batch_state.consecutive_failures = 0
            self._advance(batch_state, len(chunk), content_type)
            batch_state.ingested += ingested
            batch_state.skipped += len(chunk) - ingested
            await self._sleep(cfg.inter_batch_delay)
            return

    def _advance(self, batch_state: BatchState, count: int, content_type: ContentType) -> None:
        before = batch_state.processed
        batch_state.processed += count
        every = self._config.log_every
        if batch_state.processed // every > before // every:
            logger.info("[ingest] [%s] processed %d documents", content_type.value, batch_state.processed)

    async def _process_batch(self, chunk: Sequence[ContentItem], content_type: ContentType) -> int:
        """Embed and upsert one chunk; returns the number of records written."""
        cfg = self._config
        items: List[ContentItem] = []
        texts: List[str] = []
        for item in chunk:
            ok, reason = validate_item_for_embedding(item)
            if not ok:
                logger.warning("[ingest] skipping %s record %s: %s", content_type.value, item.id or "unknown", reason)
                continue
            items.append(item)
            texts.append(get_embed_text(item, content_type))
        if not items:
            return 0

        self.state = IngestionState.EMBEDDING

        async def embed() -> List[List[float]]:
            vectors = await self._embedder.embed_batch(texts)
            if len(vectors) != len(texts):
                raise EmbeddingCountMismatch(f"expected {len(texts)} vectors, got {len(vectors)}")
            return vectors

        vectors = await with_backoff(
            embed,
            operation=f"embed {content_type.value} batch",
            max_attempts=cfg.max_attempts,
            initial_wait=cfg.initial_wait,
            factor=cfg.backoff_factor,
            sleep=self._sleep,
        )

        self.state = IngestionState.UPSERTING
        records = [
            EmbeddingRecord(id=item.id, vector=vector, type_tag=content_type.value)
            for item, vector in zip(items, vectors)
        ]
        logger.info("[ingest] [%s] upserting batch of %d", content_type.value, len(records))
        await with_backoff(
            lambda: self._index.upsert(records),
            operation=f"upsert {content_type.value} batch",
            max_attempts=cfg.max_attempts,
            initial_wait=cfg.initial_wait,
            factor=cfg.backoff_factor,
            sleep=self._sleep,
        )
        return len(records)
