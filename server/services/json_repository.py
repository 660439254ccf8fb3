"""
In-memory content repository, optionally loaded from JSON exports.

Used when DATA_SOURCE=json (files from CONTENT_JSON_DIR) and by the test suite.
Each collection is a list of documents keyed by "_id" (string, {"$oid": ...}) or "id".
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, Union

from recommender.models import (
    CONTENT_TYPE_ORDER,
    USER_LISTS_COLLECTION,
    ContentItem,
    ContentType,
    UserProfile,
    canonical_id,
    derived_object_id,
)

logger = logging.getLogger(__name__)

TITLE_FIELDS = ("title", "title_en", "title_original")


def _native_key(doc: Dict[str, Any]) -> str:
    raw = doc.get("_id", doc.get("id"))
    if isinstance(raw, dict) and "$oid" in raw:
        raw = raw["$oid"]
    return "" if raw is None else str(raw)


def title_matcher(pattern: str) -> "re.Pattern[str]":
    """Case-insensitive literal substring matcher (metacharacters escaped)."""
    return re.compile(re.escape(pattern), re.IGNORECASE)


def title_contains(doc: Dict[str, Any], matcher: "re.Pattern[str]") -> bool:
    return any(isinstance(doc.get(f), str) and matcher.search(doc[f]) for f in TITLE_FIELDS)


class InMemoryContentRepository:
    """
    Repository over in-memory collections: {"movies": [...], "user-lists": [...], ...}.

    Lookups mirror the Firestore adapter: native key first, then the derived
    object-id form.
    """

    def __init__(self, collections: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None):
        self._docs: Dict[str, List[Dict[str, Any]]] = {}
        self._by_key: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._by_object_id: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for name, docs in (collections or {}).items():
            self.add_documents(name, docs)

    def add_documents(self, collection: str, docs: Iterable[Dict[str, Any]]) -> None:
        bucket = self._docs.setdefault(collection, [])
        by_key = self._by_key.setdefault(collection, {})
        by_oid = self._by_object_id.setdefault(collection, {})
        for doc in docs:
            bucket.append(doc)
            key = _native_key(doc)
            if key:
                by_key[key] = doc
                oid = derived_object_id(key)
                if oid:
                    by_oid[oid] = doc

    def _lookup(self, collection: str, item_id: Any) -> Optional[Dict[str, Any]]:
        native = self._by_key.get(collection, {}).get(str(item_id))
        if native is not None:
            return native
        oid = derived_object_id(item_id)
        if oid:
            return self._by_object_id.get(collection, {}).get(oid)
        return None

    def _to_item(self, doc: Dict[str, Any], content_type: ContentType) -> Optional[ContentItem]:
        data = dict(doc)
        data["_id"] = _native_key(doc)
        try:
            return ContentItem.from_document(data, content_type)
        except ValueError as e:
            logger.warning("[JsonRepository] skipping malformed %s document %s: %s", content_type.value, data["_id"], e)
            return None

    async def find_by_id(self, item_id: str, content_type: ContentType) -> Optional[ContentItem]:
        doc = self._lookup(content_type.collection, item_id)
        return self._to_item(doc, content_type) if doc is not None else None

    async def find_by_title_substring(
        self,
        pattern: str,
        content_type: ContentType,
        exclude_id: Optional[str],
        limit: int,
    ) -> List[ContentItem]:
        if not pattern or limit <= 0:
            return []
        matcher = title_matcher(pattern)
        excluded = canonical_id(exclude_id) if exclude_id else None
        out: List[ContentItem] = []
        for doc in self._docs.get(content_type.collection, []):
            if not title_contains(doc, matcher):
                continue
            item = self._to_item(doc, content_type)
            if item is None or item.id == excluded:
                continue
            out.append(item)
            if len(out) >= limit:
                break
        return out

    async def find_many_by_ids(self, ids: Sequence[str], content_type: ContentType) -> List[ContentItem]:
        out: List[ContentItem] = []
        seen = set()
        for item_id in ids:
            if not item_id:
                continue
            doc = self._lookup(content_type.collection, item_id)
            if doc is None:
                continue
            item = self._to_item(doc, content_type)
            if item is not None and item.id not in seen:
                seen.add(item.id)
                out.append(item)
        logger.debug("[JsonRepository] found %d %s items out of %d ids", len(out), content_type.value, len(ids))
        return out

    async def stream_all(self, content_type: ContentType, chunk_size: int) -> AsyncIterator[List[ContentItem]]:
        """Chunks ordered by document key, paginated with a start-after cursor."""
        docs = sorted(self._docs.get(content_type.collection, []), key=_native_key)
        cursor: Optional[str] = None
        while True:
            page = [d for d in docs if cursor is None or _native_key(d) > cursor][:chunk_size]
            if not page:
                return
            cursor = _native_key(page[-1])
            items = [i for i in (self._to_item(d, content_type) for d in page) if i is not None]
            # A page of only malformed documents is not the end of the collection
            if items:
                yield items

    async def join_user_lists(self, user_id: str) -> Optional[UserProfile]:
        users = self._docs.get(USER_LISTS_COLLECTION, [])
        if not any(u.get("user_id") == user_id for u in users):
            return None
        lists = {
            ct: [e for e in self._docs.get(ct.list_collection, []) if e.get("user_id") == user_id]
            for ct in CONTENT_TYPE_ORDER
        }
        return UserProfile.from_lists(user_id, lists)


class JsonContentRepository(InMemoryContentRepository):
    """
    Repository backed by one JSON file per collection in a directory
    (movies.json, tv-series.json, animes.json, games.json, user-lists.json,
    movie-watch-lists.json, tvseries-watch-lists.json, anime-lists.json, game-lists.json).
    Missing files are treated as empty collections.
    """

    def __init__(self, data_dir: Union[Path, str]):
        self._data_dir = Path(data_dir)
        if not self._data_dir.is_dir():
            raise FileNotFoundError(f"Content JSON directory not found: {self._data_dir}")
        names = [USER_LISTS_COLLECTION]
        for ct in CONTENT_TYPE_ORDER:
            names.extend([ct.collection, ct.list_collection])
        collections: Dict[str, List[Dict[str, Any]]] = {}
        for name in names:
            path = self._data_dir / f"{name}.json"
            if path.exists():
                with open(path) as f:
                    collections[name] = json.load(f)
        super().__init__(collections)
        logger.info(
            "[JsonRepository] loaded %d collections from %s",
            len(collections), self._data_dir,
        )
