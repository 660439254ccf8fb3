"""
Firestore content repository.

Used when DATA_SOURCE=firebase. Content collections: movies, tv-series, animes, games.
User lists: user-lists plus movie-watch-lists, tvseries-watch-lists, anime-lists,
game-lists, each row carrying user_id and a content id field.

Documents imported from the legacy store are keyed by their 24-hex object id; ids
arriving from user lists or the vector index may carry another shape, so every
lookup tries the native key and then the derived object-id form (either hex case).
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from google.cloud.firestore import AsyncClient
from google.oauth2 import service_account

from recommender.errors import ConfigurationError
from recommender.models import (
    CONTENT_TYPE_ORDER,
    USER_LISTS_COLLECTION,
    ContentItem,
    ContentType,
    UserProfile,
    canonical_id,
    derived_object_id,
)

from .json_repository import title_contains, title_matcher

logger = logging.getLogger(__name__)

# Firestore get_all batch size
GET_ALL_BATCH = 300
# Page size when scanning a collection for title matches
TITLE_SCAN_PAGE = 500


def _project_id_from_credentials_file(credentials_path: Union[Path, str]) -> Optional[str]:
    """Read project_id from a Google service account JSON file if present."""
    try:
        path = Path(credentials_path)
        if not path.is_file():
            return None
        with open(path) as f:
            data = json.load(f)
        return data.get("project_id") or data.get("projectId")
    except (OSError, ValueError):
        return None


def _candidate_keys(item_id: Any) -> List[str]:
    """
    Native key, then the derived object-id form in lower and upper case.

    Ids are lower-cased by canonical_id before they get here, while imported
    documents may be keyed by upper-case hex. Deduplicated; invalid document ids
    (empty, containing "/") are skipped.
    """
    keys = []
    native = "" if item_id is None or isinstance(item_id, dict) else str(item_id).strip()
    if native and "/" not in native:
        keys.append(native)
    derived = derived_object_id(item_id)
    if derived:
        for key in (derived, derived.upper()):
            if key not in keys:
                keys.append(key)
    return keys


class FirestoreContentRepository:
    """
    Content repository backed by Cloud Firestore (async client).

    The client is created lazily on first use and reused for the process lifetime.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
        client: Optional[AsyncClient] = None,
    ):
        self._project_id = project_id
        self._credentials_path = str(Path(credentials_path).resolve()) if credentials_path else None
        self._client = client

    @property
    def db(self) -> AsyncClient:
        if self._client is None:
            if self._credentials_path:
                creds = service_account.Credentials.from_service_account_file(self._credentials_path)
                proj = self._project_id or _project_id_from_credentials_file(self._credentials_path)
                self._client = AsyncClient(project=proj, credentials=creds)
            elif self._project_id:
                self._client = AsyncClient(project=self._project_id)
            else:
                raise ConfigurationError(
                    "FirestoreContentRepository requires FIREBASE_CREDENTIALS_PATH or FIREBASE_PROJECT_ID"
                )
            logger.info("[Firestore] async client initialized (project=%s)", self._client.project)
        return self._client

    def _collection(self, content_type: ContentType):
        return self.db.collection(content_type.collection)

    @staticmethod
    def _doc_to_item(doc: Any, content_type: ContentType) -> Optional[ContentItem]:
        data = doc.to_dict() or {}
        data["_id"] = doc.id
        try:
            return ContentItem.from_document(data, content_type)
        except ValueError as e:
            logger.warning("[Firestore] skipping malformed %s document %s: %s", content_type.value, doc.id, e)
            return None

    async def find_by_id(self, item_id: str, content_type: ContentType) -> Optional[ContentItem]:
        # Derived form is only tried when the native key misses
        coll = self._collection(content_type)
        for key in _candidate_keys(item_id):
            doc = await coll.document(key).get()
            if doc.exists:
                return self._doc_to_item(doc, content_type)
        return None

    async def find_many_by_ids(self, ids: Sequence[str], content_type: ContentType) -> List[ContentItem]:
        """Every key form of every id goes into the same batched read."""
        coll = self._collection(content_type)
        keys: List[str] = []
        for item_id in ids:
            for key in _candidate_keys(item_id):
                if key not in keys:
                    keys.append(key)
        found: Dict[str, ContentItem] = {}
        for i in range(0, len(keys), GET_ALL_BATCH):
            refs = [coll.document(k) for k in keys[i : i + GET_ALL_BATCH]]
            async for doc in self.db.get_all(refs):
                if not doc.exists:
                    continue
                item = self._doc_to_item(doc, content_type)
                if item is not None:
                    found.setdefault(item.id, item)
        # Preserve request order
        out = []
        for item_id in ids:
            item = found.pop(canonical_id(item_id), None)
            if item is not None:
                out.append(item)
        logger.info("[Firestore] found %d %s items out of %d ids", len(out), content_type.value, len(ids))
        return out

    async def _pages(self, content_type: ContentType, page_size: int) -> AsyncIterator[List[Any]]:
        """Raw snapshot pages ordered by document id, paginated with start_after."""
        query = self._collection(content_type).order_by("__name__").limit(page_size)
        last = None
        while True:
            page_query = query.start_after(last) if last is not None else query
            docs = [doc async for doc in page_query.stream()]
            if not docs:
                return
            yield docs
            last = docs[-1]

    async def find_by_title_substring(
        self,
        pattern: str,
        content_type: ContentType,
        exclude_id: Optional[str],
        limit: int,
    ) -> List[ContentItem]:
        """
        Firestore has no substring or regex queries, so title fields are matched
        client-side while paging through the collection; the scan stops at limit.
        """
        if not pattern or limit <= 0:
            return []
        matcher = title_matcher(pattern)
        excluded = canonical_id(exclude_id) if exclude_id else None
        out: List[ContentItem] = []
        scanned = 0
        async for docs in self._pages(content_type, TITLE_SCAN_PAGE):
            for doc in docs:
                scanned += 1
                data = doc.to_dict() or {}
                if not title_contains(data, matcher):
                    continue
                item = self._doc_to_item(doc, content_type)
                if item is None or item.id == excluded:
                    continue
                out.append(item)
                if len(out) >= limit:
                    break
            if len(out) >= limit:
                break
        logger.debug("[Firestore] title %r matched %d %s items (scanned %d)", pattern, len(out), content_type.value, scanned)
        return out

    async def stream_all(self, content_type: ContentType, chunk_size: int) -> AsyncIterator[List[ContentItem]]:
        async for docs in self._pages(content_type, chunk_size):
            items = [i for i in (self._doc_to_item(doc, content_type) for doc in docs) if i is not None]
            # Malformed pages are skipped; only an empty raw page ends the stream
            if items:
                yield items

    async def _list_entries(self, content_type: ContentType, user_id: str) -> List[Dict[str, Any]]:
        query = self.db.collection(content_type.list_collection).where("user_id", "==", user_id)
        return [doc.to_dict() or {} async for doc in query.stream()]

    async def join_user_lists(self, user_id: str) -> Optional[UserProfile]:
        """user-lists row for the user, joined with the four list collections."""
        users = self.db.collection(USER_LISTS_COLLECTION).where("user_id", "==", user_id).limit(1)
        found = [doc async for doc in users.stream()]
        if not found:
            return None
        entries = await asyncio.gather(*(self._list_entries(ct, user_id) for ct in CONTENT_TYPE_ORDER))
        return UserProfile.from_lists(user_id, dict(zip(CONTENT_TYPE_ORDER, entries)))
