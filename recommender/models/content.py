"""
Content model — content types and the normalised ContentItem record.

Documents arrive from the repository in several shapes (string or ObjectId keys,
categorical attributes as plain strings or as {"name": ...} objects). Everything is
normalised here, at the repository boundary, so the stages only ever see one shape.
"""

import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..errors import UnknownContentType

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
_WRAPPED_OBJECT_ID_RE = re.compile(r"""^ObjectId\(\s*["']?([0-9a-fA-F]{24})["']?\s*\)$""")


class ContentType(str, Enum):
    """Closed set of content types. Value is the vector-index metadata tag."""

    MOVIE = "movie"
    TV_SERIES = "tvseries"
    ANIME = "anime"
    GAME = "game"

    @classmethod
    def parse(cls, tag: Any) -> "ContentType":
        """Resolve an enum member, a tag ("tvseries"), or a name ("tv_series")."""
        if isinstance(tag, ContentType):
            return tag
        if isinstance(tag, str):
            key = tag.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise UnknownContentType(tag)

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]

    @property
    def list_collection(self) -> str:
        """Collection holding a user's consumption list for this type."""
        return _LIST_COLLECTIONS[self][0]

    @property
    def list_id_fields(self) -> Tuple[str, ...]:
        """Fields of a list entry that may hold the content id, in priority order."""
        return _LIST_COLLECTIONS[self][1]

    @property
    def bucket(self) -> str:
        """Key of this type's bucket in RecommendationResult."""
        return _BUCKETS[self]


# Result order for flattened output
CONTENT_TYPE_ORDER: Tuple[ContentType, ...] = (
    ContentType.MOVIE,
    ContentType.TV_SERIES,
    ContentType.ANIME,
    ContentType.GAME,
)

_COLLECTIONS = {
    ContentType.MOVIE: "movies",
    ContentType.TV_SERIES: "tv-series",
    ContentType.ANIME: "animes",
    ContentType.GAME: "games",
}

_LIST_COLLECTIONS = {
    ContentType.MOVIE: ("movie-watch-lists", ("movie_id",)),
    ContentType.TV_SERIES: ("tvseries-watch-lists", ("tvseries_id", "tv_id")),
    ContentType.ANIME: ("anime-lists", ("anime_id",)),
    ContentType.GAME: ("game-lists", ("game_id",)),
}

_BUCKETS = {
    ContentType.MOVIE: "movies",
    ContentType.TV_SERIES: "tv_series",
    ContentType.ANIME: "animes",
    ContentType.GAME: "games",
}

USER_LISTS_COLLECTION = "user-lists"


def derived_object_id(value: Any) -> Optional[str]:
    """Lower-case 24-hex object id for ObjectId-shaped input, else None."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("$oid")
        if value is None:
            return None
    text = str(value).strip()
    wrapped = _WRAPPED_OBJECT_ID_RE.match(text)
    if wrapped:
        text = wrapped.group(1)
    if _OBJECT_ID_RE.match(text):
        return text.lower()
    return None


def canonical_id(value: Any) -> str:
    """Single canonical string id used everywhere past the repository boundary."""
    return derived_object_id(value) or ("" if value is None else str(value).strip())


def names(values: Optional[Iterable[Any]], limit: Optional[int] = None) -> List[str]:
    """Flatten ["a", {"name": "b"}, ...] into ["a", "b"]; drops empty entries."""
    out: List[str] = []
    for v in values or []:
        name = v.get("name") if isinstance(v, dict) else v
        if isinstance(name, str) and name:
            out.append(name)
    return out[:limit] if limit is not None else out


def _relation_names(relations: Optional[Iterable[Any]]) -> List[str]:
    out: List[str] = []
    for rel in relations or []:
        if isinstance(rel, dict):
            if rel.get("relation"):
                out.append(str(rel["relation"]))
            out.extend(names(rel.get("source")))
        elif isinstance(rel, str) and rel:
            out.append(rel)
    return out


_LIST_FIELDS = (
    "genres",
    "actors",
    "production_companies",
    "networks",
    "studios",
    "demographics",
    "themes",
    "producers",
    "characters",
    "developers",
    "platforms",
    "publishers",
    "tags",
)


class ContentItem(BaseModel):
    """
    A movie, TV series, anime or game as seen by the engine.

    Categorical attributes are ordered lists of names. Unknown document fields
    are kept as extras so API responses can still surface them.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    type: ContentType
    title: Optional[str] = None
    title_en: Optional[str] = None
    title_original: Optional[str] = None
    title_jp: Optional[str] = None
    description: Optional[str] = None
    genres: List[str] = []
    actors: List[str] = []
    production_companies: List[str] = []
    networks: List[str] = []
    studios: List[str] = []
    demographics: List[str] = []
    themes: List[str] = []
    producers: List[str] = []
    characters: List[str] = []
    relations: List[str] = []
    developers: List[str] = []
    platforms: List[str] = []
    publishers: List[str] = []
    tags: List[str] = []
    metacritic_score: Optional[float] = None

    @property
    def display_title(self) -> str:
        return self.title or self.title_en or self.title_original or ""

    @classmethod
    def from_document(cls, doc: Dict[str, Any], content_type: Any) -> "ContentItem":
        """Normalise a raw repository document (Firestore snapshot dict, JSON export)."""
        content_type = ContentType.parse(content_type)
        data = dict(doc)
        raw_id = data.pop("_id", None)
        if raw_id is None:
            raw_id = data.get("id")
        data["id"] = canonical_id(raw_id)
        data["type"] = content_type
        for field in _LIST_FIELDS:
            data[field] = names(data.get(field))
        data["relations"] = _relation_names(data.get("relations"))
        score = data.get("metacritic_score")
        if score is not None and not isinstance(score, (int, float)):
            try:
                data["metacritic_score"] = float(score)
            except (TypeError, ValueError):
                data["metacritic_score"] = None
        return cls.model_validate(data)


def content_ids_from_entries(entries: Optional[Iterable[Dict[str, Any]]], content_type: ContentType) -> List[str]:
    """Extract canonical content ids from a user's list entries, skipping entries without one."""
    ids: List[str] = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        raw = next((entry.get(f) for f in content_type.list_id_fields if entry.get(f)), None)
        if raw:
            ids.append(canonical_id(raw))
    return ids
