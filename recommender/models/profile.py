"""
User profile — per-type consumed content ids for one user.

Built by repository adapters from the user's list collections; absent or partial
lists are treated as empty.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from pydantic import BaseModel, ConfigDict

from .content import CONTENT_TYPE_ORDER, ContentItem, ContentType, content_ids_from_entries


class UserProfile(BaseModel):
    """Read-only snapshot of what a user has consumed, fetched fresh per request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    consumed: Dict[ContentType, List[str]] = {}

    def ids_for(self, content_type: ContentType) -> List[str]:
        return list(self.consumed.get(content_type, []))

    @property
    def total(self) -> int:
        return sum(len(ids) for ids in self.consumed.values())

    @classmethod
    def from_lists(
        cls,
        user_id: str,
        lists: Mapping[ContentType, Optional[Iterable[Dict[str, Any]]]],
    ) -> "UserProfile":
        """Build from raw list entries keyed by type (e.g. {"movie_id": ...} rows)."""
        consumed = {
            ct: content_ids_from_entries(lists.get(ct), ct)
            for ct in CONTENT_TYPE_ORDER
        }
        return cls(user_id=user_id, consumed=consumed)


class ResolvedProfile(BaseModel):
    """A profile plus the hydrated ContentItem records for its ids."""

    profile: UserProfile
    items: Dict[ContentType, List[ContentItem]] = {}

    def items_for(self, content_type: ContentType) -> List[ContentItem]:
        return list(self.items.get(content_type, []))

    def consumed_set(self, content_type: ContentType) -> Set[str]:
        """Consumed ids for a type: profile ids plus the ids of hydrated records."""
        ids = {i for i in self.profile.ids_for(content_type) if i}
        ids.update(item.id for item in self.items_for(content_type))
        return ids

    @property
    def total_items(self) -> int:
        return sum(len(v) for v in self.items.values())
