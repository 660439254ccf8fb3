"""
Embedding Strategy for content items

This module defines HOW text is extracted from content items for embedding.
Changes to this module require re-running ingestion (bump STRATEGY_VERSION).

One template per content type, each of the form:
    "{title} is a {kind}. {description} {categorical attributes...}"
Unknown types fall back to "{title}: {description}".
"""

import re
from typing import Any, Callable, Dict, Union

from ..models import ContentItem, ContentType

# IMPORTANT: Bump this version when the embedding logic changes!
STRATEGY_VERSION = "1.0"

# OpenAI embedding configuration
EMBEDDING_MODEL = "text-embedding-3-small"
EMBEDDING_DIMENSIONS = 1536

NO_DESCRIPTION = "No description available."
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_MAX_PEOPLE = 10


def _join(values) -> str:
    return ", ".join(values)


def _anime_text(item: ContentItem) -> str:
    title = item.title_en or item.title_original or ""
    jp = f" ({item.title_jp})" if item.title_jp else ""
    return (
        f"{title} is an anime{jp}. "
        f"Description: {item.description or NO_DESCRIPTION} "
        f"Characters: {_join(item.characters[:_MAX_PEOPLE])}. "
        f"Demographics: {_join(item.demographics)}. Genres: {_join(item.genres)}. "
        f"Producers: {_join(item.producers)}. "
        f"Relations: {_join(item.relations)}. "
        f"Studios: {_join(item.studios)}. Themes: {_join(item.themes)}."
    )


def _movie_text(item: ContentItem) -> str:
    title = item.title_en or item.title_original or ""
    return (
        f"{title} is a movie. "
        f"Plot: {item.description or NO_DESCRIPTION} "
        f"Starring: {_join(item.actors[:_MAX_PEOPLE])}. Genres: {_join(item.genres)}. "
        f"Production: {_join(item.production_companies)}."
    )


def _tv_series_text(item: ContentItem) -> str:
    title = item.title_en or item.title_original or ""
    return (
        f"{title} is a TV series. "
        f"Overview: {item.description or NO_DESCRIPTION} "
        f"Cast: {_join(item.actors[:_MAX_PEOPLE])}. Genres: {_join(item.genres)}. "
        f"Networks: {_join(item.networks)}. Production: {_join(item.production_companies)}."
    )


def _game_text(item: ContentItem) -> str:
    title = item.title or item.title_original or ""
    about = _HTML_TAG_RE.sub("", item.description or "")
    metacritic = item.metacritic_score if item.metacritic_score is not None else "N/A"
    if isinstance(metacritic, float) and metacritic.is_integer():
        metacritic = int(metacritic)
    return (
        f"{title} is a game. "
        f"About: {about} "
        f"Developed by: {_join(item.developers)}. Genres: {_join(item.genres)}. "
        f"Metacritic Score: {metacritic}. Platforms: {_join(item.platforms)}. "
        f"Published by: {_join(item.publishers)}. Tags: {_join(item.tags)}."
    )


TEMPLATES: Dict[ContentType, Callable[[ContentItem], str]] = {
    ContentType.ANIME: _anime_text,
    ContentType.MOVIE: _movie_text,
    ContentType.TV_SERIES: _tv_series_text,
    ContentType.GAME: _game_text,
}


def get_embed_text(item: Union[ContentItem, Dict[str, Any]], content_type: Any = None) -> str:
    """
    Generate text for embedding from a content item.

    Args:
        item: ContentItem, or a raw document dict
        content_type: overrides item.type; an unrecognised value selects the
            generic "{title}: {description}" template instead of raising

    Returns:
        Text string to be embedded
    """
    tag = content_type if content_type is not None else (
        item.type if isinstance(item, ContentItem) else item.get("type")
    )
    template = None
    try:
        template = TEMPLATES.get(ContentType.parse(tag))
    except ValueError:
        template = None

    if template is not None:
        if not isinstance(item, ContentItem):
            item = ContentItem.from_document(item, tag)
        return template(item)

    if isinstance(item, ContentItem):
        title = item.title_en or item.title or ""
        description = item.description or ""
    else:
        title = item.get("title_en") or item.get("title") or ""
        description = item.get("description") or ""
    return f"{title}: {description}"


def validate_item_for_embedding(item: ContentItem) -> tuple[bool, str]:
    """
    Validate that an item has the required fields for embedding.

    Returns:
        (is_valid, error_message)
    """
    if not item.id:
        return False, "Missing 'id' field"

    if not (item.title or item.title_en or item.title_original):
        return False, "Missing title fields"

    return True, ""
