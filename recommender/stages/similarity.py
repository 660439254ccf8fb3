"""
Metadata similarity — weighted Jaccard overlap of categorical attributes.

score = 0.5 + sum(jaccard(a.attr, b.attr) * weight), capped at 0.99 so a scored
candidate never collides with the 1.0 of an exact duplicate. Per type the weights
sum to 0.5, so the uncapped maximum is 1.0.
"""

from typing import Dict, Iterable, Optional, Tuple

from ..errors import UnknownContentType
from ..models import ContentItem, ContentType

BASE_SCORE = 0.5
MAX_SCORE = 0.99

# (attribute, weight, head limit); head limit compares only the first N entries
AttributeWeight = Tuple[str, float, Optional[int]]

ATTRIBUTE_WEIGHTS: Dict[ContentType, Tuple[AttributeWeight, ...]] = {
    ContentType.ANIME: (
        ("genres", 0.15, None),
        ("demographics", 0.15, None),
        ("themes", 0.10, None),
        ("studios", 0.10, None),
    ),
    ContentType.MOVIE: (
        ("genres", 0.20, None),
        ("production_companies", 0.10, None),
        # Shared leads are a strong series signal
        ("actors", 0.20, 3),
    ),
    ContentType.TV_SERIES: (
        ("genres", 0.20, None),
        ("networks", 0.15, None),
        ("production_companies", 0.05, None),
        ("actors", 0.10, 5),
    ),
    ContentType.GAME: (
        ("genres", 0.20, None),
        ("platforms", 0.15, None),
        ("developers", 0.10, None),
        ("publishers", 0.05, None),
    ),
}


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B| over sets; 0.0 when either side is empty."""
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def metadata_similarity(a: ContentItem, b: ContentItem, content_type: ContentType) -> float:
    """Similarity in [0.5, 0.99] between two items of content_type."""
    try:
        weights = ATTRIBUTE_WEIGHTS[content_type]
    except KeyError:
        raise UnknownContentType(content_type) from None
    score = BASE_SCORE
    for attribute, weight, head in weights:
        values_a = getattr(a, attribute)
        values_b = getattr(b, attribute)
        if head is not None:
            values_a, values_b = values_a[:head], values_b[:head]
        score += jaccard(values_a, values_b) * weight
    return min(MAX_SCORE, score)
