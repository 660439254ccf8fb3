"""
Series identity — heuristic extraction of a series name from a title.

Matchers are tried in a fixed priority order; the first that matches wins and its
prefix (text before the matched token) becomes the series name:

1. numeral:   "Rocky 2", "Final Fantasy VII", "Spider-Man-2"
2. season:    "Breaking Bad Season 4", "Attack on Titan Part II"
3. franchise: "Batman Begins", "Lord of the Rings: The Two Towers"

When nothing matches and the title is long enough, the whole title is the identity.
This is deliberately loose: the repository substring search narrows it down.
"""

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

_SEP = r"(?:\s+|-|:)"
_END = r"(?:\s+|-|:|$)"
_NUMERAL = r"(?:\d+|[IVXLCDM]+)"

# Informational only: first standalone numeral in the title
_NUMBER_RE = re.compile(r"\b(\d+|[IVXLCDM]+)\b")


@dataclass(frozen=True)
class SeriesIdentity:
    name: str
    number: Optional[str] = None
    matcher: str = "whole_title"


@dataclass(frozen=True)
class SeriesMatcher:
    """A named title pattern whose group 1 is the series-name prefix."""

    name: str
    pattern: Pattern[str]

    def match(self, title: str) -> Optional[str]:
        m = self.pattern.match(title)
        return m.group(1) if m else None


SERIES_MATCHERS: Tuple[SeriesMatcher, ...] = (
    SeriesMatcher("numeral", re.compile(rf"^(.*?){_SEP}{_NUMERAL}{_END}", re.IGNORECASE)),
    SeriesMatcher(
        "season",
        re.compile(rf"^(.*?){_SEP}(?:season|part|chapter){_SEP}{_NUMERAL}{_END}", re.IGNORECASE),
    ),
    SeriesMatcher(
        "franchise",
        re.compile(
            rf"^(.*?){_SEP}(?:the|a|an|origins|returns|rises|forever|begins){_END}",
            re.IGNORECASE,
        ),
    ),
)


def _series_number(title: str) -> Optional[str]:
    m = _NUMBER_RE.search(title)
    return m.group(1) if m else None


def extract_series_identity(
    title: Optional[str],
    min_fallback_length: int = 4,
    matchers: Tuple[SeriesMatcher, ...] = SERIES_MATCHERS,
) -> Optional[SeriesIdentity]:
    """
    Derive a SeriesIdentity from a title, or None.

    A matcher hit with an empty prefix yields None (there is nothing to search for);
    the whole-title fallback applies only when no matcher hits at all.
    """
    if not title:
        return None
    for matcher in matchers:
        prefix = matcher.match(title)
        if prefix is None:
            continue
        name = prefix.strip()
        if not name:
            return None
        return SeriesIdentity(name=name, number=_series_number(title), matcher=matcher.name)
    if len(title) > min_fallback_length:
        return SeriesIdentity(name=title, number=_series_number(title))
    return None
