# ABOUTME: Regex-based extraction of candidate Geometry Dash level IDs from free text
# ABOUTME: Strict patterns are union-combined; a loose 6-7 digit pattern is only tried on a total miss

import re

# Level IDs are 6-9 digit numbers. Ordered from most to least specific:
#   "ID: 12345678", "Level ID 12345678", "(12345678)", "#12345678", bare 8-9 digits
LEVEL_ID_PATTERNS = [
    re.compile(r"(?:level\s*)?id[:\s#=]*(\d{6,9})\b", re.IGNORECASE),
    re.compile(r"\((\d{6,9})\)"),
    re.compile(r"#(\d{6,9})\b"),
    re.compile(r"\b(\d{8,9})\b"),
]

# Short digit runs are mostly view counts, dates and prices
LOOSE_LEVEL_ID_PATTERN = re.compile(r"\b(\d{6,7})\b")


def _collect(patterns: list[re.Pattern[str]], text: str) -> list[str]:
    ids: list[str] = []
    seen: set[str] = set()
    for pattern in patterns:
        for match in pattern.finditer(text):
            level_id = match.group(1)
            if level_id not in seen:
                seen.add(level_id)
                ids.append(level_id)
    return ids


def extract_potential_level_ids(text: str, limit: int | None = None) -> list[str]:
    """Extract candidate level IDs from text, ordered by confidence.

    Every strict pattern is applied and the matches are merged, first
    occurrence wins. The loose pattern is used only when no strict pattern
    matched anything.

    Args:
        text: Text to search (title, description and tags)
        limit: Optional cap on the number of candidates returned

    Returns:
        Deduplicated candidate IDs in priority order
    """
    if not text:
        return []

    ids = _collect(LEVEL_ID_PATTERNS, text)
    if not ids:
        ids = _collect([LOOSE_LEVEL_ID_PATTERN], text)

    return ids if limit is None else ids[:limit]
