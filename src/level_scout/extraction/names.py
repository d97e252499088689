# ABOUTME: Alternate search strings for level names that failed a direct search
# ABOUTME: Strips completion boilerplate and splits mashup/collab titles into their parts

import re

LEADING_BOILERPLATE = re.compile(r"^(?:Beating|100%|All Coins?|Completed?|Verif(?:y|ied))\s+", re.IGNORECASE)
TRAILING_CATEGORY = re.compile(r"\s+(?:Geometry Dash|GD|Level|Demon)$", re.IGNORECASE)

# Separators joining two levels in mashups and collaborations
NAME_SEPARATORS = [" X ", " x ", " & ", " and ", " vs ", " VS ", " - ", "|"]


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


def generate_name_variations(level_name: str) -> list[str]:
    """Generate fallback search strings for a level name.

    The original name always comes first, followed by a cleaned name (if
    cleaning changed anything) and the individual sides of every separator
    present in the name.

    >>> generate_name_variations("Sunshine X Slaughterhouse")
    ['Sunshine X Slaughterhouse', 'Sunshine', 'Slaughterhouse']
    """
    variations = [level_name]

    cleaned = TRAILING_CATEGORY.sub("", LEADING_BOILERPLATE.sub("", level_name)).strip()
    if cleaned != level_name:
        variations.append(cleaned)

    for separator in NAME_SEPARATORS:
        if separator in level_name:
            variations.extend(part.strip() for part in level_name.split(separator))

    return _dedupe(variations)


def expand_name_variations(names: list[str]) -> list[str]:
    """Variations for every name, excluding the names themselves."""
    already_tried = set(names)
    expanded: list[str] = []
    for name in names:
        expanded.extend(generate_name_variations(name))
    return [variation for variation in _dedupe(expanded) if variation not in already_tried]
