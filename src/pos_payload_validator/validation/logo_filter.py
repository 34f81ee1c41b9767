"""Logo detection for image items.

Brand and restaurant logos are usually small and are not held to product
photo dimension minimums, so they are skipped during dimension validation.
Detection is a best-effort match on the item id and its ``alt`` texts.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

LOGO_PATTERNS: tuple[str, ...] = (
    r"logo",
    r"restaurant.*image",
    r"store.*image",
    r"brand",
    r"icon",
)


def _compile(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]


_LOGO_REGEXES = _compile(LOGO_PATTERNS)


def is_logo_image(
    item_id: str, item: Mapping[str, Any], patterns: Iterable[str] | None = None
) -> bool:
    """Decide whether an Image item is a logo.

    Args:
        item_id: Key of the item in the catalog ``items`` mapping
        item: The Image item
        patterns: Regex patterns to use instead of LOGO_PATTERNS

    Returns:
        True if the id or any ``alt`` text matches a logo pattern
    """
    regexes = _LOGO_REGEXES if patterns is None else _compile(patterns)

    candidates = [str(item_id)]
    alt = item.get("alt")
    if isinstance(alt, Mapping):
        candidates.extend(value for value in alt.values() if isinstance(value, str))

    return any(regex.search(text) for regex in regexes for text in candidates)
