"""Content scanners: decide whether a piece of text mentions a knowledge item."""
from __future__ import annotations

import re
from typing import Protocol


class ContentScanner(Protocol):
    def contains_item(self, content: str, item: str) -> bool:
        ...


class SubstringScanner:
    """Case-insensitive substring containment."""

    def contains_item(self, content: str, item: str) -> bool:
        return item.lower() in content.lower()


class WordBoundaryScanner:
    """Case-insensitive match on whole words, so "Ash" does not hit "Ashford".

    Whitespace inside the item matches any run of whitespace in the content.
    """

    def contains_item(self, content: str, item: str) -> bool:
        words = item.split()
        if not words:
            return False
        pattern = r"(?<!\w)" + r"\s+".join(re.escape(w) for w in words) + r"(?!\w)"
        return re.search(pattern, content, re.IGNORECASE) is not None


_SCANNERS = {
    "substring": SubstringScanner,
    "word": WordBoundaryScanner,
}


def get_scanner(name: str = "substring") -> ContentScanner:
    try:
        return _SCANNERS[name]()
    except KeyError:
        raise ValueError(f"Unknown content scanner: {name}") from None
