import re
from math import ceil
from typing import Iterable, List, Sequence, Tuple, TypeVar

T = TypeVar("T")


def round_money(amount: float) -> float:
    """Round a currency amount to cents."""
    return round(float(amount), 2)


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """
    Case-insensitive substring test of ``text`` against a keyword set.

    Args:
        text: the text to search in.
        keywords: lowercase keywords; a keyword may contain spaces.

    Returns:
        bool: True if any keyword occurs in the text.
    """
    lowered = (text or "").lower()
    return any(k in lowered for k in keywords)


def contains_word(text: str, words: Iterable[str]) -> bool:
    """Like contains_any, but a word only matches between word boundaries ('her' does not match 'there')."""
    lowered = (text or "").lower()
    return any(re.search(rf"\b{re.escape(w)}\b", lowered) for w in words)


def notes_match(notes: Sequence[str], keywords: Iterable[str]) -> bool:
    """True if any fragrance note contains any of the keywords."""
    keywords = list(keywords)
    return any(contains_any(note, keywords) for note in notes)


def paginate(items: List[T], page: int, limit: int) -> Tuple[List[T], int]:
    """
    Slice ``items`` for a 1-based page.
    Returns (items for page, total count).
    """
    offset = max(page - 1, 0) * limit
    return items[offset : offset + limit], len(items)


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return ceil(total / limit)
