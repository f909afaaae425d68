"""String similarity for person names.

The score combines a normalized Levenshtein ratio with a bonus for whole
words shared by both strings, capped at 1.0. Identical normalized strings
always score exactly 1.0.

Example:
    >>> from memberlink.matching import similarity
    >>> similarity("John Smith", "john  SMITH!")
    1.0
    >>> round(similarity("Smyth", "Smith"), 2)
    0.8
"""

import re

from rapidfuzz.distance import Levenshtein

WORD_BONUS_WEIGHT = 0.2

_DISALLOWED_PATTERN = re.compile(r'[^a-z0-9\s]')
_WHITESPACE_PATTERN = re.compile(r'\s+')


def normalize_name(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace and trim."""
    lowered = (text or "").lower()
    lowered = _DISALLOWED_PATTERN.sub("", lowered)
    return _WHITESPACE_PATTERN.sub(" ", lowered).strip()


def similarity(a: str, b: str) -> float:
    """Return a similarity score between 0.0 and 1.0 for two names.

    Args:
        a: First name string.
        b: Second name string.

    Returns:
        1.0 when the normalized strings are identical (including both
        empty), otherwise ``min(base + bonus, 1.0)`` where base is
        ``(max_len - distance) / max_len`` and bonus is the share of words of
        ``a`` found verbatim in ``b``, scaled by 0.2.
    """
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)

    if norm_a == norm_b:
        return 1.0

    max_length = max(len(norm_a), len(norm_b))
    if max_length == 0:
        return 1.0

    distance = Levenshtein.distance(norm_a, norm_b)
    base = (max_length - distance) / max_length

    words_a = norm_a.split(" ")
    words_b = norm_b.split(" ")
    common_words = sum(1 for word in words_a if word in words_b)
    total_words = max(len(words_a), len(words_b))
    bonus = (common_words / total_words) * WORD_BONUS_WEIGHT if total_words else 0.0

    return min(base + bonus, 1.0)
