"""
Field matcher - weighted occurrence scoring of one token against one document.

Each field contributes min(count × weight, cap):

    Field       Weight  Cap
    title         8     25
    abstract      4     15
    full text     2     12

Title matches are rare but strong signals, so they get the highest weight and
a low cap (repeating a word in the title does not keep paying off). Full text
is noisy: low weight, slightly higher cap for long relevant documents.

Occurrences are counted non-overlapping, left to right ("aa" occurs once in "aaa").
"""

from typing import NamedTuple, Tuple


class FieldWeight(NamedTuple):
    """Per-occurrence weight and maximum contribution of a field"""
    weight: float
    cap: float


TITLE_WEIGHT = FieldWeight(weight=8, cap=25)
ABSTRACT_WEIGHT = FieldWeight(weight=4, cap=15)
FULL_TEXT_WEIGHT = FieldWeight(weight=2, cap=12)


def count_occurrences(token: str, text: str) -> int:
    """
    Count non-overlapping occurrences of token in text (case-insensitive).
    
    Examples:
        >>> count_occurrences("battery", "Battery pack with battery cells")
        2
        >>> count_occurrences("aa", "aaa")
        1
    """
    if not token or not text:
        return 0
    return text.lower().count(token)


def _weighted(count: int, field: FieldWeight) -> float:
    return min(count * field.weight, field.cap)


def field_score(token: str, title: str, abstract: str, full_text: str) -> Tuple[float, bool]:
    """
    Compute the capped weighted contribution of a token across document fields.
    
    Args:
        token: Lowercase query token
        title: Document title
        abstract: Document abstract
        full_text: Document full text (may be empty)
    
    Returns:
        Tuple of (score, matched_any_field)
        
    Example:
        >>> field_score("battery", "Battery module", "", "battery battery battery")
        (14, True)
    """
    return field_score_lowered(
        token,
        (title or "").lower(),
        (abstract or "").lower(),
        (full_text or "").lower(),
    )


def field_score_lowered(token: str, title: str, abstract: str, full_text: str) -> Tuple[float, bool]:
    """Same as field_score() for fields that are already lowercase"""
    score = 0
    matched = False
    
    for text, field in (
        (title, TITLE_WEIGHT),
        (abstract, ABSTRACT_WEIGHT),
        (full_text, FULL_TEXT_WEIGHT),
    ):
        count = text.count(token) if token else 0
        if count:
            score += _weighted(count, field)
            matched = True
    
    return score, matched
