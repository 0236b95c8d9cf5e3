"""
Presentation helpers for search results

Similarity bands (used for color coding in the UI):
    >= 80  very_high  green
    >= 60  high       blue
    >= 40  medium     yellow
    <  40  low        red
"""

from typing import List, NamedTuple, Sequence

from .models import ScoredDocument

MAX_DISPLAY_RESULTS = 100
MISSING_IDENTIFIER = "(no application number)"


class SimilarityBand(NamedTuple):
    label: str
    color: str


SIMILARITY_BANDS = (
    (80.0, SimilarityBand("very_high", "#34A853")),
    (60.0, SimilarityBand("high", "#4285F4")),
    (40.0, SimilarityBand("medium", "#FBBC04")),
)
LOW_BAND = SimilarityBand("low", "#EA4335")


def similarity_band(similarity: float) -> SimilarityBand:
    for lower_bound, band in SIMILARITY_BANDS:
        if similarity >= lower_bound:
            return band
    return LOW_BAND


def format_similarity(similarity: float) -> str:
    """
    Examples:
        >>> format_similarity(42)
        '42.0'
        >>> format_similarity(87.25)
        '87.2'
    """
    return f"{similarity:.1f}"


def display_identifier(result: ScoredDocument) -> str:
    return result.identifier or MISSING_IDENTIFIER


def display_slice(results: Sequence[ScoredDocument], limit: int = MAX_DISPLAY_RESULTS) -> List[ScoredDocument]:
    """Cap the number of results shown (ranking itself never truncates)"""
    return list(results[:limit])
