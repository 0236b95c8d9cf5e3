"""
Relevance ranking for patent search.

This module implements a hand-tuned relevance heuristic for ranking a small,
in-memory patent collection against a free-text query.

Components:
- tokenizer: Script-aware token extraction (Hangul, Latin, alphanumeric)
- field_matcher: Per-field weighted occurrence scoring (title, abstract, full text)
- proximity: Bonus for query tokens occurring close together in full text
- scorer: Per-document relevance score in [0, 100]
- ranker: Scores a collection, sorts and filters by minimum similarity

Key simplification: linear scan, no inverted index
- Collections are hundreds to low thousands of documents
- Every query scores every document from scratch
- No cross-call state, so results are deterministic
"""

from .tokenizer import tokenize
from .field_matcher import field_score, count_occurrences
from .proximity import proximity_bonus
from .scorer import RelevanceScorer
from .ranker import rank, rank_with_stats, RankingStats

__all__ = [
    "tokenize",
    "field_score",
    "count_occurrences",
    "proximity_bonus",
    "RelevanceScorer",
    "rank",
    "rank_with_stats",
    "RankingStats",
]
