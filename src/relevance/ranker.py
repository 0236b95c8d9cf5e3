"""
Ranker - scores a whole collection and returns the filtered, sorted results.

Every document is scored (none skipped), results are sorted by similarity
descending with ties kept in collection order, then filtered by a minimum
similarity threshold.

Scoring is independent per document, so it can run on a thread pool; the
only serialization point is the final sort.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import Document, ScoredDocument
from .scorer import RelevanceScorer
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

DEFAULT_MIN_SIMILARITY = 5.0


@dataclass
class RankingStats:
    """Diagnostic counters for one ranking call"""
    total_scored: int
    nonzero_count: int
    passed_count: int
    min_similarity: float


def rank_with_stats(
    query: str,
    documents: Sequence[Document],
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    scorer: Optional[RelevanceScorer] = None,
    max_workers: Optional[int] = None,
) -> Tuple[List[ScoredDocument], RankingStats]:
    """
    Rank documents against a query and report diagnostic counters.
    
    Args:
        query: Free-text query
        documents: Patent collection (already loaded)
        min_similarity: Results below this similarity are dropped (default: 5.0,
            20.0 is the usual strict setting)
        scorer: Scorer to use (default: RelevanceScorer())
        max_workers: Score on a thread pool of this size
            None or <= 1 = sequential
    
    Returns:
        Tuple of (filtered results sorted by similarity descending, stats)
    
    Raises:
        ValueError: If min_similarity is negative
    """
    if min_similarity < 0:
        raise ValueError(f"min_similarity must be >= 0, got {min_similarity}")
    
    scorer = scorer or RelevanceScorer()
    query_tokens = tokenize(query)
    
    def _score(document: Document) -> ScoredDocument:
        return ScoredDocument(
            document=document,
            similarity=scorer.score_tokens(query_tokens, document),
        )
    
    if max_workers and max_workers > 1 and len(documents) > 1:
        # executor.map yields in input order
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            scored = list(executor.map(_score, documents))
    else:
        scored = [_score(document) for document in documents]
    
    # sorted() is stable: equal similarities keep collection order
    scored = sorted(scored, key=lambda item: item.similarity, reverse=True)
    results = [item for item in scored if item.similarity >= min_similarity]
    
    stats = RankingStats(
        total_scored=len(scored),
        nonzero_count=sum(1 for item in scored if item.similarity > 0),
        passed_count=len(results),
        min_similarity=min_similarity,
    )
    
    logger.info(
        f"Ranked query '{query}' ({len(query_tokens)} tokens): "
        f"{stats.total_scored} scored, {stats.nonzero_count} > 0, "
        f"{stats.passed_count} >= {min_similarity}"
    )
    if results:
        top = [(item.similarity, item.title[:30]) for item in results[:10]]
        logger.debug(f"Top scores: {top}")
    
    return results, stats


def rank(
    query: str,
    documents: Sequence[Document],
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    scorer: Optional[RelevanceScorer] = None,
    max_workers: Optional[int] = None,
) -> List[ScoredDocument]:
    """
    Rank documents against a query.
    
    Example:
        >>> docs = [Document("1", "Battery pack", "", ""), Document("2", "Door hinge", "", "")]
        >>> [r.identifier for r in rank("battery pack", docs)]
        ['1']
    """
    results, _ = rank_with_stats(
        query,
        documents,
        min_similarity=min_similarity,
        scorer=scorer,
        max_workers=max_workers,
    )
    return results
