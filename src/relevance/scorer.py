"""
Relevance scorer - hand-tuned heuristic for one (query, document) pair.

Pipeline (order matters, constants are fixed):
1. Tokenize query; empty token set → 0
2. Per token: field score (title/abstract/full text, see field_matcher)
3. Token length bonus: ×1.10 for len >= 4, additional ×1.15 for len >= 6
4. Coverage multiplier on the total:
       all tokens matched   ×1.30
       >= 80% matched       ×1.15
       >= 60% matched       ×1.05
       <  40% matched       ×0.70
       otherwise            ×1.00
5. Normalize: total / (token_count × 50) × 100
6. Single-token query: ×0.65
7. Full text length: < 200 chars ×0.90, > 5000 chars ×0.95
8. Proximity bonus (additive, 0-5) if >= 2 tokens matched
9. Round to one decimal, clamp to [0, 100]

This is not BM25/TF-IDF. Changing any constant or the order of steps changes
ranking order.
"""

import math
from typing import Set

from ..models import Document
from .field_matcher import field_score_lowered
from .proximity import proximity_bonus_lowered
from .tokenizer import tokenize


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with halves going up (2.25 → 2.3), unlike Python's banker's rounding"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class RelevanceScorer:
    """
    Scores documents against a query on a 0-100 scale.
    
    Stateless: one instance can be shared between threads.
    """
    
    MAX_POINTS_PER_TOKEN = 50
    
    # (minimum token length, multiplier), applied cumulatively
    LENGTH_BONUSES = ((4, 1.10), (6, 1.15))
    
    # (minimum coverage ratio, multiplier), first match wins; full coverage handled separately
    COVERAGE_MULTIPLIERS = ((0.8, 1.15), (0.6, 1.05), (0.4, 1.0))
    FULL_COVERAGE_MULTIPLIER = 1.30
    LOW_COVERAGE_MULTIPLIER = 0.70
    
    SINGLE_TOKEN_PENALTY = 0.65
    
    SHORT_DOCUMENT_CHARS = 200
    SHORT_DOCUMENT_MULTIPLIER = 0.90
    LONG_DOCUMENT_CHARS = 5000
    LONG_DOCUMENT_MULTIPLIER = 0.95
    
    def score(self, query: str, document: Document) -> float:
        """
        Compute similarity between a free-text query and a document.
        
        Args:
            query: Free-text query
            document: Patent document
        
        Returns:
            Similarity in [0, 100], one decimal place
            
        Example:
            >>> scorer = RelevanceScorer()
            >>> doc = Document("1", "Battery module", "", "")
            >>> scorer.score("battery", doc)
            15.4
        """
        return self.score_tokens(tokenize(query), document)
    
    def score_tokens(self, query_tokens: Set[str], document: Document) -> float:
        """
        Same as score() with an already tokenized query.
        
        Used by the ranker to tokenize the query once per collection.
        """
        if not query_tokens:
            return 0.0
        
        # Lowercased once per document; matching is case-insensitive
        title = (document.title or "").lower()
        abstract = (document.abstract or "").lower()
        full_text = (document.full_text or "").lower()
        
        total_score = 0.0
        matched_count = 0
        
        # Fixed token order: float accumulation must not depend on set iteration order
        for token in sorted(query_tokens):
            token_score, matched = field_score_lowered(token, title, abstract, full_text)
            if not matched:
                continue
            
            for min_length, multiplier in self.LENGTH_BONUSES:
                if len(token) >= min_length:
                    token_score *= multiplier
            
            total_score += token_score
            matched_count += 1
        
        token_count = len(query_tokens)
        total_score *= self._coverage_multiplier(matched_count, token_count)
        
        max_possible = token_count * self.MAX_POINTS_PER_TOKEN
        normalized = (total_score / max_possible) * 100
        
        if token_count == 1:
            normalized *= self.SINGLE_TOKEN_PENALTY
        
        normalized *= self._length_multiplier(len(full_text))
        
        if token_count >= 2 and matched_count >= 2:
            normalized += proximity_bonus_lowered(query_tokens, full_text)
        
        return min(100.0, max(0.0, round_half_up(normalized)))
    
    def _coverage_multiplier(self, matched_count: int, token_count: int) -> float:
        if matched_count == token_count:
            return self.FULL_COVERAGE_MULTIPLIER
        
        ratio = matched_count / token_count
        for min_ratio, multiplier in self.COVERAGE_MULTIPLIERS:
            if ratio >= min_ratio:
                return multiplier
        return self.LOW_COVERAGE_MULTIPLIER
    
    def _length_multiplier(self, length: int) -> float:
        if length < self.SHORT_DOCUMENT_CHARS:
            return self.SHORT_DOCUMENT_MULTIPLIER
        if length > self.LONG_DOCUMENT_CHARS:
            return self.LONG_DOCUMENT_MULTIPLIER
        return 1.0
