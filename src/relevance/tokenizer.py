"""
Tokenizer for patent relevance scoring.

Tokenization pipeline:
1. Lowercase conversion
2. Extract runs of Hangul syllables (2+ characters)
3. Extract runs of Latin letters (2+ characters)
4. Extract runs of Latin letters and digits (2+ characters)
5. Union everything into one deduplicated set

No stopword removal and no stemming: a query token matches a document as a
plain substring, so "전기" matches inside "전기자동차".
"""

import re
from typing import Set

HANGUL_RUN = re.compile(r'[가-힣]{2,}')
LATIN_RUN = re.compile(r'[a-z]{2,}')
ALPHANUMERIC_RUN = re.compile(r'[a-z0-9]{2,}')

TOKEN_PATTERNS = (HANGUL_RUN, LATIN_RUN, ALPHANUMERIC_RUN)


def tokenize(text: str) -> Set[str]:
    """
    Tokenize text into a set of lowercase tokens of length >= 2.
    
    Args:
        text: Input text (None and empty string are allowed)
        
    Returns:
        Set of unique tokens
        
    Examples:
        >>> sorted(tokenize("전기 자동차 배터리"))
        ['배터리', '자동차', '전기']
        
        >>> sorted(tokenize("Li-ion 2170 cells"))
        ['2170', 'cells', 'ion', 'li']
        
        >>> sorted(tokenize("LFP4 battery"))
        ['battery', 'lfp', 'lfp4']
        
        >>> tokenize("")
        set()
    """
    if not text:
        return set()
    
    normalized = text.lower()
    
    tokens: Set[str] = set()
    for pattern in TOKEN_PATTERNS:
        tokens.update(pattern.findall(normalized))
    
    return tokens
