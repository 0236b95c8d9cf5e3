"""
Proximity estimator - rewards query tokens that occur close together.

For every query token found in the full text, all character offsets are
collected. The smallest distance between occurrences of two different tokens
is mapped to a small additive bonus:

    distance < 50   → 5
    distance < 100  → 3
    distance < 200  → 2
    distance < 500  → 1
    otherwise       → 0
"""

from typing import Dict, Iterable, List, Optional

# (exclusive upper distance bound, bonus), checked in order
PROXIMITY_BUCKETS = (
    (50, 5),
    (100, 3),
    (200, 2),
    (500, 1),
)


def find_positions(token: str, text: str) -> List[int]:
    """
    Return offsets of non-overlapping occurrences of token in text, left to right.
    
    Example:
        >>> find_positions("ab", "ab cab abab")
        [0, 4, 7, 9]
    """
    positions: List[int] = []
    if not token:
        return positions
    
    start = text.find(token)
    while start != -1:
        positions.append(start)
        start = text.find(token, start + len(token))
    
    return positions


def _closest(a: List[int], b: List[int]) -> int:
    """Minimum |x - y| for x in a, y in b (both sorted ascending)"""
    i = j = 0
    best = abs(a[0] - b[0])
    while i < len(a) and j < len(b):
        diff = a[i] - b[j]
        best = min(best, abs(diff))
        if best == 0:
            break
        if diff < 0:
            i += 1
        else:
            j += 1
    return best


def min_pair_distance(positions: Dict[str, List[int]]) -> Optional[int]:
    """
    Smallest distance between occurrences of any two distinct tokens.
    
    Args:
        positions: Map {token: sorted offsets}, every list non-empty
    
    Returns:
        Minimum distance, or None when fewer than 2 tokens are present
    """
    tokens = list(positions)
    if len(tokens) < 2:
        return None
    
    best = None
    for i in range(len(tokens) - 1):
        for j in range(i + 1, len(tokens)):
            distance = _closest(positions[tokens[i]], positions[tokens[j]])
            if best is None or distance < best:
                best = distance
    return best


def proximity_bonus(query_tokens: Iterable[str], text: str) -> int:
    """
    Compute proximity bonus for query tokens in text.
    
    Args:
        query_tokens: Lowercase query tokens
        text: Document full text
    
    Returns:
        Bonus points: one of 0, 1, 2, 3, 5
        
    Example:
        >>> proximity_bonus({"battery", "anode"}, "battery with graphite anode")
        5
    """
    return proximity_bonus_lowered(query_tokens, (text or "").lower())


def proximity_bonus_lowered(query_tokens: Iterable[str], text: str) -> int:
    """Same as proximity_bonus() for text that is already lowercase"""
    if not text:
        return 0
    
    positions = {}
    for token in query_tokens:
        found = find_positions(token, text)
        if found:
            positions[token] = found
    
    distance = min_pair_distance(positions)
    if distance is None:
        return 0
    
    for bound, bonus in PROXIMITY_BUCKETS:
        if distance < bound:
            return bonus
    return 0
