from functools import lru_cache
from typing import Iterable

MAX_DISTANCE = 3


@lru_cache(maxsize=1024)
def _levenshtein(s1: str, s2: str) -> int:
    if len(s1) == 0:
        return len(s2)
    if len(s2) == 0:
        return len(s1)
    if s1[0] == s2[0]:
        return _levenshtein(s1[1:], s2[1:])
    insert = _levenshtein(s1, s2[1:])
    deleted = _levenshtein(s1[1:], s2)
    change = _levenshtein(s1[1:], s2[1:])
    return 1 + min(insert, deleted, change)


def get_suggestion(word: str, candidates: Iterable[str]) -> str:
    """Closest candidate to `word`, or "" when nothing is within MAX_DISTANCE edits."""
    best = float('inf')
    suggestion = ""
    for candidate in candidates:
        d = _levenshtein(word.lower(), candidate.lower())
        if d < best:
            best = d
            suggestion = candidate
    return suggestion if best <= MAX_DISTANCE else ""
