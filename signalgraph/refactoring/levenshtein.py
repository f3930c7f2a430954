"""Edit distance between signal names."""

from __future__ import annotations

from typing import Optional


def levenshtein(a: str, b: str, max_distance: Optional[int] = None) -> int:
    """Classic Levenshtein distance using two rolling rows.

    With ``max_distance`` the computation stops as soon as a whole row
    exceeds the bound, returning ``max_distance + 1``.
    """
    if len(a) > len(b):
        a, b = b, a
    if not a:
        return _bounded(len(b), max_distance)
    if max_distance is not None and len(b) - len(a) > max_distance:
        return max_distance + 1

    previous = list(range(len(a) + 1))
    for j, char_b in enumerate(b, start=1):
        current = [j] + [0] * len(a)
        for i, char_a in enumerate(a, start=1):
            cost = 0 if char_a == char_b else 1
            current[i] = min(
                previous[i] + 1,
                current[i - 1] + 1,
                previous[i - 1] + cost,
            )
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current
    return _bounded(previous[-1], max_distance)


def _bounded(distance: int, max_distance: Optional[int]) -> int:
    if max_distance is not None and distance > max_distance:
        return max_distance + 1
    return distance


def normalized_levenshtein(a: str, b: str) -> float:
    """Distance divided by the longer length; 0.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return levenshtein(a, b) / longest


def levenshtein_similarity(a: str, b: str) -> float:
    return 1.0 - normalized_levenshtein(a, b)


__all__ = ["levenshtein", "levenshtein_similarity", "normalized_levenshtein"]
