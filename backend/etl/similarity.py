"""
similarity.py — Normalized edit-distance similarity for program titles.

similarity(a, b) = 1 - DamerauLevenshtein(a, b) / max(len(a), len(b))
1.0 means identical, 0.0 means nothing in common. Transpositions count as a
single edit, so "지원사업" vs "지원업사" is one edit apart.
"""

from rapidfuzz.distance import DamerauLevenshtein


def title_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1]. Two empty titles are identical."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return DamerauLevenshtein.normalized_similarity(a, b)


def length_ratio(a: str, b: str) -> float:
    """
    min(len) / max(len): an upper bound on title_similarity, so a pair whose
    ratio is below the threshold can be skipped without computing distance.
    """
    la, lb = len(a), len(b)
    if la == 0 or lb == 0:
        return 1.0 if la == lb else 0.0
    return min(la, lb) / max(la, lb)
