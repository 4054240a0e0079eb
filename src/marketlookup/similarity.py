from __future__ import annotations

from typing import Sequence


def calculate_similarity(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> float:
    """Jaccard similarity of two token sequences as a percentage in ``[0, 100]``.

    Sequences are compared as sets, so repeated tokens count once.  Either
    side being empty scores ``0.0``.
    """

    if len(tokens_a) == 0 or len(tokens_b) == 0:
        return 0.0

    set_a = set(tokens_a)
    set_b = set(tokens_b)
    smaller, larger = (set_a, set_b) if len(set_a) <= len(set_b) else (set_b, set_a)

    intersection = sum(1 for token in smaller if token in larger)
    union = len(set_a) + len(set_b) - intersection
    return (intersection / union) * 100.0
