"""Vector math primitives used by the retrieval ranker."""

import math
from typing import Sequence


def cosine_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Cosine similarity of two equally sized vectors.

    Args:
        vector_a (Sequence[float]): First vector.
        vector_b (Sequence[float]): Second vector.

    Returns:
        float: dot(a, b) / (|a| * |b|) in [-1, 1]. 0.0 when the lengths differ,
            when either vector is empty or when either norm is zero.
    """
    if len(vector_a) != len(vector_b) or not vector_a:
        return 0.0

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for a, b in zip(vector_a, vector_b):
        dot_product += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))
    if not math.isfinite(score):
        return 0.0
    # rounding can push identical vectors just past 1.0
    return max(-1.0, min(1.0, score))
