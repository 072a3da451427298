"""
semantic_search/similarity.py

Vector similarity helpers.
"""

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Args:
        a: First vector.
        b: Second vector, same length as ``a``.

    Returns:
        Similarity in [-1, 1]. 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in length.
    """
    left = np.asarray(a, dtype=float)
    right = np.asarray(b, dtype=float)
    if left.shape != right.shape:
        raise ValueError(
            f"Vector dimensions must match: {left.shape[0]} != {right.shape[0]}"
        )

    magnitude = float(np.linalg.norm(left) * np.linalg.norm(right))
    if magnitude == 0.0:
        return 0.0
    return float(np.dot(left, right) / magnitude)
