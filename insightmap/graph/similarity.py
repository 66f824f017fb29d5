"""
Cosine similarity between embedding vectors.

Defined-total: degenerate inputs (length mismatch, empty or all-zero
vectors) score 0.0 instead of raising. The raw cosine lies in [-1, 1];
entity embeddings are normalized in practice, so scores cluster in [0, 1]
and the resolution threshold is compared against that range.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """
    Compute the cosine similarity of two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Cosine similarity, or 0.0 for mismatched lengths, empty or zero vectors

    Examples:
        >>> cosine_similarity([1.0, 0.0], [4.0, 3.0])
        0.8
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])
        0.0
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)

    if va.ndim != 1 or va.shape != vb.shape or va.size == 0:
        return 0.0

    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0:
        return 0.0

    return float(np.dot(va, vb)) / denominator
