"""
Similarity utilities — cosine similarity and weighted mean-pooling of embeddings.
"""

from typing import List, Optional, Sequence

import numpy as np


def cosine_similarity(v1: List[float], v2: List[float]) -> float:
    """Compute cosine similarity between two vectors."""
    if not v1 or not v2:
        return 0.0
    v1 = np.array(v1)
    v2 = np.array(v2)
    dot_product = np.dot(v1, v2)
    norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
    return float(dot_product / norm_product) if norm_product > 0 else 0.0


def mean_pool(
    vectors: Sequence[List[float]],
    weights: Optional[Sequence[float]] = None,
) -> Optional[List[float]]:
    """
    Weighted mean of vectors, L2-normalised. Returns None for no input or a zero vector.
    """
    if not vectors:
        return None
    matrix = np.array(vectors, dtype=float)
    w = np.ones(len(vectors)) if weights is None else np.array(weights, dtype=float)
    if w.sum() <= 0:
        return None
    pooled = (matrix * w[:, None]).sum(axis=0) / w.sum()
    norm = np.linalg.norm(pooled)
    if norm == 0:
        return None
    return list((pooled / norm).tolist())
