"""
Distance and similarity kernels.

Each kernel takes a candidate vector, the query vector and the per-query
cache attribute produced by the matching ``precompute`` step. Batch
variants take a candidate matrix of shape (n, d) and return shape (n,).

Euclidean kernels return distances (smaller = closer). Cosine and dot
kernels return similarities (larger = closer); the sign flip needed by
the top-k selector lives in ``registry.rank_key``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..utils.normalization import normalize_vector


Vector = NDArray[np.float32]
VectorBatch = NDArray[np.float32]


# =============================================================================
# PER-QUERY PRECOMPUTATION
# =============================================================================

def sum_of_squares(vector: Vector) -> float:
    """
    Sum of squared components, the query-only term of the Euclidean
    expansion ||a-b||^2 = ||a||^2 + ||b||^2 - 2*a·b.
    """
    return float(np.dot(vector, vector))


# =============================================================================
# SINGLE VECTOR KERNELS
# =============================================================================

def euclidean(candidate: Vector, query: Vector, query_sum_squares: float) -> float:
    """
    Euclidean (L2) distance from the expanded form.

    The dot product and the candidate's sum of squares are accumulated
    from the same pair of vectors; the radicand is floored at zero so
    rounding on near-identical vectors can't produce NaN.

    Example:
        >>> q = np.array([0.0, 0.0], dtype=np.float32)
        >>> c = np.array([3.0, 4.0], dtype=np.float32)
        >>> euclidean(c, q, sum_of_squares(q))
        5.0
    """
    cross = np.dot(candidate, query)
    candidate_sum_squares = np.dot(candidate, candidate)
    radicand = query_sum_squares + candidate_sum_squares - 2.0 * cross
    return float(np.sqrt(max(radicand, 0.0)))


def dot_product(candidate: Vector, query: Vector, _cache: float = 0.0) -> float:
    """
    Raw dot product (larger = more similar).

    Example:
        >>> dot_product(np.array([1.0, 2.0, 3.0]), np.array([4.0, 5.0, 6.0]))
        32.0
    """
    return float(np.dot(candidate, query))


def cosine(candidate: Vector, query: Vector, _cache: float = 0.0) -> float:
    """
    Cosine similarity against a stored, already unit-length candidate.

    Cosine collections normalize stored vectors at insert time and the
    query once per search, so the similarity reduces to a dot product.
    """
    return float(np.dot(candidate, query))


def cosine_similarity(a: Vector, b: Vector, eps: float = 1e-8) -> float:
    """
    Direct cosine similarity of two arbitrary vectors.

    Formula: (a · b) / (||a|| * ||b||)

    Returns 0.0 when either vector has (near) zero magnitude.
    """
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator < eps:
        return 0.0
    return float(np.dot(a, b) / denominator)


# =============================================================================
# BATCH KERNELS (QUERY-TO-MATRIX)
# =============================================================================

def euclidean_batch(
    candidates: VectorBatch,
    query: Vector,
    query_sum_squares: float,
) -> NDArray:
    """Euclidean distances from every row of ``candidates`` to ``query``."""
    cross = candidates @ query
    candidate_sum_squares = np.einsum("ij,ij->i", candidates, candidates)
    radicand = query_sum_squares + candidate_sum_squares - 2.0 * cross
    return np.sqrt(np.maximum(radicand, 0.0))


def dot_product_batch(
    candidates: VectorBatch,
    query: Vector,
    _cache: float = 0.0,
) -> NDArray:
    """Dot products of every row of ``candidates`` with ``query``."""
    return candidates @ query


# Stored cosine vectors are unit length, so the batch form is the same
cosine_batch = dot_product_batch


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def normalize(vector: Vector) -> Vector:
    """
    Scale a vector to unit Euclidean norm.

    Near-zero vectors come back unchanged instead of blowing up.
    """
    return normalize_vector(np.asarray(vector, dtype=np.float32))
