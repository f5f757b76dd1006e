"""
Similarity engine for embedstore.

Supported Metrics:
    - euclidean: L2 distance (smaller = more similar)
    - cosine: cosine similarity over unit-length stored vectors (larger = more similar)
    - dot: raw dot product (larger = more similar)

Example:
    >>> from embedstore.distance import Distance, precompute, score
    >>> import numpy as np
    >>>
    >>> q = np.array([0.0, 0.0], dtype=np.float32)
    >>> c = np.array([3.0, 4.0], dtype=np.float32)
    >>> score(Distance.EUCLIDEAN, c, q, precompute(Distance.EUCLIDEAN, q))
    5.0
"""

from .metrics import (
    sum_of_squares,
    euclidean,
    cosine,
    cosine_similarity,
    dot_product,
    euclidean_batch,
    cosine_batch,
    dot_product_batch,
    normalize,
)

from .registry import (
    Distance,
    get_distance,
    precompute,
    score,
    score_batch,
    rank_key,
    list_metrics,
)

from .topk import TopKSelector, select_top_k

from .batch import ParallelScorer

__all__ = [
    # Kernels
    "sum_of_squares",
    "euclidean",
    "cosine",
    "cosine_similarity",
    "dot_product",
    "euclidean_batch",
    "cosine_batch",
    "dot_product_batch",
    "normalize",
    # Dispatch
    "Distance",
    "get_distance",
    "precompute",
    "score",
    "score_batch",
    "rank_key",
    "list_metrics",
    # Selection
    "TopKSelector",
    "select_top_k",
    "ParallelScorer",
]
