"""
Distance metric definitions and dispatch.

The metric set is closed: ``Distance`` has exactly three members, and
every per-metric decision is a single branch over them here.

Sign convention: the top-k selector always treats a *smaller* rank key
as better. ``rank_key`` maps a metric's raw score onto that scale
(distances unchanged, similarities negated). Results still report the
raw score.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

import numpy as np
from numpy.typing import NDArray

from .metrics import (
    sum_of_squares,
    euclidean,
    cosine,
    dot_product,
    euclidean_batch,
    cosine_batch,
    dot_product_batch,
)
from ..core.exceptions import ValidationError


class Distance(str, Enum):
    """Distance metric of a collection."""

    EUCLIDEAN = "euclidean"
    COSINE = "cosine"
    DOT = "dot"

    def __str__(self) -> str:
        return self.value

    @property
    def is_similarity(self) -> bool:
        """True if larger scores mean closer vectors."""
        return self is not Distance.EUCLIDEAN

    @property
    def normalizes_on_insert(self) -> bool:
        """True if stored vectors are scaled to unit length."""
        return self is Distance.COSINE


_ALIASES = {
    "l2": Distance.EUCLIDEAN,
    "dotproduct": Distance.DOT,
    "dot_product": Distance.DOT,
}


def get_distance(metric: Union[str, Distance]) -> Distance:
    """
    Resolve a metric name (or Distance) to a Distance member.

    Raises:
        ValidationError: If the metric is unknown
    """
    if isinstance(metric, Distance):
        return metric

    if not isinstance(metric, str):
        raise ValidationError(f"Unknown metric: {metric!r}")

    key = metric.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]

    try:
        return Distance(key)
    except ValueError:
        valid = ", ".join(d.value for d in Distance)
        raise ValidationError(f"Unknown metric: {metric!r} (expected one of {valid})")


def precompute(metric: Distance, query: NDArray) -> float:
    """
    Compute the cache attribute for one query.

    Euclidean caches the query's sum of squares; cosine and dot have
    nothing worth caching and return 0.0.
    """
    if metric is Distance.EUCLIDEAN:
        return sum_of_squares(query)
    return 0.0


def score(metric: Distance, candidate: NDArray, query: NDArray, cache: float) -> float:
    """Score one stored vector against the query."""
    if metric is Distance.EUCLIDEAN:
        return euclidean(candidate, query, cache)
    if metric is Distance.COSINE:
        return cosine(candidate, query, cache)
    return dot_product(candidate, query, cache)


def score_batch(
    metric: Distance,
    candidates: NDArray,
    query: NDArray,
    cache: float,
) -> NDArray:
    """Score every row of a candidate matrix against the query."""
    if len(candidates) == 0:
        return np.zeros(0, dtype=np.float32)
    if metric is Distance.EUCLIDEAN:
        return euclidean_batch(candidates, query, cache)
    if metric is Distance.COSINE:
        return cosine_batch(candidates, query, cache)
    return dot_product_batch(candidates, query, cache)


def rank_key(metric: Distance, value: float) -> float:
    """Map a raw score onto the smaller-is-better scale."""
    return -value if metric.is_similarity else value


def list_metrics() -> list:
    """Names of the supported metrics."""
    return [d.value for d in Distance]
