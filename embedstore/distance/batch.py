"""
Chunked, parallel candidate scoring.

Scoring is independent per candidate, so large candidate matrices are
split into row chunks scored on a thread pool. Each chunk prunes itself to
its own best k before the results meet in a single ``TopKSelector``.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .registry import Distance, precompute, rank_key, score_batch
from .topk import TopKSelector, candidate_indices


DEFAULT_CHUNK_SIZE = 4096
DEFAULT_PARALLEL_THRESHOLD = 10000


class ParallelScorer:
    """
    Scores a query against a candidate matrix and selects the best k.

    Example:
        >>> scorer = ParallelScorer(Distance.EUCLIDEAN)
        >>> results = scorer.top_k(matrix, query, k=10)  # [(score, row), ...]
    """

    def __init__(
        self,
        metric: Distance,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            metric: Distance metric of the candidates
            chunk_size: Rows scored per task
            parallel_threshold: Candidate count above which a thread pool is used
            max_workers: Pool size (defaults to the CPU count)
        """
        self.metric = metric
        self.chunk_size = max(1, chunk_size)
        self.parallel_threshold = parallel_threshold
        self.max_workers = max_workers or os.cpu_count() or 1

        # Started on the first parallel query, reused until close()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def score_all(self, candidates: NDArray, query: NDArray) -> NDArray:
        """Raw scores for every row, in row order."""
        cache = precompute(self.metric, query)
        return score_batch(self.metric, candidates, query, cache)

    def top_k(
        self,
        candidates: NDArray,
        query: NDArray,
        k: int,
    ) -> List[Tuple[float, int]]:
        """
        Best k rows for the query.

        Returns:
            (raw score, row index) pairs, best first
        """
        n = len(candidates)
        if k == 0 or n == 0:
            return []

        cache = precompute(self.metric, query)
        selector: TopKSelector[Tuple[float, int]] = TopKSelector(k)

        if n <= self.parallel_threshold or self.max_workers == 1:
            self._offer(selector, self._score_chunk(candidates, query, cache, 0, n, k))
        else:
            bounds = [
                (start, min(start + self.chunk_size, n))
                for start in range(0, n, self.chunk_size)
            ]
            executor = self._get_executor()
            futures = [
                executor.submit(self._score_chunk, candidates, query, cache, start, end, k)
                for start, end in bounds
            ]
            for future in futures:
                self._offer(selector, future.result())

        return [(score, row) for _, (score, row) in selector.drain()]

    def _score_chunk(
        self,
        candidates: NDArray,
        query: NDArray,
        cache: float,
        start: int,
        end: int,
        k: int,
    ) -> Tuple[NDArray, NDArray, NDArray]:
        """Score rows [start, end) and keep only the chunk's best k."""
        scores = score_batch(self.metric, candidates[start:end], query, cache)
        keys = rank_key(self.metric, scores)
        local = candidate_indices(keys, k)
        return keys[local], scores[local], local + start

    @staticmethod
    def _offer(
        selector: TopKSelector,
        chunk: Tuple[NDArray, NDArray, NDArray],
    ) -> None:
        keys, scores, rows = chunk
        for key, value, row in zip(keys, scores, rows):
            selector.push(float(key), (float(value), int(row)))

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="embedstore-scorer",
                )
            return self._executor

    def close(self) -> None:
        """Shut down the thread pool. A later parallel query starts a new one."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
