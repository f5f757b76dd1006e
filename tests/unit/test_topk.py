"""
Unit tests for top-k selection and parallel scoring.
"""

import pytest
import numpy as np
from numpy.testing import assert_array_almost_equal

from embedstore.distance import (
    Distance,
    ParallelScorer,
    TopKSelector,
    normalize,
    select_top_k,
)
from embedstore.distance.topk import candidate_indices


class TestTopKSelector:

    def test_keeps_smallest(self):
        selector = TopKSelector(2)
        for key, item in [(3.0, "c"), (1.0, "a"), (2.0, "b"), (5.0, "e")]:
            selector.push(key, item)
        assert selector.drain() == [(1.0, "a"), (2.0, "b")]

    def test_fewer_than_k(self):
        selector = TopKSelector(10)
        selector.push(2.0, "x")
        selector.push(-1.0, "y")
        assert selector.drain() == [(-1.0, "y"), (2.0, "x")]

    def test_zero_k(self):
        selector = TopKSelector(0)
        assert selector.push(1.0, "a") is False
        assert selector.drain() == []

    def test_negative_k(self):
        with pytest.raises(ValueError):
            TopKSelector(-1)

    def test_push_reports_membership(self):
        selector = TopKSelector(1)
        assert selector.push(2.0, "a") is True
        assert selector.push(3.0, "b") is False
        assert selector.push(1.0, "c") is True
        assert selector.worst == 1.0

    def test_equal_key_does_not_replace(self):
        selector = TopKSelector(1)
        selector.push(1.0, "first")
        assert selector.push(1.0, "second") is False
        assert selector.drain() == [(1.0, "first")]

    def test_items_never_compared(self):
        """Equal keys with unorderable items must not raise."""
        selector = TopKSelector(3)
        for _ in range(3):
            selector.push(1.0, {"unorderable": True})
        assert len(selector) == 3

    def test_drain_empties(self):
        selector = TopKSelector(2)
        selector.push(1.0, "a")
        selector.drain()
        assert len(selector) == 0
        assert selector.worst is None

    def test_push_many(self):
        selector = TopKSelector(2)
        selector.push_many(np.array([4.0, 1.0, 3.0]), ["d", "a", "c"])
        assert [item for _, item in selector.drain()] == ["a", "c"]


class TestSelectTopK:

    def test_matches_argsort(self, rng):
        keys = rng.standard_normal(1000)
        result = select_top_k(keys, 10)
        expected = np.argsort(keys)[:10]
        assert [i for _, i in result] == list(expected)

    def test_k_larger_than_input(self):
        result = select_top_k(np.array([2.0, 1.0]), 5)
        assert [i for _, i in result] == [1, 0]

    def test_empty(self):
        assert select_top_k(np.array([]), 3) == []
        assert select_top_k(np.array([1.0]), 0) == []

    def test_candidate_indices(self):
        keys = np.array([5.0, 1.0, 4.0, 0.0, 3.0])
        assert sorted(candidate_indices(keys, 2).tolist()) == [1, 3]
        assert len(candidate_indices(keys, 0)) == 0
        assert sorted(candidate_indices(keys, 10).tolist()) == [0, 1, 2, 3, 4]


class TestParallelScorer:

    @pytest.mark.parametrize("metric", list(Distance))
    def test_parallel_matches_serial(self, metric, rng):
        matrix = rng.standard_normal((2000, 8)).astype(np.float32)
        if metric.normalizes_on_insert:
            matrix = np.stack([normalize(v) for v in matrix])
        query = rng.standard_normal(8).astype(np.float32)

        serial = ParallelScorer(metric, parallel_threshold=10**9)
        parallel = ParallelScorer(
            metric, chunk_size=128, parallel_threshold=100, max_workers=4
        )

        expected = serial.top_k(matrix, query, 25)
        actual = parallel.top_k(matrix, query, 25)

        assert [row for _, row in actual] == [row for _, row in expected]
        assert_array_almost_equal(
            [s for s, _ in actual], [s for s, _ in expected], decimal=5
        )

    def test_euclidean_smallest_first(self):
        matrix = np.array([[0.0, 0.0], [3.0, 4.0], [1.0, 0.0]], dtype=np.float32)
        query = np.zeros(2, dtype=np.float32)
        result = ParallelScorer(Distance.EUCLIDEAN).top_k(matrix, query, 3)
        assert [row for _, row in result] == [0, 2, 1]
        assert_array_almost_equal([s for s, _ in result], [0.0, 1.0, 5.0])

    def test_dot_largest_first(self):
        matrix = np.array([[1.0, 0.0], [5.0, 0.0], [-2.0, 0.0]], dtype=np.float32)
        query = np.array([1.0, 0.0], dtype=np.float32)
        result = ParallelScorer(Distance.DOT).top_k(matrix, query, 2)
        assert [row for _, row in result] == [1, 0]

    def test_empty_and_zero_k(self):
        scorer = ParallelScorer(Distance.DOT)
        query = np.ones(2, dtype=np.float32)
        assert scorer.top_k(np.zeros((0, 2), dtype=np.float32), query, 3) == []
        assert scorer.top_k(np.ones((4, 2), dtype=np.float32), query, 0) == []

    def test_score_all(self):
        matrix = np.array([[0.0, 0.0], [3.0, 4.0]], dtype=np.float32)
        scores = ParallelScorer(Distance.EUCLIDEAN).score_all(
            matrix, np.zeros(2, dtype=np.float32)
        )
        assert_array_almost_equal(scores, [0.0, 5.0])

    def test_pool_reused_across_queries(self, rng):
        matrix = rng.standard_normal((500, 4)).astype(np.float32)
        query = rng.standard_normal(4).astype(np.float32)
        scorer = ParallelScorer(
            Distance.EUCLIDEAN, chunk_size=64, parallel_threshold=100, max_workers=4
        )

        first = scorer.top_k(matrix, query, 5)
        executor = scorer._executor
        assert executor is not None

        assert scorer.top_k(matrix, query, 5) == first
        assert scorer._executor is executor

        scorer.close()
        assert scorer._executor is None

    def test_serial_queries_start_no_pool(self, rng):
        matrix = rng.standard_normal((50, 4)).astype(np.float32)
        scorer = ParallelScorer(Distance.DOT, parallel_threshold=100, max_workers=4)
        scorer.top_k(matrix, matrix[0], 3)
        assert scorer._executor is None

    def test_query_after_close(self, rng):
        matrix = rng.standard_normal((500, 4)).astype(np.float32)
        query = rng.standard_normal(4).astype(np.float32)
        scorer = ParallelScorer(
            Distance.EUCLIDEAN, chunk_size=64, parallel_threshold=100, max_workers=4
        )
        expected = scorer.top_k(matrix, query, 5)

        scorer.close()
        scorer.close()
        assert scorer.top_k(matrix, query, 5) == expected
        scorer.close()
