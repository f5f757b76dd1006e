"""
Unit tests for distance metrics.
"""

import pytest
import numpy as np
from numpy.testing import assert_almost_equal, assert_array_almost_equal
from scipy.spatial import distance as scipy_distance

from embedstore.core.exceptions import ValidationError
from embedstore.distance import (
    # Kernels
    sum_of_squares,
    euclidean,
    cosine,
    cosine_similarity,
    dot_product,
    euclidean_batch,
    cosine_batch,
    dot_product_batch,
    normalize,
    # Registry
    Distance,
    get_distance,
    precompute,
    score,
    score_batch,
    rank_key,
    list_metrics,
)


class TestEuclideanDistance:
    """Tests for Euclidean distance."""

    def test_zero_distance(self):
        """Same vectors should have zero distance."""
        a = np.array([1.0, 2.0, 3.0], dtype=np.float32)
        assert_almost_equal(euclidean(a, a, sum_of_squares(a)), 0.0)

    def test_known_distance(self):
        """Test with known distance (3-4-5 triangle)."""
        q = np.array([0.0, 0.0], dtype=np.float32)
        c = np.array([3.0, 4.0], dtype=np.float32)
        assert_almost_equal(euclidean(c, q, sum_of_squares(q)), 5.0)

    def test_matches_scipy(self, rng):
        a = rng.standard_normal(32).astype(np.float32)
        b = rng.standard_normal(32).astype(np.float32)
        assert_almost_equal(
            euclidean(a, b, sum_of_squares(b)),
            scipy_distance.euclidean(a, b),
            decimal=4,
        )

    def test_never_nan_for_near_identical(self):
        """Rounding in the expanded form must not yield sqrt of a negative."""
        a = np.full(64, 0.1, dtype=np.float32)
        b = a.copy()
        b[0] = np.nextafter(b[0], np.float32(1.0))
        result = euclidean(a, b, sum_of_squares(b))
        assert not np.isnan(result)
        assert result >= 0.0

    def test_batch_matches_single(self, random_vectors, random_vector):
        cache = sum_of_squares(random_vector)
        expected = [euclidean(c, random_vector, cache) for c in random_vectors]
        assert_array_almost_equal(
            euclidean_batch(random_vectors, random_vector, cache), expected, decimal=4
        )

    def test_batch_is_non_negative(self, random_vectors):
        query = random_vectors[0]
        distances = euclidean_batch(random_vectors, query, sum_of_squares(query))
        assert (distances >= 0).all()
        assert distances[0] < 0.01


class TestCosineSimilarity:
    """Tests for cosine similarity."""

    def test_identical_vectors(self):
        a = np.array([1.0, 2.0, 3.0])
        assert_almost_equal(cosine_similarity(a, a), 1.0)

    def test_orthogonal_vectors(self):
        a = np.array([1.0, 0.0])
        b = np.array([0.0, 1.0])
        assert_almost_equal(cosine_similarity(a, b), 0.0)

    def test_zero_vector(self):
        a = np.zeros(3)
        b = np.array([1.0, 2.0, 3.0])
        assert cosine_similarity(a, b) == 0.0

    def test_normalized_dot_equals_cosine(self, rng):
        """Dot product of two unit vectors is their cosine similarity."""
        a = rng.standard_normal(24).astype(np.float32)
        b = rng.standard_normal(24).astype(np.float32)
        assert_almost_equal(
            cosine(normalize(a), normalize(b)), cosine_similarity(a, b), decimal=5
        )

    def test_matches_scipy(self, rng):
        a = rng.standard_normal(24).astype(np.float32)
        b = rng.standard_normal(24).astype(np.float32)
        # scipy returns the cosine distance, 1 - similarity
        assert_almost_equal(
            cosine(normalize(a), normalize(b)),
            1.0 - scipy_distance.cosine(a, b),
            decimal=5,
        )

    def test_batch_matches_single(self, random_vectors, random_vector):
        stored = np.stack([normalize(v) for v in random_vectors])
        expected = [cosine(c, random_vector) for c in stored]
        assert_array_almost_equal(
            cosine_batch(stored, random_vector), expected, decimal=4
        )


class TestDotProduct:

    def test_known_value(self):
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([4.0, 5.0, 6.0])
        assert dot_product(a, b) == 32.0

    def test_batch(self):
        matrix = np.array([[1.0, 0.0], [0.0, 2.0], [1.0, 1.0]], dtype=np.float32)
        query = np.array([3.0, 4.0], dtype=np.float32)
        assert_array_almost_equal(dot_product_batch(matrix, query), [3.0, 8.0, 7.0])


class TestNormalize:

    def test_unit_length(self):
        v = normalize(np.array([3.0, 4.0]))
        assert_array_almost_equal(v, [0.6, 0.8])
        assert_almost_equal(np.linalg.norm(v), 1.0)

    def test_zero_vector_unchanged(self):
        v = normalize(np.zeros(4))
        assert_array_almost_equal(v, np.zeros(4))
        assert not np.isnan(v).any()

    def test_does_not_modify_input(self):
        original = np.array([3.0, 4.0], dtype=np.float32)
        normalize(original)
        assert_array_almost_equal(original, [3.0, 4.0])


class TestRegistry:
    """Tests for metric resolution and dispatch."""

    def test_list_metrics(self):
        assert sorted(list_metrics()) == ["cosine", "dot", "euclidean"]

    @pytest.mark.parametrize("name,expected", [
        ("euclidean", Distance.EUCLIDEAN),
        ("COSINE", Distance.COSINE),
        ("dot", Distance.DOT),
        ("l2", Distance.EUCLIDEAN),
        ("dot_product", Distance.DOT),
        (Distance.COSINE, Distance.COSINE),
    ])
    def test_get_distance(self, name, expected):
        assert get_distance(name) is expected

    def test_unknown_metric(self):
        with pytest.raises(ValidationError):
            get_distance("manhattan")

    def test_non_string_metric(self):
        with pytest.raises(ValidationError):
            get_distance(3)

    def test_properties(self):
        assert not Distance.EUCLIDEAN.is_similarity
        assert Distance.COSINE.is_similarity
        assert Distance.DOT.is_similarity
        assert Distance.COSINE.normalizes_on_insert
        assert not Distance.DOT.normalizes_on_insert

    def test_precompute(self):
        query = np.array([1.0, 2.0], dtype=np.float32)
        assert_almost_equal(precompute(Distance.EUCLIDEAN, query), 5.0)
        assert precompute(Distance.DOT, query) == 0.0

    def test_score_dispatch(self):
        query = np.array([0.0, 0.0], dtype=np.float32)
        candidate = np.array([3.0, 4.0], dtype=np.float32)
        cache = precompute(Distance.EUCLIDEAN, query)
        assert_almost_equal(score(Distance.EUCLIDEAN, candidate, query, cache), 5.0)
        assert score(Distance.DOT, candidate, query, 0.0) == 0.0

    def test_score_batch_empty(self):
        empty = np.zeros((0, 3), dtype=np.float32)
        query = np.ones(3, dtype=np.float32)
        for metric in Distance:
            assert len(score_batch(metric, empty, query, 0.0)) == 0

    def test_rank_key_orders_best_first(self):
        assert rank_key(Distance.EUCLIDEAN, 0.5) < rank_key(Distance.EUCLIDEAN, 2.0)
        assert rank_key(Distance.COSINE, 0.9) < rank_key(Distance.COSINE, 0.1)
        assert rank_key(Distance.DOT, 10.0) < rank_key(Distance.DOT, -1.0)

    def test_rank_key_on_arrays(self):
        scores = np.array([1.0, -2.0])
        assert_array_almost_equal(rank_key(Distance.DOT, scores), [-1.0, 2.0])
        assert_array_almost_equal(rank_key(Distance.EUCLIDEAN, scores), scores)
