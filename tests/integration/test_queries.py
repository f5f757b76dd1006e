"""
End-to-end query tests through the public Store API.
"""

import math

import pytest
import numpy as np
from numpy.testing import assert_almost_equal

from embedstore import Store, parse_expression


@pytest.fixture
def store():
    store = Store()
    yield store
    store.close()


class TestSimilarityScenarios:

    def test_euclidean(self, store):
        docs = store.create_collection("docs", dimension=3, distance="euclidean")
        docs.insert("a", [1, 0, 0])
        docs.insert("b", [0, 1, 0])

        top = docs.query_similarity([1, 0, 0], k=1)
        assert [r.id for r in top] == ["a"]
        assert_almost_equal(top[0].score, 0.0)

        both = docs.query_similarity([1, 0, 0], k=2)
        assert [r.id for r in both] == ["a", "b"]
        assert_almost_equal(both[1].score, math.sqrt(2), decimal=6)

    def test_cosine(self, store):
        angles = store.create_collection("angles", dimension=2, distance="cosine")
        angles.insert("x", [3, 4])

        assert_almost_equal(angles.get_by_id("x").vector, [0.6, 0.8])
        assert_almost_equal(angles.query_similarity([1, 0], k=1)[0].score, 0.6, decimal=6)

    def test_metadata_filters(self, store):
        docs = store.create_collection("docs", dimension=2)
        docs.insert("first", [1, 0], {"lang": "en"})
        docs.insert("second", [0, 1], {"lang": "fr"})

        def ids(filter):
            return [e.id for e in docs.query_by_filter(filter, k=None)]

        assert ids([{"lang": "en"}]) == ["first"]
        assert ids([{"lang": "en"}, {"lang": "fr"}]) == ["first", "second"]
        assert ids([{"lang": "en", "region": "us"}]) == []


class TestMixedWorkload:

    @pytest.fixture
    def articles(self, store):
        rng = np.random.default_rng(99)
        articles = store.create_collection("articles", dimension=12, distance="dot")
        for i in range(120):
            articles.insert(
                f"art{i:03d}",
                rng.standard_normal(12),
                {
                    "lang": ["en", "fr", "de"][i % 3],
                    "year": str(2015 + i % 10),
                },
            )
        return articles

    def test_filtered_similarity_is_subset_ranking(self, articles):
        query = np.linspace(-1, 1, 12)
        english = [{"lang": "en"}]

        filtered = articles.query_similarity(query, k=10, filter=english)
        candidates = articles.query_by_filter(english, k=None)
        expected = sorted(candidates, key=lambda e: -float(np.dot(e.vector, query)))[:10]

        assert [r.id for r in filtered] == [e.id for e in expected]

    def test_expression_filter(self, articles):
        recent_french = parse_expression({"$and": [
            {"$eq": {"lang": "fr"}},
            {"$gte": {"year": "2020"}},
        ]})
        matching = articles.query_by_filter(recent_french, k=None)

        assert matching
        for e in matching:
            assert e.metadata["lang"] == "fr"
            assert e.metadata["year"] >= "2020"

    def test_delete_by_filter_agrees_with_query(self, articles):
        filter = [{"lang": "de", "year": "2016"}, {"year": "2019"}]
        expected = {e.id for e in articles.query_by_filter(filter, k=None)}

        removed = articles.delete_by_filter(filter)

        assert removed == len(expected)
        assert expected.isdisjoint(articles.list_ids())
        assert len(articles) == 120 - removed

    def test_info_tracks_count(self, store, articles):
        articles.delete_by_id("art000")
        info = store.collection_info("articles")
        assert info.embedding_count == 119
        assert info.distance.value == "dot"
