"""
Unit tests for flat metadata filters.
"""

import pytest

from embedstore.core.exceptions import InvalidFilterError
from embedstore.query import (
    MATCH_ALL,
    Comparison,
    ComparisonOperator,
    MetadataFilter,
    matches,
    parse_filter,
)


class TestMetadataFilter:

    def test_empty_matches_everything(self):
        assert MATCH_ALL.is_empty
        assert MATCH_ALL.matches(None)
        assert MATCH_ALL.matches({"lang": "en"})

    def test_single_group(self):
        f = MetadataFilter.from_groups([{"lang": "en"}])
        assert f.matches({"lang": "en", "region": "us"})
        assert not f.matches({"lang": "fr"})

    def test_group_is_and(self):
        f = MetadataFilter.from_groups([{"lang": "en", "region": "us"}])
        assert f.matches({"lang": "en", "region": "us"})
        assert not f.matches({"lang": "en", "region": "uk"})
        assert not f.matches({"lang": "en"})

    def test_groups_are_or(self):
        f = MetadataFilter.from_groups([{"lang": "en"}, {"lang": "fr"}])
        assert f.matches({"lang": "en"})
        assert f.matches({"lang": "fr"})
        assert not f.matches({"lang": "de"})

    def test_non_empty_filter_rejects_missing_metadata(self):
        f = MetadataFilter.from_groups([{"lang": "en"}])
        assert not f.matches(None)

    def test_empty_group_matches_any_metadata(self):
        f = MetadataFilter.from_groups([{}])
        assert f.matches({})
        assert f.matches({"lang": "en"})
        assert not f.matches(None)

    def test_exact_string_equality(self):
        f = MetadataFilter.from_groups([{"year": "2020"}])
        assert not f.matches({"year": "2020 "})
        assert not f.matches({"year": "02020"})

    def test_to_list_and_len(self):
        groups = [{"a": "1"}, {"b": "2", "c": "3"}]
        f = MetadataFilter.from_groups(groups)
        assert f.to_list() == groups
        assert len(f) == 2

    def test_from_groups_copies(self):
        groups = [{"lang": "en"}]
        f = MetadataFilter.from_groups(groups)
        groups[0]["lang"] = "fr"
        assert f.matches({"lang": "en"})

    @pytest.mark.parametrize("bad", [
        "lang=en",
        [["lang", "en"]],
        [{"lang": 1}],
        [{1: "en"}],
        42,
    ])
    def test_malformed(self, bad):
        with pytest.raises(InvalidFilterError):
            MetadataFilter.from_groups(bad)


class TestParseFilter:

    def test_none(self):
        assert parse_filter(None) is MATCH_ALL

    def test_empty_list(self):
        assert parse_filter([]).is_empty

    def test_passthrough(self):
        f = MetadataFilter.from_groups([{"lang": "en"}])
        assert parse_filter(f) is f
        expr = Comparison("lang", ComparisonOperator.EQ, "en")
        assert parse_filter(expr) is expr

    def test_list_form(self):
        assert isinstance(parse_filter([{"lang": "en"}]), MetadataFilter)

    def test_mapping_is_expression(self):
        predicate = parse_filter({"$eq": {"lang": "en"}})
        assert not isinstance(predicate, MetadataFilter)
        assert predicate.matches({"lang": "en"})

    def test_bare_mapping_rejected(self):
        """A mapping without an operator key is not a criteria group."""
        with pytest.raises(InvalidFilterError):
            parse_filter({"lang": "en"})

    def test_matches_helper(self):
        assert matches({"lang": "en"}, [{"lang": "en"}])
        assert not matches({"lang": "en"}, [{"lang": "fr"}])
        assert matches(None, None)
