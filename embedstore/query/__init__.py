"""
Metadata filtering for embedstore queries.

Example:
    >>> from embedstore.query import parse_filter
    >>>
    >>> # Flat filter: OR of AND-ed equality groups
    >>> f = parse_filter([{"lang": "en"}, {"lang": "fr"}])
    >>> f.matches({"lang": "fr"})
    True
    >>>
    >>> # Expression tree
    >>> f = parse_filter({"$gte": {"year": "2020"}})
    >>> f.matches({"year": "2019"})
    False
"""

from .expressions import (
    Expression,
    Comparison,
    LogicalExpression,
    ComparisonOperator,
    LogicalOperator,
    parse_expression,
)
from .filters import (
    MetadataFilter,
    FilterLike,
    MATCH_ALL,
    parse_filter,
    matches,
)

__all__ = [
    "Expression",
    "Comparison",
    "LogicalExpression",
    "ComparisonOperator",
    "LogicalOperator",
    "parse_expression",
    "MetadataFilter",
    "FilterLike",
    "MATCH_ALL",
    "parse_filter",
    "matches",
]
