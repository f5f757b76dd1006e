"""
Boolean-expression metadata filters.

An extension over the flat equality filter: comparators combined into
arbitrary AND/OR trees. Expressions are written as nested mappings::

    {"$and": [
        {"$eq": {"lang": "en"}},
        {"$or": [
            {"$gte": {"year": "2020"}},
            {"$eq": {"pinned": "true"}},
        ]},
    ]}

Metadata values are strings, and ordering operators compare them
lexicographically ("10" < "9"). Store zero-padded values when numeric
order matters.

A comparator whose key is missing from the metadata is false, for every
operator including ``$ne``.
"""

from __future__ import annotations

import operator
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.exceptions import InvalidFilterError


class ComparisonOperator(str, Enum):
    """Comparator operators."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"


class LogicalOperator(str, Enum):
    """Logical combinators."""

    AND = "$and"
    OR = "$or"


_COMPARE: Dict[ComparisonOperator, Callable[[str, str], bool]] = {
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NE: operator.ne,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GTE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LTE: operator.le,
}

_LOGICAL_NAMES = {op.value for op in LogicalOperator}
_COMPARISON_NAMES = {op.value for op in ComparisonOperator}


class Expression(ABC):
    """Abstract base class for expression nodes."""

    @abstractmethod
    def matches(self, metadata: Optional[Mapping[str, str]]) -> bool:
        """
        Evaluate the expression against metadata.

        Args:
            metadata: The embedding's metadata, possibly None

        Returns:
            True if metadata satisfies the expression
        """
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert the expression back to its mapping form."""
        pass

    @property
    def is_empty(self) -> bool:
        # Every expression holds at least one comparator
        return False

    def __and__(self, other: "Expression") -> "LogicalExpression":
        return LogicalExpression(LogicalOperator.AND, [self, other])

    def __or__(self, other: "Expression") -> "LogicalExpression":
        return LogicalExpression(LogicalOperator.OR, [self, other])


class Comparison(Expression):
    """
    One comparator over a single metadata key.

    Example:
        >>> Comparison("year", ComparisonOperator.GTE, "2020").matches({"year": "2021"})
        True
    """

    def __init__(self, key: str, op: ComparisonOperator, value: str):
        self.key = key
        self.op = op
        self.value = value
        self._compare = _COMPARE[op]

    def matches(self, metadata: Optional[Mapping[str, str]]) -> bool:
        if metadata is None or self.key not in metadata:
            return False
        return self._compare(metadata[self.key], self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {self.op.value: {self.key: self.value}}

    def __repr__(self) -> str:
        return f"Comparison({self.key!r} {self.op.value} {self.value!r})"


class LogicalExpression(Expression):
    """AND/OR over two or more child expressions."""

    def __init__(self, op: LogicalOperator, children: List[Expression]):
        self.op = op
        self.children = children

    def matches(self, metadata: Optional[Mapping[str, str]]) -> bool:
        if self.op is LogicalOperator.AND:
            return all(child.matches(metadata) for child in self.children)
        return any(child.matches(metadata) for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        return {self.op.value: [child.to_dict() for child in self.children]}

    def __repr__(self) -> str:
        return f"LogicalExpression({self.op.value}, {self.children!r})"


def parse_expression(spec: Mapping[str, Any]) -> Expression:
    """
    Parse the mapping form of an expression.

    Raises:
        InvalidFilterError: If the mapping is not a well-formed expression
    """
    if not isinstance(spec, Mapping):
        raise InvalidFilterError(
            f"Expression must be a mapping, got {type(spec).__name__}"
        )

    if len(spec) != 1:
        raise InvalidFilterError(
            f"Expression must have exactly one operator, got {sorted(spec)}"
        )

    op_name, operand = next(iter(spec.items()))

    if op_name in _LOGICAL_NAMES:
        op = LogicalOperator(op_name)
        if isinstance(operand, (str, bytes, Mapping)) or not isinstance(operand, (list, tuple)):
            raise InvalidFilterError(f"{op_name} expects a list of expressions")
        if len(operand) < 2:
            raise InvalidFilterError(f"{op_name} needs at least two operands")
        return LogicalExpression(op, [parse_expression(child) for child in operand])

    if op_name in _COMPARISON_NAMES:
        op = ComparisonOperator(op_name)
        if not isinstance(operand, Mapping) or not operand:
            raise InvalidFilterError(f"{op_name} expects a non-empty {{key: value}} mapping")

        comparisons: List[Expression] = []
        for key, value in operand.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise InvalidFilterError(f"{op_name} compares string keys to string values")
            comparisons.append(Comparison(key, op, value))

        # {"$eq": {"a": "1", "b": "2"}} means a == "1" AND b == "2"
        if len(comparisons) == 1:
            return comparisons[0]
        return LogicalExpression(LogicalOperator.AND, comparisons)

    raise InvalidFilterError(f"Unknown filter operator: {op_name!r}")
