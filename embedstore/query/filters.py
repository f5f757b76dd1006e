"""
Metadata filtering.

A filter is an ordered list of criteria groups::

    [{"lang": "en", "region": "us"}, {"lang": "fr"}]

Groups are OR-ed together; the key/value pairs inside one group are
AND-ed, and every comparison is exact string equality. The filter above
matches English documents from the US, plus every French document.

An empty filter matches everything. A non-empty filter never matches an
embedding without metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from ..core.exceptions import InvalidFilterError
from .expressions import Expression, parse_expression


@dataclass(frozen=True)
class MetadataFilter:
    """Flat OR-of-AND equality filter."""

    groups: Tuple[Mapping[str, str], ...] = ()

    @classmethod
    def from_groups(
        cls,
        groups: Optional[Sequence[Mapping[str, str]]],
    ) -> "MetadataFilter":
        """
        Build a filter from a sequence of criteria mappings.

        Raises:
            InvalidFilterError: If groups is not a list of str -> str mappings
        """
        if groups is None:
            return cls()

        if isinstance(groups, (str, bytes)) or not isinstance(groups, Sequence):
            raise InvalidFilterError(
                f"Filter must be a list of criteria, got {type(groups).__name__}"
            )

        validated = []
        for position, group in enumerate(groups):
            if not isinstance(group, Mapping):
                raise InvalidFilterError(
                    f"Filter criteria #{position} must be a mapping, "
                    f"got {type(group).__name__}"
                )
            for key, value in group.items():
                if not isinstance(key, str) or not isinstance(value, str):
                    raise InvalidFilterError(
                        f"Filter criteria #{position} must map strings to strings"
                    )
            validated.append(dict(group))

        return cls(tuple(validated))

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def matches(self, metadata: Optional[Mapping[str, str]]) -> bool:
        """Check an embedding's metadata against the filter."""
        if not self.groups:
            return True

        if metadata is None:
            return False

        for criteria in self.groups:
            if all(
                key in metadata and metadata[key] == expected
                for key, expected in criteria.items()
            ):
                return True

        return False

    def to_list(self) -> list:
        return [dict(group) for group in self.groups]

    def __len__(self) -> int:
        return len(self.groups)


FilterLike = Union[
    None,
    MetadataFilter,
    Expression,
    Sequence[Mapping[str, str]],
    Dict[str, Any],
]

MATCH_ALL = MetadataFilter()


def parse_filter(spec: FilterLike) -> Union[MetadataFilter, Expression]:
    """
    Normalize any accepted filter form.

    Accepted forms:
        - None: matches everything
        - a MetadataFilter or Expression: returned as-is
        - a list of criteria mappings: flat OR-of-AND filter
        - a mapping with a single ``$``-operator key: expression tree

    Raises:
        InvalidFilterError: If the filter is malformed
    """
    if spec is None:
        return MATCH_ALL

    if isinstance(spec, (MetadataFilter, Expression)):
        return spec

    if isinstance(spec, Mapping):
        return parse_expression(spec)

    return MetadataFilter.from_groups(spec)


def matches(metadata: Optional[Mapping[str, str]], spec: FilterLike) -> bool:
    """Convenience wrapper: parse ``spec`` and test ``metadata`` against it."""
    return parse_filter(spec).matches(metadata)
