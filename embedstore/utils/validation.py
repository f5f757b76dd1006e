"""
Input validation utilities.

These checks reject caller errors before a request reaches the store.
"""

from typing import Any, Dict, Optional

import numpy as np

from ..core.exceptions import ValidationError


MAX_ID_LENGTH = 256
MAX_NAME_LENGTH = 256
MAX_METADATA_KEYS = 100
MAX_METADATA_VALUE_LENGTH = 65536
MAX_DIMENSION = 65536


def validate_id(id: str) -> str:
    """
    Validate an embedding id.

    Args:
        id: The id to validate

    Returns:
        The validated id

    Raises:
        ValidationError: If id is not a non-empty string
    """
    if not isinstance(id, str):
        raise ValidationError(f"ID must be a string, got {type(id).__name__}")

    if not id:
        raise ValidationError("ID cannot be empty")

    if len(id) > MAX_ID_LENGTH:
        raise ValidationError(
            f"ID too long: {len(id)} characters (max {MAX_ID_LENGTH})"
        )

    return id


def validate_name(name: str) -> str:
    """Validate a collection name."""
    if not isinstance(name, str):
        raise ValidationError(
            f"Collection name must be a string, got {type(name).__name__}"
        )

    if not name:
        raise ValidationError("Collection name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Collection name too long: {len(name)} characters (max {MAX_NAME_LENGTH})"
        )

    return name


def validate_metadata(
    metadata: Optional[Dict[str, str]],
) -> Optional[Dict[str, str]]:
    """
    Validate a metadata mapping.

    Metadata is optional; when present it maps string keys to string
    values. An empty mapping is kept as-is (it is still "metadata").

    Returns:
        A copy of the metadata, or None

    Raises:
        ValidationError: If metadata is not a str -> str mapping
    """
    if metadata is None:
        return None

    if not isinstance(metadata, dict):
        raise ValidationError(
            f"Metadata must be a dictionary, got {type(metadata).__name__}"
        )

    if len(metadata) > MAX_METADATA_KEYS:
        raise ValidationError(
            f"Too many metadata keys: {len(metadata)} (max {MAX_METADATA_KEYS})"
        )

    validated = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise ValidationError(
                f"Metadata key must be string, got {type(key).__name__}"
            )

        if not isinstance(value, str):
            raise ValidationError(
                f"Metadata value for '{key}' must be string, got {type(value).__name__}"
            )

        if len(value) > MAX_METADATA_VALUE_LENGTH:
            raise ValidationError(
                f"Metadata value for '{key}' too long: "
                f"{len(value)} chars (max {MAX_METADATA_VALUE_LENGTH})"
            )

        validated[key] = value

    return validated


def validate_dimension(dimension: int, max_dim: int = MAX_DIMENSION) -> int:
    """
    Validate a collection dimension.

    Raises:
        ValidationError: If dimension is not a positive integer
    """
    if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)):
        raise ValidationError(
            f"Dimension must be an integer, got {type(dimension).__name__}"
        )

    if dimension < 1:
        raise ValidationError(f"Dimension must be >= 1, got {dimension}")

    if dimension > max_dim:
        raise ValidationError(
            f"Dimension too large: {dimension} (max {max_dim})"
        )

    return int(dimension)


def validate_k(k: Optional[int]) -> Optional[int]:
    """
    Validate k (number of results). None means unbounded; zero is allowed
    and yields an empty result.
    """
    if k is None:
        return None

    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise ValidationError(f"k must be an integer, got {type(k).__name__}")

    if k < 0:
        raise ValidationError(f"k must be non-negative, got {k}")

    return int(k)


def validate_vector(vector: Any) -> np.ndarray:
    """
    Convert a vector to a 1-D float32 array.

    Length is not checked here; the owning collection compares it
    against its dimension and raises DimensionMismatchError.

    Raises:
        ValidationError: If the vector is not 1-D or holds NaN/Inf
    """
    try:
        array = np.array(vector, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Vector must be numeric: {e}")

    if array.ndim != 1:
        raise ValidationError(f"Vector must be 1D, got {array.ndim}D")

    if not np.isfinite(array).all():
        raise ValidationError("Vector contains NaN or Inf values")

    return array
