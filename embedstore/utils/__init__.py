"""
Utility functions for embedstore.
"""

from .validation import (
    validate_id,
    validate_name,
    validate_metadata,
    validate_dimension,
    validate_k,
    validate_vector,
)
from .normalization import normalize_vector, is_normalized
from .locking import RWLock
from .logging import setup_logger, get_logger, LogContext

__all__ = [
    "validate_id",
    "validate_name",
    "validate_metadata",
    "validate_dimension",
    "validate_k",
    "validate_vector",
    "normalize_vector",
    "is_normalized",
    "RWLock",
    "setup_logger",
    "get_logger",
    "LogContext",
]
