"""
Core components for embedstore.
"""

from .exceptions import (
    EmbedStoreError,
    UniqueViolationError,
    CollectionExistsError,
    EmbeddingExistsError,
    NotFoundError,
    CollectionNotFoundError,
    EmbeddingNotFoundError,
    DimensionMismatchError,
    InvalidFilterError,
    ValidationError,
    PersistenceError,
    SerializationError,
    StoreClosedError,
)
from .embedding import Embedding
from .collection import (
    Collection,
    CollectionInfo,
    SimilarityResult,
)
from .store import Store, CollectionHandle

__all__ = [
    # Records
    "Embedding",
    # Collection
    "Collection",
    "CollectionInfo",
    "SimilarityResult",
    # Store
    "Store",
    "CollectionHandle",
    # Exceptions
    "EmbedStoreError",
    "UniqueViolationError",
    "CollectionExistsError",
    "EmbeddingExistsError",
    "NotFoundError",
    "CollectionNotFoundError",
    "EmbeddingNotFoundError",
    "DimensionMismatchError",
    "InvalidFilterError",
    "ValidationError",
    "PersistenceError",
    "SerializationError",
    "StoreClosedError",
]
