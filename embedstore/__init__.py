"""
embedstore - an embedded, persisted vector-similarity store.

Example:
    >>> from embedstore import Store
    >>>
    >>> with Store("./storage/db") as store:
    ...     docs = store.create_collection("docs", dimension=3, distance="cosine")
    ...     docs.insert("a", [1.0, 0.0, 0.0], {"lang": "en"})
    ...     docs.insert("b", [0.0, 1.0, 0.0], {"lang": "fr"})
    ...
    ...     results = docs.query_similarity([1.0, 0.2, 0.0], k=1, filter=[{"lang": "en"}])
"""

from .core import (
    # Main classes
    Store,
    CollectionHandle,
    Collection,
    CollectionInfo,
    Embedding,
    SimilarityResult,
    # Exceptions
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

from .distance import (
    Distance,
    get_distance,
    precompute,
    score,
    normalize,
    TopKSelector,
)

from .query import MetadataFilter, parse_filter, parse_expression

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "Store",
    "CollectionHandle",
    "Collection",
    "CollectionInfo",
    "Embedding",
    "SimilarityResult",
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
    # Similarity
    "Distance",
    "get_distance",
    "precompute",
    "score",
    "normalize",
    "TopKSelector",
    # Filters
    "MetadataFilter",
    "parse_filter",
    "parse_expression",
]
