"""
Exception hierarchy for embedstore.

Every error is raised by the operation that detects it, before any
state has been mutated.
"""


class EmbedStoreError(Exception):
    """Base exception for embedstore."""
    pass


class UniqueViolationError(EmbedStoreError):
    """A name or id that must be unique is already taken."""
    pass


class CollectionExistsError(UniqueViolationError):
    """Collection already exists."""
    pass


class EmbeddingExistsError(UniqueViolationError):
    """Embedding with the given id already exists in the collection."""
    pass


class NotFoundError(EmbedStoreError):
    """Referenced collection or embedding does not exist."""
    pass


class CollectionNotFoundError(NotFoundError):
    """Collection does not exist."""
    pass


class EmbeddingNotFoundError(NotFoundError):
    """Embedding with given id not found."""
    pass


class DimensionMismatchError(EmbedStoreError):
    """Vector length doesn't match the collection dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension {actual} doesn't match collection dimension {expected}"
        )


class InvalidFilterError(EmbedStoreError):
    """Filter expression is structurally malformed."""
    pass


class ValidationError(EmbedStoreError):
    """Input validation error."""
    pass


class PersistenceError(EmbedStoreError):
    """Reading or writing the snapshot failed."""
    pass


class SerializationError(PersistenceError):
    """Snapshot is corrupt or has an incompatible format."""
    pass


class StoreClosedError(EmbedStoreError):
    """Mutation attempted on a store that has been closed."""
    pass
