"""
Pytest fixtures for embedstore tests.
"""

import pytest
import numpy as np

from embedstore import Store, Collection


@pytest.fixture
def dimension() -> int:
    """Default dimension for test vectors."""
    return 16


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def random_vector(rng: np.random.Generator, dimension: int) -> np.ndarray:
    """Generate a random vector."""
    return rng.standard_normal(dimension).astype(np.float32)


@pytest.fixture
def random_vectors(rng: np.random.Generator, dimension: int) -> np.ndarray:
    """Generate random vectors (200 vectors)."""
    return rng.standard_normal((200, dimension)).astype(np.float32)


@pytest.fixture
def memory_store():
    """Store without a snapshot file."""
    store = Store()
    yield store
    store.close()


@pytest.fixture
def store_path(tmp_path):
    """Snapshot path inside a not-yet-existing directory."""
    return tmp_path / "storage" / "db"


@pytest.fixture
def docs() -> Collection:
    """Two-dimensional euclidean collection with language metadata."""
    collection = Collection("docs", dimension=2, distance="euclidean")
    collection.insert("a", [1.0, 0.0], {"lang": "en"})
    collection.insert("b", [0.0, 1.0], {"lang": "fr"})
    return collection


@pytest.fixture
def populated_collection(random_vectors: np.ndarray, dimension: int) -> Collection:
    """Euclidean collection holding ``random_vectors`` with category metadata."""
    collection = Collection("random", dimension=dimension)
    for i, vector in enumerate(random_vectors):
        collection.insert(
            f"vec_{i:03d}",
            vector,
            {"category": f"cat_{i % 5}", "parity": "even" if i % 2 == 0 else "odd"},
        )
    return collection
