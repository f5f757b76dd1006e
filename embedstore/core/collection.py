"""
Collection class holding embeddings of one dimension and one metric.

A Collection is a plain data structure with no locking of its own. The
Store owns every collection and serializes access to them; callers reach
a collection through a ``CollectionHandle`` (see ``store.py``).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import numpy as np
from numpy.typing import NDArray

from .embedding import Embedding
from .exceptions import (
    DimensionMismatchError,
    EmbeddingExistsError,
    EmbeddingNotFoundError,
)
from ..distance import Distance, ParallelScorer, get_distance, normalize
from ..distance.batch import DEFAULT_CHUNK_SIZE, DEFAULT_PARALLEL_THRESHOLD
from ..query import FilterLike, parse_filter
from ..utils.validation import (
    validate_dimension,
    validate_id,
    validate_k,
    validate_metadata,
    validate_name,
    validate_vector,
)
from ..utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class CollectionInfo:
    """Summary of a collection."""

    name: str
    dimension: int
    distance: Distance
    embedding_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dimension": self.dimension,
            "distance": self.distance.value,
            "embedding_count": self.embedding_count,
        }


@dataclass(frozen=True)
class SimilarityResult:
    """
    One hit of a similarity query.

    ``score`` is the metric's raw value: a distance for euclidean
    (smaller = closer), a similarity for cosine and dot (larger = closer).
    """

    score: float
    embedding: Embedding

    @property
    def id(self) -> str:
        return self.embedding.id

    def to_dict(self, include_vector: bool = True) -> Dict[str, Any]:
        embedding = self.embedding.to_dict()
        if not include_vector:
            embedding.pop("vector")
        return {"score": self.score, "embedding": embedding}


class Collection:
    """
    A named set of embeddings sharing one dimension and one metric.

    Dimension and metric are fixed at creation. Embedding order is
    insertion order; it is never used to rank similarity results.

    Example:
        >>> collection = Collection("docs", dimension=3, distance="euclidean")
        >>> collection.insert("a", [1.0, 0.0, 0.0])
        >>> collection.insert("b", [0.0, 1.0, 0.0], {"lang": "en"})
        >>> [r.id for r in collection.query_similarity([1.0, 0.0, 0.0], k=2)]
        ['a', 'b']
    """

    def __init__(
        self,
        name: str,
        dimension: int,
        distance: Union[str, Distance] = Distance.EUCLIDEAN,
        parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        num_threads: Optional[int] = None,
    ):
        """
        Initialize an empty collection.

        Args:
            name: Collection name
            dimension: Vector dimension (positive)
            distance: Distance metric
            parallel_threshold: Candidate count above which scoring runs on a thread pool
            chunk_size: Rows per scoring task
            num_threads: Scoring pool size (defaults to the CPU count)

        Raises:
            ValidationError: If name, dimension or metric is invalid
        """
        self._name = validate_name(name)
        self._dimension = validate_dimension(dimension)
        self._distance = get_distance(distance)

        self._embeddings: Dict[str, Embedding] = {}
        # (ids, matrix) snapshot of the embeddings; None when stale
        self._matrix_cache: Optional[Tuple[List[str], NDArray]] = None

        self._scorer = ParallelScorer(
            self._distance,
            chunk_size=chunk_size,
            parallel_threshold=parallel_threshold,
            max_workers=num_threads,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def distance(self) -> Distance:
        return self._distance

    def __len__(self) -> int:
        return len(self._embeddings)

    def __contains__(self, id: str) -> bool:
        return id in self._embeddings

    def __iter__(self) -> Iterator[Embedding]:
        return iter(self._embeddings.values())

    def info(self) -> CollectionInfo:
        return CollectionInfo(
            name=self._name,
            dimension=self._dimension,
            distance=self._distance,
            embedding_count=len(self._embeddings),
        )

    # =========================================================================
    # CRUD OPERATIONS
    # =========================================================================

    def insert(
        self,
        id: str,
        vector: Union[NDArray, Sequence[float]],
        metadata: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Add an embedding.

        Cosine collections store the unit-length form of the vector.

        Raises:
            DimensionMismatchError: If the vector length is not the collection dimension
            EmbeddingExistsError: If the id is already present
            ValidationError: If id, vector or metadata is malformed
        """
        id = validate_id(id)
        metadata = validate_metadata(metadata)
        vector = self._check_vector(vector)

        if id in self._embeddings:
            raise EmbeddingExistsError(
                f"Embedding '{id}' already exists in collection '{self._name}'"
            )

        if self._distance.normalizes_on_insert:
            vector = normalize(vector)

        self.add_embedding(Embedding(id=id, vector=vector, metadata=metadata))

    def add_embedding(self, embedding: Embedding) -> None:
        """
        Append an already-built embedding.

        Used by ``insert`` after validation and by the snapshot loader,
        whose vectors are stored in final (already normalized) form.
        """
        if embedding.dimension != self._dimension:
            raise DimensionMismatchError(self._dimension, embedding.dimension)
        if embedding.id in self._embeddings:
            raise EmbeddingExistsError(
                f"Embedding '{embedding.id}' already exists in collection '{self._name}'"
            )

        self._embeddings[embedding.id] = embedding
        self._matrix_cache = None

    def delete_by_id(self, id: str) -> bool:
        """
        Remove one embedding.

        Returns:
            True if an embedding was removed
        """
        if id not in self._embeddings:
            return False

        del self._embeddings[id]
        self._matrix_cache = None
        return True

    def delete_by_filter(self, filter: FilterLike) -> int:
        """
        Remove every embedding matching the filter.

        The surviving set is built first and swapped in at the end, so
        an exception midway leaves the collection untouched.

        Returns:
            Number of embeddings removed
        """
        predicate = parse_filter(filter)

        kept: Dict[str, Embedding] = {}
        for id, embedding in self._embeddings.items():
            if not predicate.matches(embedding.metadata):
                kept[id] = embedding

        removed = len(self._embeddings) - len(kept)
        if removed:
            self._embeddings = kept
            self._matrix_cache = None

        return removed

    def get_by_id(self, id: str) -> Optional[Embedding]:
        return self._embeddings.get(id)

    def __getitem__(self, id: str) -> Embedding:
        """
        Raises:
            EmbeddingNotFoundError: If no embedding has this id
        """
        embedding = self._embeddings.get(id)
        if embedding is None:
            raise EmbeddingNotFoundError(
                f"Embedding '{id}' not found in collection '{self._name}'"
            )
        return embedding

    def list_ids(self) -> List[str]:
        """All embedding ids in insertion order."""
        return list(self._embeddings.keys())

    # =========================================================================
    # QUERIES
    # =========================================================================

    def query_similarity(
        self,
        query: Union[NDArray, Sequence[float]],
        k: int = 1,
        filter: FilterLike = None,
    ) -> List[SimilarityResult]:
        """
        Exhaustive nearest-neighbour search.

        Args:
            query: Query vector
            k: Maximum number of results
            filter: Optional metadata filter restricting the candidates

        Returns:
            Up to k results, best first

        Raises:
            DimensionMismatchError: If the query length is not the collection dimension
        """
        query = self._check_vector(query)
        k = validate_k(k)
        predicate = parse_filter(filter)

        # Stored cosine vectors are unit length; a unit query makes the
        # dot product the cosine similarity itself
        if self._distance.normalizes_on_insert:
            query = normalize(query)

        if k == 0 or not self._embeddings:
            return []

        start = time.perf_counter()
        ids, matrix = self._matrix()

        if not predicate.is_empty:
            rows = [
                row for row, id in enumerate(ids)
                if predicate.matches(self._embeddings[id].metadata)
            ]
            if not rows:
                return []
            row_index = np.asarray(rows, dtype=np.intp)
            candidates = matrix[row_index]
        else:
            row_index = None
            candidates = matrix

        top = self._scorer.top_k(candidates, query, len(ids) if k is None else k)

        results = []
        for value, row in top:
            matrix_row = int(row_index[row]) if row_index is not None else row
            results.append(
                SimilarityResult(score=value, embedding=self._embeddings[ids[matrix_row]])
            )

        logger.debug(
            f"Query on '{self._name}' scored {len(candidates)} candidates "
            f"in {(time.perf_counter() - start) * 1000:.2f}ms"
        )
        return results

    def query_by_filter(
        self,
        filter: FilterLike,
        k: Optional[int] = None,
    ) -> List[Embedding]:
        """
        Embeddings matching the filter, in insertion order.

        Args:
            filter: Metadata filter
            k: Maximum number of results (None = all)
        """
        predicate = parse_filter(filter)
        k = validate_k(k)

        results: List[Embedding] = []
        if k == 0:
            return results

        for embedding in self._embeddings.values():
            if predicate.matches(embedding.metadata):
                results.append(embedding)
                if k is not None and len(results) >= k:
                    break

        return results

    # =========================================================================
    # CHECKPOINTS
    # =========================================================================

    def checkpoint(self) -> Dict[str, Embedding]:
        """
        Capture the current embeddings so a mutation can be undone.

        Embeddings are immutable, so a shallow copy of the id map is a
        complete checkpoint.
        """
        return dict(self._embeddings)

    def rollback(self, checkpoint: Dict[str, Embedding]) -> None:
        """Restore the embeddings captured by ``checkpoint()``."""
        self._embeddings = dict(checkpoint)
        self._matrix_cache = None

    def close(self) -> None:
        """Release the scoring thread pool, if one was started."""
        self._scorer.close()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _check_vector(self, vector: Union[NDArray, Sequence[float]]) -> NDArray:
        vector = validate_vector(vector)
        if len(vector) != self._dimension:
            raise DimensionMismatchError(self._dimension, len(vector))
        return vector

    def _matrix(self) -> Tuple[List[str], NDArray]:
        """
        Row-aligned ids and vector matrix, rebuilt after mutations.

        Concurrent readers may both rebuild; they produce the same
        snapshot and the cache is replaced in one assignment.
        """
        cache = self._matrix_cache
        if cache is None:
            ids = list(self._embeddings.keys())
            if ids:
                matrix = np.stack([self._embeddings[id].vector for id in ids])
            else:
                matrix = np.zeros((0, self._dimension), dtype=np.float32)
            cache = (ids, matrix)
            self._matrix_cache = cache
        return cache

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "dimension": self._dimension,
            "distance": self._distance.value,
            "embeddings": [e.to_dict() for e in self._embeddings.values()],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return (
            self._name == other._name
            and self._dimension == other._dimension
            and self._distance is other._distance
            and list(self._embeddings.values()) == list(other._embeddings.values())
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Collection(name='{self._name}', "
            f"dimension={self._dimension}, "
            f"count={len(self)}, "
            f"distance='{self._distance.value}')"
        )
