"""
Store - registry of named collections, guarded by one reader-writer lock.

Locking discipline:
    One RWLock covers the whole store. Reads and queries, on any
    collection, share the read lock and run in parallel. Every mutation
    (creating or deleting a collection, inserting into or deleting from
    one) takes the write lock for its full duration, so all writes are
    serialized store-wide. A write to collection A therefore waits for a
    write to collection B.

Durability:
    The store loads its snapshot once when opened and writes it back on
    ``flush()``. ``close()`` (or leaving the ``with`` block) flushes and
    logs, rather than raises, a failed write. A closed store rejects
    further mutations with StoreClosedError.

    By default the snapshot is written only on flush and close, so the
    file can lag memory by any number of operations and a crash loses
    everything since the last flush. With ``sync_on_write`` the snapshot
    is rewritten inside the write lock after every successful mutation,
    so file and memory never differ by more than the operation in
    progress; every write then costs a full snapshot. If that rewrite
    fails, the mutation is rolled back and PersistenceError is raised.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from numpy.typing import NDArray

from .collection import Collection, CollectionInfo, SimilarityResult
from .embedding import Embedding
from .exceptions import (
    CollectionExistsError,
    CollectionNotFoundError,
    PersistenceError,
    StoreClosedError,
)
from ..distance import Distance, get_distance
from ..distance.batch import DEFAULT_CHUNK_SIZE, DEFAULT_PARALLEL_THRESHOLD
from ..query import FilterLike
from ..storage import open_snapshot
from ..utils.locking import RWLock
from ..utils.logging import get_logger, setup_logger
from ..utils.validation import validate_dimension, validate_name

if TYPE_CHECKING:
    from config import Settings


logger = get_logger(__name__)

T = TypeVar("T")


class Store:
    """
    Embedded vector store.

    Example:
        >>> with Store("./storage/db") as store:
        ...     docs = store.create_collection("docs", dimension=3)
        ...     docs.insert("a", [1.0, 0.0, 0.0], {"lang": "en"})
        ...     hits = docs.query_similarity([1.0, 0.0, 0.0], k=1)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        sync_on_write: bool = False,
        compress: bool = False,
        parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        num_threads: Optional[int] = None,
    ):
        """
        Open a store.

        Args:
            path: Snapshot file path (None = in-memory only)
            sync_on_write: Rewrite the snapshot after every successful mutation
            compress: zlib-compress snapshots
            parallel_threshold: Candidate count above which queries score in parallel
            chunk_size: Rows per parallel scoring task
            num_threads: Scoring pool size (defaults to the CPU count)

        Raises:
            PersistenceError: If an existing snapshot can't be read or decoded
        """
        self._lock = RWLock()
        self._collections: Dict[str, Collection] = {}
        # Stays closed until loading succeeds, so a failed load is never
        # followed by a flush over the unreadable snapshot
        self._closed = True
        self._sync_on_write = sync_on_write
        self._collection_options = {
            "parallel_threshold": parallel_threshold,
            "chunk_size": chunk_size,
            "num_threads": num_threads,
        }

        self._snapshot = open_snapshot(path, compress=compress)

        if self._snapshot is not None:
            # A failed load must stop startup rather than leave an empty store
            for collection in self._snapshot.load(**self._collection_options):
                self._collections[collection.name] = collection
            logger.info(
                f"Store opened at {self._snapshot.path} "
                f"({len(self._collections)} collections)"
            )
        else:
            logger.info("Store opened in memory-only mode")

        self._closed = False

    @classmethod
    def open(cls, path: Optional[Union[str, Path]] = None, **kwargs) -> "Store":
        return cls(path, **kwargs)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Store":
        """Open the store described by a ``config.Settings``."""
        setup_logger(level=settings.log_level)
        return cls(
            path=settings.storage_path,
            sync_on_write=settings.sync_on_write,
            compress=settings.compress_snapshot,
            parallel_threshold=settings.parallel_threshold,
            chunk_size=settings.chunk_size,
            num_threads=settings.num_threads,
        )

    @property
    def path(self) -> Optional[Path]:
        return self._snapshot.path if self._snapshot is not None else None

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # COLLECTION MANAGEMENT
    # =========================================================================

    def create_collection(
        self,
        name: str,
        dimension: int,
        distance: Union[str, Distance] = Distance.EUCLIDEAN,
    ) -> "CollectionHandle":
        """
        Create a new, empty collection.

        Raises:
            CollectionExistsError: If the name is taken
            ValidationError: If name, dimension or metric is invalid
            StoreClosedError: If the store has been closed
        """
        name = validate_name(name)
        dimension = validate_dimension(dimension)
        distance = get_distance(distance)

        with self._lock.write():
            self._check_open()
            if name in self._collections:
                raise CollectionExistsError(f"Collection '{name}' already exists")

            collection = Collection(
                name=name,
                dimension=dimension,
                distance=distance,
                **self._collection_options,
            )
            self._collections[name] = collection
            try:
                self._after_write()
            except PersistenceError:
                del self._collections[name]
                raise

        logger.info(f"Created collection '{name}' (dim={dimension}, distance={distance})")
        return CollectionHandle(self, name)

    def delete_collection(self, name: str) -> None:
        """
        Raises:
            CollectionNotFoundError: If the collection doesn't exist
        """
        with self._lock.write():
            self._check_open()
            if name not in self._collections:
                raise CollectionNotFoundError(f"Collection '{name}' not found")

            # Restoring the old mapping keeps the collection's position
            previous = dict(self._collections)
            removed = self._collections.pop(name)
            try:
                self._after_write()
            except PersistenceError:
                self._collections = previous
                raise
            removed.close()

        logger.info(f"Deleted collection '{name}'")

    def get_collection(self, name: str) -> Optional["CollectionHandle"]:
        """Handle to a collection, or None if it doesn't exist."""
        with self._lock.read():
            if name not in self._collections:
                return None
        return CollectionHandle(self, name)

    def __getitem__(self, name: str) -> "CollectionHandle":
        """
        Raises:
            CollectionNotFoundError: If the collection doesn't exist
        """
        handle = self.get_collection(name)
        if handle is None:
            raise CollectionNotFoundError(f"Collection '{name}' not found")
        return handle

    def list_collections(self) -> List[str]:
        with self._lock.read():
            return list(self._collections.keys())

    def collection_info(self, name: str) -> CollectionInfo:
        """
        Raises:
            CollectionNotFoundError: If the collection doesn't exist
        """
        with self._reading(name) as collection:
            return collection.info()

    def has_collection(self, name: str) -> bool:
        with self._lock.read():
            return name in self._collections

    def __contains__(self, name: str) -> bool:
        return self.has_collection(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_collections())

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._collections)

    # =========================================================================
    # LOCKED ACCESS
    # =========================================================================

    @contextmanager
    def _reading(self, name: str) -> Iterator[Collection]:
        """Resolve a collection under the shared lock."""
        with self._lock.read():
            collection = self._collections.get(name)
            if collection is None:
                raise CollectionNotFoundError(f"Collection '{name}' not found")
            yield collection

    def _read(self, name: str, operation: Callable[[Collection], T]) -> T:
        with self._reading(name) as collection:
            return operation(collection)

    def _mutate(
        self,
        name: str,
        operation: Callable[[Collection], T],
        changed: Callable[[T], bool] = lambda result: True,
    ) -> T:
        """Run a collection mutation under the exclusive lock."""
        with self._lock.write():
            self._check_open()
            collection = self._collections.get(name)
            if collection is None:
                raise CollectionNotFoundError(f"Collection '{name}' not found")

            checkpoint = collection.checkpoint() if self._syncs_on_write else None
            result = operation(collection)
            if changed(result):
                try:
                    self._after_write()
                except PersistenceError:
                    collection.rollback(checkpoint)
                    raise
            return result

    @property
    def _syncs_on_write(self) -> bool:
        return self._sync_on_write and self._snapshot is not None

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Store is closed")

    def _after_write(self) -> None:
        """
        Called with the write lock held, after a successful mutation.

        Raises:
            PersistenceError: If the snapshot rewrite fails; the caller
                undoes its mutation before re-raising
        """
        if self._syncs_on_write:
            self._snapshot.save(list(self._collections.values()))

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def flush(self) -> Optional[int]:
        """
        Write the snapshot now.

        Takes the read lock, so the snapshot reflects one consistent
        state while queries keep running.

        Returns:
            Bytes written, or None for an in-memory store

        Raises:
            PersistenceError: If the write fails
        """
        if self._snapshot is None:
            return None

        with self._lock.read():
            written = self._snapshot.save(list(self._collections.values()))
            count = len(self._collections)

        logger.info(f"Saved store to {self._snapshot.path} ({count} collections)")
        return written

    def close(self) -> None:
        """
        Flush and mark the store closed.

        The process is expected to exit after close, so a failed flush is
        logged and not raised. Reads keep working; mutations raise
        StoreClosedError.
        """
        with self._lock.write():
            if self._closed:
                return
            self._closed = True

        try:
            self.flush()
        except PersistenceError as e:
            logger.error(f"Failed to save store on close: {e}")

        # Queries hold the read lock, so no scoring pool is in use here
        with self._lock.write():
            for collection in self._collections.values():
                collection.close()

        logger.info("Store closed")

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self):
        # Fallback only; explicit close() is the durability mechanism
        if not getattr(self, "_closed", True):
            self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Store):
            return NotImplemented
        with self._lock.read():
            mine = dict(self._collections)
        with other._lock.read():
            theirs = dict(other._collections)
        return mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        return f"Store(collections={len(self._collections)}, path='{self.path}')"


class CollectionHandle:
    """
    Reference to a collection resolved against a Store.

    The handle holds only the store and the collection name; each call
    resolves the collection under the store lock (shared for reads and
    queries, exclusive for mutations). If the collection is deleted, later
    calls raise CollectionNotFoundError.
    """

    def __init__(self, store: Store, name: str):
        self._store = store
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimension(self) -> int:
        return self._store._read(self._name, lambda c: c.dimension)

    @property
    def distance(self) -> Distance:
        return self._store._read(self._name, lambda c: c.distance)

    @property
    def exists(self) -> bool:
        return self._name in self._store

    def info(self) -> CollectionInfo:
        return self._store.collection_info(self._name)

    def __len__(self) -> int:
        return self._store._read(self._name, len)

    def __contains__(self, id: str) -> bool:
        return self._store._read(self._name, lambda c: id in c)

    # Mutations ---------------------------------------------------------------

    def insert(
        self,
        id: str,
        vector: Union[NDArray, Sequence[float]],
        metadata: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Raises:
            DimensionMismatchError: If the vector length is wrong
            EmbeddingExistsError: If the id is taken
        """
        self._store._mutate(self._name, lambda c: c.insert(id, vector, metadata))
        logger.debug(f"Inserted '{id}' into '{self._name}'")

    def delete_by_id(self, id: str) -> bool:
        return self._store._mutate(
            self._name, lambda c: c.delete_by_id(id), changed=bool
        )

    def delete_by_filter(self, filter: FilterLike) -> int:
        removed = self._store._mutate(
            self._name, lambda c: c.delete_by_filter(filter), changed=bool
        )
        logger.debug(f"Deleted {removed} embeddings from '{self._name}' by filter")
        return removed

    # Reads -------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Embedding]:
        return self._store._read(self._name, lambda c: c.get_by_id(id))

    def __getitem__(self, id: str) -> Embedding:
        """
        Raises:
            EmbeddingNotFoundError: If no embedding has this id
        """
        return self._store._read(self._name, lambda c: c[id])

    def list_ids(self) -> List[str]:
        return self._store._read(self._name, lambda c: c.list_ids())

    def query_similarity(
        self,
        query: Union[NDArray, Sequence[float]],
        k: int = 1,
        filter: FilterLike = None,
    ) -> List[SimilarityResult]:
        return self._store._read(
            self._name, lambda c: c.query_similarity(query, k=k, filter=filter)
        )

    def query_by_filter(self, filter: FilterLike, k: Optional[int] = 1) -> List[Embedding]:
        return self._store._read(
            self._name, lambda c: c.query_by_filter(filter, k=k)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CollectionHandle):
            return NotImplemented
        return self._store is other._store and self._name == other._name

    def __hash__(self) -> int:
        return hash((id(self._store), self._name))

    def __repr__(self) -> str:
        return f"CollectionHandle(name='{self._name}')"
