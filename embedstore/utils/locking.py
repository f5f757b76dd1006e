"""
Reader-writer lock guarding shared store state.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class RWLock:
    """
    Writer-preferring read-write lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Once a writer is waiting, new readers queue behind it so a
    steady stream of queries cannot starve mutations.

    The lock is not reentrant: a thread holding the read lock must not
    request the write lock.

    Example:
        >>> lock = RWLock()
        >>> with lock.read():
        ...     pass  # shared access
        >>> with lock.write():
        ...     pass  # exclusive access
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ready = threading.Condition(self._lock)
        self._readers = 0
        self._writers_waiting = 0
        self._writer_active = False

    def acquire_read(self) -> None:
        """Acquire read lock."""
        with self._lock:
            while self._writer_active or self._writers_waiting > 0:
                self._ready.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release read lock."""
        with self._lock:
            self._readers -= 1
            if self._readers == 0:
                self._ready.notify_all()

    def acquire_write(self) -> None:
        """Acquire write lock."""
        with self._lock:
            self._writers_waiting += 1
            try:
                while self._readers > 0 or self._writer_active:
                    self._ready.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self) -> None:
        """Release write lock."""
        with self._lock:
            self._writer_active = False
            self._ready.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Number of threads currently holding the read lock."""
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer_active
