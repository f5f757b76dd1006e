"""
Snapshot file on disk.

The whole store lives in one file. Writes go to a sibling temp file that
is fsynced and then renamed over the target, so readers and a crashed
writer only ever see the old snapshot or the new one.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .serialization import decode_snapshot, encode_snapshot
from ..core.collection import Collection
from ..core.exceptions import PersistenceError
from ..utils.logging import get_logger


logger = get_logger(__name__)


class SnapshotFile:
    """
    Reads and atomically replaces the snapshot at a fixed path.

    Example:
        >>> snapshot = SnapshotFile("./storage/db")
        >>> collections = snapshot.load()   # [] if the file doesn't exist yet
        >>> snapshot.save(collections)
    """

    TEMP_SUFFIX = ".tmp"

    def __init__(self, path: Union[str, Path], compress: bool = False):
        """
        Args:
            path: Snapshot file path
            compress: zlib-compress the payload on save
        """
        self._path = Path(path)
        self._compress = compress

    @property
    def path(self) -> Path:
        return self._path

    @property
    def temp_path(self) -> Path:
        return self._path.with_name(self._path.name + self.TEMP_SUFFIX)

    def exists(self) -> bool:
        return self._path.exists()

    def load(self, **collection_options) -> List[Collection]:
        """
        Read the snapshot.

        A missing file means a fresh store: the parent directory is
        created and an empty list returned.

        Raises:
            PersistenceError: If the file can't be read or decoded
        """
        if not self._path.exists():
            logger.debug(f"No snapshot at {self._path}, starting empty")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PersistenceError(f"Cannot create storage directory: {e}") from e
            return []

        try:
            blob = self._path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Cannot read snapshot {self._path}: {e}") from e

        collections = decode_snapshot(blob, **collection_options)
        logger.info(
            f"Loaded snapshot from {self._path} "
            f"({len(collections)} collections, {len(blob)} bytes)"
        )
        return collections

    def save(self, collections: Iterable[Collection]) -> int:
        """
        Write a new snapshot, replacing the old one.

        Returns:
            Number of bytes written

        Raises:
            PersistenceError: If the snapshot can't be written
        """
        blob = encode_snapshot(collections, compress=self._compress)
        temp_path = self.temp_path

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._path)
        except OSError as e:
            self._discard_temp()
            raise PersistenceError(f"Cannot write snapshot {self._path}: {e}") from e

        logger.debug(f"Wrote snapshot to {self._path} ({len(blob)} bytes)")
        return len(blob)

    def _discard_temp(self) -> None:
        try:
            self.temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {self.temp_path}: {e}")

    def __repr__(self) -> str:
        return f"SnapshotFile(path='{self._path}')"


def open_snapshot(path: Optional[Union[str, Path]], **kwargs) -> Optional[SnapshotFile]:
    """SnapshotFile for ``path``, or None for an in-memory store."""
    if path is None:
        return None
    return SnapshotFile(path, **kwargs)
