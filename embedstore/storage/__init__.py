"""
Snapshot persistence for embedstore.

The entire store is written as one binary blob to a single path.

Example:
    >>> from embedstore.storage import SnapshotFile
    >>>
    >>> snapshot = SnapshotFile("./storage/db")
    >>> collections = snapshot.load()
    >>> snapshot.save(collections)
"""

from .format import (
    SnapshotHeader,
    SnapshotFlags,
    MAGIC_NUMBER,
    VERSION,
    compute_checksum,
)
from .serialization import (
    encode_snapshot,
    decode_snapshot,
    serialize_vector,
    deserialize_vector,
)
from .disk import SnapshotFile, open_snapshot

__all__ = [
    # Format
    "SnapshotHeader",
    "SnapshotFlags",
    "MAGIC_NUMBER",
    "VERSION",
    "compute_checksum",
    # Serialization
    "encode_snapshot",
    "decode_snapshot",
    "serialize_vector",
    "deserialize_vector",
    # Files
    "SnapshotFile",
    "open_snapshot",
]
