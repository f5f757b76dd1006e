"""
Snapshot file format.

A snapshot is a fixed 32-byte header followed by a msgpack payload that
holds every collection of the store.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from enum import IntFlag

from ..core.exceptions import SerializationError


# Magic number: "EMBSTOR\x00"
MAGIC_NUMBER = b"EMBSTOR\x00"

# Snapshot format version
VERSION = 1


class SnapshotFlags(IntFlag):
    """Snapshot format flags."""
    NONE = 0
    COMPRESSED = 1 << 0      # Payload is zlib-compressed


@dataclass
class SnapshotHeader:
    """
    Snapshot header structure (32 bytes).

    Layout:
        0-7:   Magic number (8 bytes)
        8-9:   Version (2 bytes, uint16)
        10-11: Flags (2 bytes, uint16)
        12-15: Collection count (4 bytes, uint32)
        16-23: Payload length in bytes (8 bytes, uint64)
        24-31: Payload checksum (8 bytes, uint64)
    """

    magic: bytes = MAGIC_NUMBER
    version: int = VERSION
    flags: int = SnapshotFlags.NONE
    collection_count: int = 0
    payload_length: int = 0
    checksum: int = 0

    FORMAT = "<8sHHIQQ"
    SIZE = 32

    def validate(self) -> None:
        """
        Raises:
            SerializationError: If the header is not a supported snapshot header
        """
        if self.magic != MAGIC_NUMBER:
            raise SerializationError(f"Invalid magic number: {self.magic!r}")
        if self.version > VERSION or self.version < 1:
            raise SerializationError(f"Unsupported snapshot version: {self.version}")
        unknown = self.flags & ~int(SnapshotFlags.COMPRESSED)
        if unknown:
            raise SerializationError(f"Unknown snapshot flags: {unknown:#x}")

    def to_bytes(self) -> bytes:
        return struct.pack(
            self.FORMAT,
            self.magic,
            self.version,
            int(self.flags),
            self.collection_count,
            self.payload_length,
            self.checksum,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> SnapshotHeader:
        """Parse and validate a header from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise SerializationError(f"Header too short: {len(data)} < {cls.SIZE}")

        magic, version, flags, count, length, checksum = struct.unpack(
            cls.FORMAT, data[:cls.SIZE]
        )

        header = cls(
            magic=magic,
            version=version,
            flags=flags,
            collection_count=count,
            payload_length=length,
            checksum=checksum,
        )
        header.validate()
        return header

    @property
    def compressed(self) -> bool:
        return bool(self.flags & SnapshotFlags.COMPRESSED)

    def __repr__(self) -> str:
        return (
            f"SnapshotHeader(version={self.version}, collections={self.collection_count}, "
            f"payload={self.payload_length}B, flags={self.flags!r})"
        )


def compute_checksum(data: bytes) -> int:
    """64-bit BLAKE2b digest of ``data`` as an unsigned integer."""
    digest = hashlib.blake2b(data, digest_size=8).digest()
    return struct.unpack("<Q", digest)[0]
