"""
Snapshot encoding and decoding.

The payload is a msgpack document::

    {"collections": [
        {"name": str, "dimension": int, "distance": str,
         "embeddings": [{"id": str, "vector": bytes, "metadata": dict | None}]}
    ]}

Vectors are packed as raw little-endian float32 bytes, which is both
compact and exact. Cosine vectors are stored in their normalized form
and are not normalized again on load.
"""

from __future__ import annotations

import zlib
from typing import Any, Dict, Iterable, List

import msgpack
import numpy as np
from numpy.typing import NDArray

from .format import SnapshotFlags, SnapshotHeader, compute_checksum
from ..core.collection import Collection
from ..core.embedding import Embedding
from ..core.exceptions import EmbedStoreError, SerializationError


VECTOR_DTYPE = np.dtype("<f4")


def serialize_vector(vector: NDArray) -> bytes:
    return np.asarray(vector, dtype=VECTOR_DTYPE).tobytes()


def deserialize_vector(data: bytes, dimension: int) -> NDArray:
    if len(data) != dimension * VECTOR_DTYPE.itemsize:
        raise SerializationError(
            f"Vector payload of {len(data)} bytes doesn't hold {dimension} floats"
        )
    return np.frombuffer(data, dtype=VECTOR_DTYPE).astype(np.float32)


def _encode_collection(collection: Collection) -> Dict[str, Any]:
    return {
        "name": collection.name,
        "dimension": collection.dimension,
        "distance": collection.distance.value,
        "embeddings": [
            {
                "id": embedding.id,
                "vector": serialize_vector(embedding.vector),
                "metadata": (
                    dict(embedding.metadata) if embedding.metadata is not None else None
                ),
            }
            for embedding in collection
        ],
    }


def _decode_collection(data: Dict[str, Any], **collection_options) -> Collection:
    collection = Collection(
        name=data["name"],
        dimension=data["dimension"],
        distance=data["distance"],
        **collection_options,
    )
    for item in data["embeddings"]:
        collection.add_embedding(
            Embedding(
                id=item["id"],
                vector=deserialize_vector(item["vector"], collection.dimension),
                metadata=item.get("metadata"),
            )
        )
    return collection


def encode_snapshot(collections: Iterable[Collection], compress: bool = False) -> bytes:
    """
    Serialize collections into one snapshot blob.

    Args:
        collections: Collections to include
        compress: zlib-compress the payload
    """
    collections = list(collections)
    payload = msgpack.packb(
        {"collections": [_encode_collection(c) for c in collections]},
        use_bin_type=True,
    )

    flags = SnapshotFlags.NONE
    if compress:
        payload = zlib.compress(payload, level=1)
        flags |= SnapshotFlags.COMPRESSED

    header = SnapshotHeader(
        flags=flags,
        collection_count=len(collections),
        payload_length=len(payload),
        checksum=compute_checksum(payload),
    )
    return header.to_bytes() + payload


def decode_snapshot(blob: bytes, **collection_options) -> List[Collection]:
    """
    Rebuild collections from a snapshot blob.

    Args:
        blob: Snapshot bytes
        **collection_options: Extra keyword arguments for every Collection

    Raises:
        SerializationError: If the blob is truncated, corrupt or incompatible
    """
    header = SnapshotHeader.from_bytes(blob)
    payload = blob[SnapshotHeader.SIZE:]

    if len(payload) != header.payload_length:
        raise SerializationError(
            f"Payload length {len(payload)} doesn't match header ({header.payload_length})"
        )

    if compute_checksum(payload) != header.checksum:
        raise SerializationError("Snapshot checksum mismatch")

    try:
        if header.compressed:
            payload = zlib.decompress(payload)
        document = msgpack.unpackb(payload, raw=False)
        collections = [
            _decode_collection(data, **collection_options)
            for data in document["collections"]
        ]
    except SerializationError:
        raise
    except (
        zlib.error,
        msgpack.exceptions.UnpackException,
        ValueError,
        TypeError,
        KeyError,
        EmbedStoreError,
    ) as e:
        raise SerializationError(f"Failed to decode snapshot: {e}") from e

    if len(collections) != header.collection_count:
        raise SerializationError(
            f"Snapshot holds {len(collections)} collections, header says {header.collection_count}"
        )

    names = [c.name for c in collections]
    if len(set(names)) != len(names):
        raise SerializationError("Snapshot contains duplicate collection names")

    return collections
