"""
Embedding record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True, eq=False)
class Embedding:
    """
    A stored vector with its id and optional metadata.

    Embeddings are immutable once stored: the vector array is marked
    read-only and metadata is exposed through a read-only mapping.
    Replacing one means delete-then-insert.

    Attributes:
        id: Identifier, unique within the owning collection
        vector: float32 array of length equal to the collection dimension
        metadata: Optional str -> str mapping

    Example:
        >>> e = Embedding("doc_001", np.array([0.1, 0.2, 0.3]), {"lang": "en"})
        >>> e.dimension
        3
    """

    id: str
    vector: NDArray[np.float32]
    metadata: Optional[Mapping[str, str]] = field(default=None)

    def __post_init__(self):
        vector = np.array(self.vector, dtype=np.float32)
        vector.setflags(write=False)
        object.__setattr__(self, "vector", vector)

        if self.metadata is not None:
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def dimension(self) -> int:
        return len(self.vector)

    @property
    def norm(self) -> float:
        """L2 norm of the vector."""
        return float(np.linalg.norm(self.vector))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vector": self.vector.tolist(),
            "metadata": dict(self.metadata) if self.metadata is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Embedding:
        return cls(
            id=data["id"],
            vector=np.asarray(data["vector"], dtype=np.float32),
            metadata=data.get("metadata"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Embedding):
            return NotImplemented
        return (
            self.id == other.id
            and np.array_equal(self.vector, other.vector)
            and self._metadata_dict() == other._metadata_dict()
        )

    def __hash__(self) -> int:
        return hash(self.id)

    def _metadata_dict(self) -> Optional[Dict[str, str]]:
        return dict(self.metadata) if self.metadata is not None else None

    def __repr__(self) -> str:
        keys = list(self.metadata) if self.metadata is not None else None
        return f"Embedding(id='{self.id}', dim={self.dimension}, metadata_keys={keys})"
