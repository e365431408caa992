"""Shared types for chunkvault.

This module defines the value objects passed between the chunker, the
remote store and the transfer pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, auto


@dataclass(frozen=True)
class SourceFile:
    """An in-memory file about to be uploaded."""

    name: str
    data: bytes

    @property
    def size(self) -> int:
        """Return the total length in bytes."""
        return len(self.data)


@dataclass(frozen=True)
class ChunkDescriptor:
    """Remote store metadata for one uploaded chunk.

    Attributes:
        remote_id: Object id assigned by the store.
        name: Object name, "chunk<N>.<ext>" with N 1-based.
        size: Stored (encrypted) size in bytes.
        index: 0-based chunk index when the store keeps it as metadata.
    """

    remote_id: str
    name: str
    size: int
    index: int | None = None


@dataclass(frozen=True)
class RemoteContainer:
    """A logical file on the remote store.

    Attributes:
        id: Container id assigned by the store.
        name: Logical file name.
        chunk_count: Number of chunks, recorded once the upload completed.
        size: Plaintext size in bytes, recorded with chunk_count.
    """

    id: str
    name: str
    chunk_count: int | None = None
    size: int | None = None

    @property
    def complete(self) -> bool:
        """Whether the upload that filled this container finished."""
        return self.chunk_count is not None and self.size is not None


class TransferType(IntEnum):
    """Type of transfer operation."""

    UPLOAD = auto()
    DOWNLOAD = auto()


class TransferStatus(IntEnum):
    """Status of a transfer job."""

    PENDING = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()
    FAILED = auto()
