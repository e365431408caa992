"""Fixed-size chunking for chunkvault.

This module splits a byte sequence into ordered chunks of a constant size:
- Deterministic boundaries (same input, same chunks)
- All chunks but the last are exactly chunk_size bytes
- Empty input produces no chunks
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from chunkvault.core.errors import ValidationError
from chunkvault.core.types import SourceFile

DEFAULT_CHUNK_SIZE = 10 * 1024 * 1024  # 10 MB


@dataclass
class Chunk:
    """Represents a chunk of plaintext with its position in the file."""

    index: int
    offset: int
    data: bytes

    @property
    def size(self) -> int:
        """Return the size of this chunk in bytes."""
        return len(self.data)


def chunk_count(length: int, chunk_size: int) -> int:
    """Return how many chunks split() produces for a file of this length."""
    if chunk_size <= 0:
        raise ValidationError(f"Chunk size must be positive, got {chunk_size}")
    return -(-length // chunk_size)


def split(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Chunk]:
    """Split data into fixed-size chunks.

    Args:
        data: Raw bytes to chunk.
        chunk_size: Size of every chunk except possibly the last.

    Returns:
        Finite iterator of Chunk objects indexed 0..count-1 in byte order.

    Raises:
        ValidationError: If chunk_size is not positive.
    """
    # Validate eagerly, not on first next()
    count = chunk_count(len(data), chunk_size)
    return _iter_chunks(data, chunk_size, count)


def _iter_chunks(data: bytes, chunk_size: int, count: int) -> Iterator[Chunk]:
    view = memoryview(data)
    for index in range(count):
        offset = index * chunk_size
        yield Chunk(
            index=index,
            offset=offset,
            data=bytes(view[offset : offset + chunk_size]),
        )


def read_source(path: Path | str) -> SourceFile:
    """Read a local file into a SourceFile.

    Raises:
        ValidationError: If the path does not point to a regular file.
    """
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"File not found: {path}")
    return SourceFile(name=path.name, data=path.read_bytes())


def chunk_file(path: Path | str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Chunk]:
    """Split a file into fixed-size chunks.

    Reads the entire file into memory.
    """
    return split(read_source(path).data, chunk_size)
