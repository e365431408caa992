"""Chunk naming and ordering rules.

Remote listings do not come back in upload order. Each chunk object is
named "chunk<N>.<ext>" with N 1-based, and that name (or the chunk index
stored as object metadata, when the store keeps one) is the only thing
used to recover the order on download.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from chunkvault.core.errors import IntegrityError
from chunkvault.core.types import ChunkDescriptor

CHUNK_PREFIX = "chunk"
CHUNK_EXTENSION = "enc"

_CHUNK_NAME_RE = re.compile(rf"^{CHUNK_PREFIX}(\d+)(?:\.[^.]*)?$")


def chunk_name(index: int, ext: str = CHUNK_EXTENSION) -> str:
    """Return the object name for the chunk at 0-based index."""
    if index < 0:
        raise ValueError(f"Chunk index must be >= 0, got {index}")
    return f"{CHUNK_PREFIX}{index + 1}.{ext}"


def parse_chunk_number(name: str) -> int:
    """Parse the 1-based sequence number out of a chunk object name.

    Raises:
        IntegrityError: If the name does not follow the chunk<N> convention.
    """
    match = _CHUNK_NAME_RE.match(name)
    if not match or int(match.group(1)) < 1:
        raise IntegrityError(f"Not a chunk object name: {name!r}")
    return int(match.group(1))


def chunk_index(descriptor: ChunkDescriptor) -> int:
    """Return the 0-based index of a chunk descriptor.

    Structured metadata wins over the name when both are present.
    """
    if descriptor.index is not None:
        return descriptor.index
    return parse_chunk_number(descriptor.name) - 1


def order_descriptors(descriptors: Iterable[ChunkDescriptor]) -> list[ChunkDescriptor]:
    """Sort chunk descriptors into upload order.

    Args:
        descriptors: Children of a container, in any order.

    Returns:
        Descriptors sorted by chunk index.

    Raises:
        IntegrityError: If two descriptors share an index or an index is missing.
    """
    by_index: dict[int, ChunkDescriptor] = {}
    for descriptor in descriptors:
        index = chunk_index(descriptor)
        if index in by_index:
            raise IntegrityError(
                f"Duplicate chunk index {index}: "
                f"{by_index[index].name!r} and {descriptor.name!r}"
            )
        by_index[index] = descriptor

    missing = [i for i in range(len(by_index)) if i not in by_index]
    if missing:
        raise IntegrityError(f"Missing chunk indices: {missing}")

    return [by_index[i] for i in range(len(by_index))]
