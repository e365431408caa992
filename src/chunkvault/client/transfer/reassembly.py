"""Reassembly of decrypted chunks into the original file."""

from __future__ import annotations

from collections.abc import Mapping

from chunkvault.core.errors import IntegrityError


def merge(
    chunks: Mapping[int, bytes],
    total_count: int,
    expected_size: int | None = None,
) -> bytes:
    """Concatenate decrypted chunks in ascending index order.

    Args:
        chunks: Decrypted chunk bytes keyed by 0-based index, in any order.
        total_count: Number of chunks the file was split into.
        expected_size: Original file size, when known.

    Returns:
        The reassembled file.

    Raises:
        IntegrityError: If an index in 0..total_count-1 is missing, an
            unexpected index is present, or the output length is wrong.
    """
    missing = [i for i in range(total_count) if i not in chunks]
    if missing:
        raise IntegrityError(f"Missing chunk indices: {missing}")
    extra = sorted(i for i in chunks if not 0 <= i < total_count)
    if extra:
        raise IntegrityError(f"Unexpected chunk indices: {extra}")

    data = b"".join(chunks[i] for i in range(total_count))
    if expected_size is not None and len(data) != expected_size:
        raise IntegrityError(f"Reassembled {len(data)} bytes, expected {expected_size}")
    return data
