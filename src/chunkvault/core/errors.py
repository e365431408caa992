"""Error taxonomy for chunkvault.

Every error raised by the library derives from ChunkVaultError so callers
can catch the whole family at once. Store errors carry the HTTP status
code when one is available.
"""

from __future__ import annotations


class ChunkVaultError(Exception):
    """Base exception for all chunkvault errors."""

    kind = "error"


class ValidationError(ChunkVaultError):
    """Caller-correctable input problem (missing file, empty passphrase...)."""

    kind = "validation"


class KeyDerivationError(ChunkVaultError):
    """Key derivation received malformed input."""

    kind = "key-derivation"


class AuthenticationError(ChunkVaultError):
    """AES-GCM tag check failed: wrong passphrase or corrupted data."""

    kind = "authentication"


class IntegrityError(ChunkVaultError):
    """Reassembled output is inconsistent (missing chunk, length mismatch)."""

    kind = "integrity"


class StoreError(ChunkVaultError):
    """Base exception for remote store errors."""

    kind = "store"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(StoreError):
    """Transient transport failure. Retried before being surfaced."""

    kind = "network"


class NotFoundError(StoreError):
    """Container or object not found."""

    kind = "not-found"


class UnauthorizedError(StoreError):
    """The store rejected our credentials."""

    kind = "unauthorized"


class DuplicateContainerError(StoreError):
    """A container with the requested name already exists."""

    kind = "duplicate"
