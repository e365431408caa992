"""Shared configuration classes for chunkvault.

This module defines the store connection settings and the transfer tuning
knobs used by the upload and download pipelines.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from chunkvault.core.chunking import DEFAULT_CHUNK_SIZE
from chunkvault.core.errors import ValidationError

DEFAULT_BASE_URL = "https://www.googleapis.com"
DEFAULT_CONCURRENCY = 5
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds


@dataclass
class StoreConfig:
    """Configuration for connecting to a remote blob store.

    The credential travels with this object into every store call; there
    is no ambient session.

    Attributes:
        token: OAuth bearer token for the store.
        base_url: Base URL of the store API.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize base URL."""
        self.base_url = self.base_url.rstrip("/")

    def __repr__(self) -> str:
        return f"StoreConfig(base_url={self.base_url!r}, token=***, timeout={self.timeout})"

    @classmethod
    def from_env(cls, token: str | None = None) -> StoreConfig:
        """Build a config, letting CHUNKVAULT_TOKEN override the given token.

        Raises:
            ValidationError: If no token is available.
        """
        token = os.environ.get("CHUNKVAULT_TOKEN") or token
        if not token:
            raise ValidationError("No store token configured (set CHUNKVAULT_TOKEN)")
        return cls(
            token=token,
            base_url=os.environ.get("CHUNKVAULT_BASE_URL", DEFAULT_BASE_URL),
        )


@dataclass
class TransferConfig:
    """Tuning for a single upload or download job.

    Attributes:
        chunk_size: Plaintext bytes per chunk.
        concurrency: Maximum units in flight (batch size).
        max_attempts: Total attempts per unit before it fails permanently.
        base_delay: Backoff unit in seconds; attempt k waits base_delay * k.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValidationError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.concurrency <= 0:
            raise ValidationError(f"concurrency must be positive, got {self.concurrency}")
        if self.max_attempts <= 0:
            raise ValidationError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValidationError(f"base_delay must be >= 0, got {self.base_delay}")
