"""File upload with chunking and per-chunk encryption.

This module provides:
- FileUploader: splits a file, encrypts each chunk and uploads it to a
  BlobStore under bounded concurrency
- UploadResult: what ended up on the store
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from chunkvault.client.storage import BlobStore
from chunkvault.client.transfer.progress import ProgressCallback
from chunkvault.client.transfer.retry import RetryPolicy
from chunkvault.client.transfer.scheduler import TransferJob, TransferScheduler
from chunkvault.core.chunking import Chunk, chunk_count, split
from chunkvault.core.config import TransferConfig
from chunkvault.core.crypto import encrypt_chunk
from chunkvault.core.errors import DuplicateContainerError, ValidationError
from chunkvault.core.naming import chunk_name
from chunkvault.core.types import ChunkDescriptor, SourceFile, TransferType

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Result of a successful upload."""

    container_id: str
    name: str
    size: int
    chunks: list[ChunkDescriptor] = field(default_factory=list)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


class FileUploader:
    """Encrypts and uploads files as one container of chunk objects.

    A failed upload leaves the chunks it already sent in the container;
    nothing is cleaned up automatically. Only an upload whose every chunk
    succeeded records its chunk count and size on the container, which is
    what makes it downloadable.
    """

    def __init__(
        self,
        store: BlobStore,
        config: TransferConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            store: Remote store receiving the chunks.
            config: Chunk size, concurrency and retry settings.
            retry_policy: Overrides the policy built from config.
        """
        self._store = store
        self._config = config or TransferConfig()
        self._scheduler = TransferScheduler(
            concurrency=self._config.concurrency,
            retry_policy=retry_policy
            or RetryPolicy(
                max_attempts=self._config.max_attempts,
                base_delay=self._config.base_delay,
            ),
        )

    async def upload(
        self,
        source: SourceFile,
        passphrase: str,
        container_name: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload a file.

        Args:
            source: The file to upload.
            passphrase: Passphrase for per-chunk key derivation.
            container_name: Remote name (defaults to the source name).
            on_progress: Called after every chunk completes.

        Returns:
            UploadResult with the container id and chunk descriptors.

        Raises:
            ValidationError: If the file name or passphrase is missing.
            DuplicateContainerError: If the container name is taken.
            NetworkError: If a chunk still fails after all retries.
        """
        name = container_name or source.name
        if not name:
            raise ValidationError("A file name is required")
        if not passphrase:
            raise ValidationError("A passphrase is required")

        if await self._store.container_exists(name):
            raise DuplicateContainerError(f"Container already exists: {name}", 409)

        total = chunk_count(source.size, self._config.chunk_size)
        logger.info(f"Uploading {name} ({source.size} bytes, {total} chunks)")

        container_id = await self._store.create_container(name)
        job = TransferJob.create(name, TransferType.UPLOAD, total, on_progress)
        units = [
            self._make_unit(container_id, chunk, passphrase)
            for chunk in split(source.data, self._config.chunk_size)
        ]
        descriptors = await self._scheduler.run(job, units)
        await self._scheduler.retry_policy.call(
            lambda: self._store.finalize_container(container_id, total, source.size),
            description=f"finalize {name}",
        )

        return UploadResult(
            container_id=container_id,
            name=name,
            size=source.size,
            chunks=descriptors,
        )

    def _make_unit(
        self, container_id: str, chunk: Chunk, passphrase: str
    ) -> Callable[[], Awaitable[ChunkDescriptor]]:
        """Build the upload unit for one chunk.

        The chunk is encrypted on the first attempt only; retries resend the
        same ciphertext.
        """
        payload: bytes | None = None
        name = chunk_name(chunk.index)

        async def upload_chunk() -> ChunkDescriptor:
            nonlocal payload
            if payload is None:
                encrypted = await asyncio.to_thread(encrypt_chunk, chunk, passphrase)
                payload = encrypted.to_bytes()
            handle = await self._store.start_upload(
                container_id, name, len(payload), index=chunk.index
            )
            remote_id = await self._store.write_bytes(handle, payload)
            logger.debug(f"Uploaded {name} ({len(payload)} bytes) as {remote_id}")
            return ChunkDescriptor(
                remote_id=remote_id,
                name=name,
                size=len(payload),
                index=chunk.index,
            )

        return upload_chunk
