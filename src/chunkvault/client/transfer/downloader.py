"""File download with per-chunk decryption and reassembly.

This module provides:
- FileDownloader: fetches a container's chunks under bounded concurrency,
  decrypts them and reassembles the original bytes in index order
- DownloadResult: the recovered file
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from chunkvault.client.storage import BlobStore
from chunkvault.client.transfer.progress import ProgressCallback
from chunkvault.client.transfer.reassembly import merge
from chunkvault.client.transfer.retry import RetryPolicy
from chunkvault.client.transfer.scheduler import TransferJob, TransferScheduler
from chunkvault.core.config import TransferConfig
from chunkvault.core.crypto import decrypt_chunk
from chunkvault.core.errors import IntegrityError, NotFoundError, ValidationError
from chunkvault.core.naming import chunk_index, order_descriptors
from chunkvault.core.types import ChunkDescriptor, RemoteContainer, TransferType

logger = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    """A downloaded and decrypted file."""

    name: str
    data: bytes
    chunk_count: int

    @property
    def size(self) -> int:
        return len(self.data)


class FileDownloader:
    """Downloads, decrypts and reassembles files from a BlobStore.

    The whole file is held in memory. On any failure nothing is returned,
    so a partially decrypted file is never exposed.
    """

    def __init__(
        self,
        store: BlobStore,
        config: TransferConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
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

    async def resolve(self, name: str) -> RemoteContainer:
        """Find a container by name.

        Raises:
            NotFoundError: If no container has that name.
        """
        container = await self._store.find_container(name)
        if container is None:
            raise NotFoundError(f"No such file: {name}", 404)
        return container

    async def download(
        self,
        name: str,
        passphrase: str,
        on_progress: ProgressCallback | None = None,
    ) -> DownloadResult:
        """Download and decrypt a file.

        Args:
            name: Container name of the file.
            passphrase: Passphrase used at upload time.
            on_progress: Called after every chunk completes.

        Returns:
            DownloadResult holding the reassembled bytes.

        Raises:
            ValidationError: If name or passphrase is missing.
            NotFoundError: If the container does not exist.
            AuthenticationError: If any chunk fails its tag check.
            IntegrityError: If the upload never completed, chunks are missing
                or reassembly is inconsistent.
            NetworkError: If a chunk still fails after all retries.
        """
        if not name:
            raise ValidationError("A file name is required")
        if not passphrase:
            raise ValidationError("A passphrase is required")

        container = await self.resolve(name)
        if container.chunk_count is None or container.size is None:
            raise IntegrityError(f"{container.name} has no completion record (incomplete upload)")
        total = container.chunk_count
        descriptors = order_descriptors(await self._store.list_children(container.id))
        if len(descriptors) != total:
            raise IntegrityError(
                f"{container.name} holds {len(descriptors)} chunks, expected {total}"
            )
        logger.info(f"Downloading {container.name} ({total} chunks)")

        job = TransferJob.create(container.name, TransferType.DOWNLOAD, total, on_progress)
        plaintext: dict[int, bytes] = {}
        units = [self._make_unit(d, passphrase, plaintext) for d in descriptors]
        await self._scheduler.run(job, units)

        data = merge(plaintext, total, expected_size=container.size)
        return DownloadResult(name=container.name, data=data, chunk_count=total)

    def _make_unit(
        self,
        descriptor: ChunkDescriptor,
        passphrase: str,
        plaintext: dict[int, bytes],
    ) -> Callable[[], Awaitable[int]]:
        index = chunk_index(descriptor)

        async def download_chunk() -> int:
            blob = await self._store.download_object(descriptor.remote_id)
            plaintext[index] = await asyncio.to_thread(decrypt_chunk, blob, passphrase)
            logger.debug(f"Decrypted {descriptor.name} ({len(plaintext[index])} bytes)")
            return index

        return download_chunk
