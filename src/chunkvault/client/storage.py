"""Remote blob store abstraction for encrypted chunks.

This module provides:
- BlobStore: abstract async interface for containers and chunk objects
- LocalFSStore: directory-backed store for development and testing

A container represents one logical file and holds its chunk objects.
Uploads are two-step: start_upload() reserves a handle sized to the exact
byte length, write_bytes() sends the payload and returns the object id.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from chunkvault.core.errors import DuplicateContainerError, NotFoundError, StoreError
from chunkvault.core.types import ChunkDescriptor, RemoteContainer

logger = logging.getLogger(__name__)

MANIFEST_NAME = ".manifest.json"


class BlobStore(ABC):
    """Abstract interface for a remote container/object store."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where chunks are stored."""

    @abstractmethod
    async def find_container(self, name: str) -> RemoteContainer | None:
        """Look up a container by name.

        Returns:
            The container, or None if no container has that name.
        """

    async def container_exists(self, name: str) -> bool:
        """Check whether a container with this name exists."""
        return await self.find_container(name) is not None

    @abstractmethod
    async def create_container(self, name: str) -> str:
        """Create a container.

        Returns:
            The new container id.

        Raises:
            DuplicateContainerError: If a container with that name exists.
        """

    @abstractmethod
    async def finalize_container(self, container_id: str, chunk_count: int, size: int) -> None:
        """Record that every chunk of a container was uploaded.

        Containers without this record are treated as incomplete uploads.
        """

    @abstractmethod
    async def list_containers(self) -> list[RemoteContainer]:
        """List all containers."""

    @abstractmethod
    async def list_children(self, container_id: str) -> list[ChunkDescriptor]:
        """List the chunk objects of a container, in no particular order."""

    @abstractmethod
    async def start_upload(
        self,
        container_id: str,
        name: str,
        size: int,
        index: int | None = None,
    ) -> str:
        """Open an upload for one object.

        Args:
            container_id: Parent container.
            name: Object name.
            size: Exact number of bytes that will be written.
            index: Chunk index to keep as metadata, if the store supports it.

        Returns:
            An opaque upload handle for write_bytes().
        """

    @abstractmethod
    async def write_bytes(self, handle: str, data: bytes) -> str:
        """Send the payload for an upload handle.

        Returns:
            The id of the stored object.
        """

    @abstractmethod
    async def download_object(self, object_id: str) -> bytes:
        """Fetch the raw bytes of an object.

        Raises:
            NotFoundError: If the object does not exist.
        """

    @abstractmethod
    async def delete_container(self, container_id: str) -> None:
        """Delete a container and all of its objects."""

    async def close(self) -> None:
        """Release any underlying resources."""

    async def __aenter__(self) -> BlobStore:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


@dataclass
class _PendingUpload:
    path: Path
    size: int


class LocalFSStore(BlobStore):
    """Local filesystem store for development and testing.

    Each container is a directory under base_path named after the logical
    file; each chunk is a file inside it. Container ids are directory names
    and object ids are "<container>/<object name>". A completed upload
    leaves a manifest file holding the chunk count and size.
    """

    def __init__(self, base_path: Path | str) -> None:
        """Initialize local storage.

        Args:
            base_path: Base directory for containers.
        """
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._pending: dict[str, _PendingUpload] = {}

    @property
    def location(self) -> str:
        """Return the local storage path."""
        return f"Local filesystem: {self._base_path}"

    def _container_path(self, container_id: str) -> Path:
        path = (self._base_path / container_id).resolve()
        if path.parent != self._base_path:
            raise StoreError(f"Invalid container id: {container_id!r}")
        return path

    def _object_path(self, object_id: str) -> Path:
        container_id, sep, name = object_id.partition("/")
        if not sep or not name or "/" in name:
            raise NotFoundError(f"Object not found: {object_id}", 404)
        return self._container_path(container_id) / name

    def _container_info(self, path: Path) -> RemoteContainer:
        manifest_path = path / MANIFEST_NAME
        if not manifest_path.is_file():
            return RemoteContainer(id=path.name, name=path.name)
        try:
            manifest = json.loads(manifest_path.read_text())
            return RemoteContainer(
                id=path.name,
                name=path.name,
                chunk_count=int(manifest["chunk_count"]),
                size=int(manifest["size"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Unreadable manifest for {path.name}: {e}") from e

    async def find_container(self, name: str) -> RemoteContainer | None:
        path = self._container_path(name)
        if path.is_dir():
            return self._container_info(path)
        return None

    async def create_container(self, name: str) -> str:
        path = self._container_path(name)
        try:
            path.mkdir()
        except FileExistsError:
            raise DuplicateContainerError(f"Container already exists: {name}", 409) from None
        logger.debug(f"Created container {name}")
        return name

    async def finalize_container(self, container_id: str, chunk_count: int, size: int) -> None:
        path = self._container_path(container_id)
        if not path.is_dir():
            raise NotFoundError(f"Container not found: {container_id}", 404)
        manifest = json.dumps({"chunk_count": chunk_count, "size": size})
        await asyncio.to_thread((path / MANIFEST_NAME).write_text, manifest)
        logger.debug(f"Finalized container {container_id} ({chunk_count} chunks)")

    async def list_containers(self) -> list[RemoteContainer]:
        return [
            self._container_info(path)
            for path in sorted(self._base_path.iterdir())
            if path.is_dir()
        ]

    async def list_children(self, container_id: str) -> list[ChunkDescriptor]:
        path = self._container_path(container_id)
        if not path.is_dir():
            raise NotFoundError(f"Container not found: {container_id}", 404)
        return [
            ChunkDescriptor(
                remote_id=f"{container_id}/{child.name}",
                name=child.name,
                size=child.stat().st_size,
            )
            for child in path.iterdir()
            if child.is_file() and child.name != MANIFEST_NAME
        ]

    async def start_upload(
        self,
        container_id: str,
        name: str,
        size: int,
        index: int | None = None,
    ) -> str:
        path = self._container_path(container_id)
        if not path.is_dir():
            raise NotFoundError(f"Container not found: {container_id}", 404)
        handle = uuid.uuid4().hex
        self._pending[handle] = _PendingUpload(path=path / name, size=size)
        return handle

    async def write_bytes(self, handle: str, data: bytes) -> str:
        pending = self._pending.pop(handle, None)
        if pending is None:
            raise StoreError(f"Unknown upload handle: {handle}")
        if len(data) != pending.size:
            raise StoreError(
                f"Upload size mismatch for {pending.path.name}: "
                f"declared {pending.size}, got {len(data)}"
            )
        await asyncio.to_thread(pending.path.write_bytes, data)
        return f"{pending.path.parent.name}/{pending.path.name}"

    async def download_object(self, object_id: str) -> bytes:
        path = self._object_path(object_id)
        if not path.is_file():
            raise NotFoundError(f"Object not found: {object_id}", 404)
        return await asyncio.to_thread(path.read_bytes)

    async def delete_container(self, container_id: str) -> None:
        path = self._container_path(container_id)
        if not path.is_dir():
            raise NotFoundError(f"Container not found: {container_id}", 404)
        for child in path.iterdir():
            child.unlink()
        path.rmdir()
        logger.debug(f"Deleted container {container_id}")
