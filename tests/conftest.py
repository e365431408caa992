"""Shared fixtures: an instrumented in-memory blob store."""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from dataclasses import dataclass

import pytest

from chunkvault.client.storage import BlobStore
from chunkvault.core.config import TransferConfig
from chunkvault.core.errors import DuplicateContainerError, NetworkError, NotFoundError, StoreError
from chunkvault.core.types import ChunkDescriptor, RemoteContainer


@dataclass
class StoredObject:
    container_id: str
    name: str
    data: bytes
    index: int | None


class FakeStore(BlobStore):
    """In-memory BlobStore with failure injection and concurrency accounting.

    Attributes:
        upload_failures: Object name -> number of write_bytes calls to fail.
        download_failures: Object name -> number of download_object calls to fail.
        keep_index: Return chunk index metadata from list_children.
        reverse_listing: List children in reverse creation order.
        latency: Seconds each transfer call spends "in flight".
    """

    def __init__(
        self,
        keep_index: bool = True,
        reverse_listing: bool = True,
        latency: float = 0.001,
    ) -> None:
        self.keep_index = keep_index
        self.reverse_listing = reverse_listing
        self.latency = latency
        self.containers: dict[str, str] = {}  # id -> name
        self.manifests: dict[str, tuple[int, int]] = {}  # id -> (chunk_count, size)
        self.objects: dict[str, StoredObject] = {}
        self.upload_failures: dict[str, int] = defaultdict(int)
        self.download_failures: dict[str, int] = defaultdict(int)
        self.write_attempts: dict[str, int] = defaultdict(int)
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._ids = itertools.count(1)
        self._pending: dict[str, tuple[str, str, int, int | None]] = {}

    @property
    def location(self) -> str:
        return "memory"

    async def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.latency)

    def _leave(self) -> None:
        self.in_flight -= 1

    def _container(self, container_id: str) -> RemoteContainer:
        chunk_count, size = self.manifests.get(container_id, (None, None))
        return RemoteContainer(
            id=container_id,
            name=self.containers[container_id],
            chunk_count=chunk_count,
            size=size,
        )

    async def find_container(self, name: str) -> RemoteContainer | None:
        for container_id, container_name in self.containers.items():
            if container_name == name:
                return self._container(container_id)
        return None

    async def create_container(self, name: str) -> str:
        if await self.container_exists(name):
            raise DuplicateContainerError(f"Container already exists: {name}", 409)
        container_id = f"c{next(self._ids)}"
        self.containers[container_id] = name
        return container_id

    async def list_containers(self) -> list[RemoteContainer]:
        return [self._container(i) for i in self.containers]

    async def finalize_container(self, container_id: str, chunk_count: int, size: int) -> None:
        if container_id not in self.containers:
            raise NotFoundError(f"Container not found: {container_id}", 404)
        self.manifests[container_id] = (chunk_count, size)

    async def list_children(self, container_id: str) -> list[ChunkDescriptor]:
        if container_id not in self.containers:
            raise NotFoundError(f"Container not found: {container_id}", 404)
        children = [
            ChunkDescriptor(
                remote_id=object_id,
                name=obj.name,
                size=len(obj.data),
                index=obj.index if self.keep_index else None,
            )
            for object_id, obj in self.objects.items()
            if obj.container_id == container_id
        ]
        if self.reverse_listing:
            children.reverse()
        return children

    async def start_upload(
        self,
        container_id: str,
        name: str,
        size: int,
        index: int | None = None,
    ) -> str:
        if container_id not in self.containers:
            raise NotFoundError(f"Container not found: {container_id}", 404)
        handle = f"h{next(self._ids)}"
        self._pending[handle] = (container_id, name, size, index)
        return handle

    async def write_bytes(self, handle: str, data: bytes) -> str:
        container_id, name, size, index = self._pending.pop(handle)
        await self._enter()
        try:
            self.write_attempts[name] += 1
            if self.upload_failures[name] > 0:
                self.upload_failures[name] -= 1
                raise NetworkError(f"Simulated upload failure for {name}", 503)
            if len(data) != size:
                raise StoreError(f"Declared {size} bytes, got {len(data)}")
            object_id = f"o{next(self._ids)}"
            self.objects[object_id] = StoredObject(container_id, name, data, index)
            return object_id
        finally:
            self._leave()

    async def download_object(self, object_id: str) -> bytes:
        await self._enter()
        try:
            obj = self.objects.get(object_id)
            if obj is None:
                raise NotFoundError(f"Object not found: {object_id}", 404)
            if self.download_failures[obj.name] > 0:
                self.download_failures[obj.name] -= 1
                raise NetworkError(f"Simulated download failure for {obj.name}", 503)
            return obj.data
        finally:
            self._leave()

    async def delete_container(self, container_id: str) -> None:
        self.manifests.pop(container_id, None)
        if self.containers.pop(container_id, None) is None:
            raise NotFoundError(f"Container not found: {container_id}", 404)
        for object_id in [i for i, o in self.objects.items() if o.container_id == container_id]:
            del self.objects[object_id]

    async def close(self) -> None:
        self.closed = True

    def chunk_names(self, container_id: str) -> list[str]:
        return sorted(o.name for o in self.objects.values() if o.container_id == container_id)


@pytest.fixture
def fake_store() -> FakeStore:
    """Create an empty in-memory store."""
    return FakeStore()


@pytest.fixture
def transfer_config() -> TransferConfig:
    """Small chunks and no backoff delay, for fast tests."""
    return TransferConfig(chunk_size=1024, concurrency=5, max_attempts=3, base_delay=0.0)


@pytest.fixture
def store_factory() -> type[FakeStore]:
    """Return the FakeStore class for tests that need custom settings."""
    return FakeStore
