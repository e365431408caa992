"""HTTP client for a Google Drive v3 style blob store.

This module provides:
- DriveStore: BlobStore backed by the Drive REST API
- Folder operations (find, create, list, delete) for containers
- Resumable chunk uploads and raw chunk downloads

The bearer token lives in the StoreConfig handed to the store; every
request carries it explicitly.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chunkvault.client.storage import BlobStore
from chunkvault.core.config import StoreConfig
from chunkvault.core.errors import (
    DuplicateContainerError,
    NetworkError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
)
from chunkvault.core.types import ChunkDescriptor, RemoteContainer

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
CHUNK_MIME_TYPE = "application/octet-stream"
PAGE_SIZE = 1000

# appProperties marking folders created by chunkvault
CONTAINER_TAG_KEY = "chunkvault"
CONTAINER_TAG_VALUE = "container"
CONTAINER_QUERY = (
    f"mimeType = '{FOLDER_MIME_TYPE}' and trashed = false "
    f"and appProperties has {{ key='{CONTAINER_TAG_KEY}' and value='{CONTAINER_TAG_VALUE}' }}"
)
CONTAINER_FIELDS = "id, name, appProperties"

# Status codes worth retrying
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def _quote(value: str) -> str:
    """Escape a string literal for a Drive search query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _json_field(response: httpx.Response, key: str) -> Any:
    """Read one field of a JSON response body.

    Raises:
        StoreError: If the body is not JSON or lacks the field.
    """
    try:
        return response.json()[key]
    except (ValueError, KeyError, TypeError) as e:
        raise StoreError(
            f"Unexpected response from {response.request.method} {response.request.url}: "
            f"missing {key!r}",
            response.status_code,
        ) from e


def _to_container(file: dict[str, Any]) -> RemoteContainer:
    props = file.get("appProperties") or {}
    chunk_count = props.get("chunkCount")
    size = props.get("size")
    return RemoteContainer(
        id=file["id"],
        name=file["name"],
        chunk_count=int(chunk_count) if chunk_count is not None else None,
        size=int(size) if size is not None else None,
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", response.reason_phrase))
    return response.reason_phrase


class DriveStore(BlobStore):
    """Blob store talking to the Google Drive v3 REST API.

    Containers are folders tagged through appProperties, so folders the
    user created themselves are never listed. Chunk objects are files
    inside them. The chunk index is also written to appProperties so
    listing does not depend on name parsing alone, and a finished upload
    records its chunk count and size on the folder.
    """

    def __init__(
        self,
        config: StoreConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the store client.

        Args:
            config: Store configuration carrying base URL and token.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"Authorization": f"Bearer {config.token}"},
            transport=transport,
        )

    @property
    def location(self) -> str:
        return f"Drive: {self._config.base_url}"

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map failures onto the store error taxonomy."""
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        status = response.status_code
        if status < 400:
            return response
        detail = _error_detail(response)
        if status in TRANSIENT_STATUS_CODES:
            raise NetworkError(detail, status)
        if status in (401, 403):
            raise UnauthorizedError(detail, status)
        if status == 404:
            raise NotFoundError(detail, status)
        raise StoreError(detail, status)

    async def _list_files(self, query: str, fields: str) -> list[dict[str, Any]]:
        """Run a files.list query, following nextPageToken."""
        files: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "q": query,
                "fields": f"nextPageToken, files({fields})",
                "pageSize": PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token
            response = await self._request("GET", "/drive/v3/files", params=params)
            files.extend(_json_field(response, "files"))
            page_token = response.json().get("nextPageToken")
            if not page_token:
                return files

    # === Containers ===

    async def find_container(self, name: str) -> RemoteContainer | None:
        query = f"name = '{_quote(name)}' and {CONTAINER_QUERY}"
        files = await self._list_files(query, CONTAINER_FIELDS)
        if not files:
            return None
        return _to_container(files[0])

    async def create_container(self, name: str) -> str:
        if await self.container_exists(name):
            raise DuplicateContainerError(f"Container already exists: {name}", 409)
        response = await self._request(
            "POST",
            "/drive/v3/files",
            params={"fields": "id"},
            json={
                "name": name,
                "mimeType": FOLDER_MIME_TYPE,
                "appProperties": {CONTAINER_TAG_KEY: CONTAINER_TAG_VALUE},
            },
        )
        container_id: str = _json_field(response, "id")
        logger.debug(f"Created container {name} ({container_id})")
        return container_id

    async def finalize_container(self, container_id: str, chunk_count: int, size: int) -> None:
        await self._request(
            "PATCH",
            f"/drive/v3/files/{container_id}",
            params={"fields": "id"},
            json={"appProperties": {"chunkCount": str(chunk_count), "size": str(size)}},
        )
        logger.debug(f"Finalized container {container_id} ({chunk_count} chunks)")

    async def list_containers(self) -> list[RemoteContainer]:
        files = await self._list_files(CONTAINER_QUERY, CONTAINER_FIELDS)
        return [_to_container(f) for f in files]

    async def list_children(self, container_id: str) -> list[ChunkDescriptor]:
        query = f"'{_quote(container_id)}' in parents and trashed = false"
        files = await self._list_files(query, "id, name, size, appProperties")
        descriptors = []
        for f in files:
            index = (f.get("appProperties") or {}).get("chunkIndex")
            descriptors.append(
                ChunkDescriptor(
                    remote_id=f["id"],
                    name=f["name"],
                    size=int(f.get("size", 0)),
                    index=int(index) if index is not None else None,
                )
            )
        return descriptors

    async def delete_container(self, container_id: str) -> None:
        await self._request("DELETE", f"/drive/v3/files/{container_id}")
        logger.debug(f"Deleted container {container_id}")

    # === Objects ===

    async def start_upload(
        self,
        container_id: str,
        name: str,
        size: int,
        index: int | None = None,
    ) -> str:
        metadata: dict[str, Any] = {
            "name": name,
            "parents": [container_id],
            "mimeType": CHUNK_MIME_TYPE,
        }
        if index is not None:
            metadata["appProperties"] = {"chunkIndex": str(index)}
        response = await self._request(
            "POST",
            "/upload/drive/v3/files",
            params={"uploadType": "resumable"},
            json=metadata,
            headers={
                "X-Upload-Content-Type": CHUNK_MIME_TYPE,
                "X-Upload-Content-Length": str(size),
            },
        )
        location = response.headers.get("Location")
        if not location:
            raise StoreError("Resumable upload did not return a session URI")
        return location

    async def write_bytes(self, handle: str, data: bytes) -> str:
        response = await self._request(
            "PUT",
            handle,
            content=data,
            headers={"Content-Type": CHUNK_MIME_TYPE},
        )
        object_id: str = _json_field(response, "id")
        return object_id

    async def download_object(self, object_id: str) -> bytes:
        response = await self._request(
            "GET", f"/drive/v3/files/{object_id}", params={"alt": "media"}
        )
        return response.content
