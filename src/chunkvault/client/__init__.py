"""Client module - Remote stores, transfer pipeline and CLI."""

from chunkvault.client.api import DriveStore
from chunkvault.client.storage import BlobStore, LocalFSStore

__all__ = [
    "BlobStore",
    "DriveStore",
    "LocalFSStore",
]
