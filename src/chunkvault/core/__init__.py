"""Core module - Chunking, crypto, naming and shared types."""

from chunkvault.core.chunking import (
    DEFAULT_CHUNK_SIZE,
    Chunk,
    chunk_count,
    chunk_file,
    read_source,
    split,
)
from chunkvault.core.config import StoreConfig, TransferConfig
from chunkvault.core.crypto import (
    EncryptedChunk,
    decrypt_chunk,
    derive_key,
    encrypt_chunk,
    generate_salt,
)
from chunkvault.core.errors import (
    AuthenticationError,
    ChunkVaultError,
    DuplicateContainerError,
    IntegrityError,
    KeyDerivationError,
    NetworkError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)
from chunkvault.core.naming import chunk_name, order_descriptors, parse_chunk_number
from chunkvault.core.types import (
    ChunkDescriptor,
    RemoteContainer,
    SourceFile,
    TransferStatus,
    TransferType,
)

__all__ = [
    # Chunking
    "DEFAULT_CHUNK_SIZE",
    "Chunk",
    "chunk_count",
    "chunk_file",
    "read_source",
    "split",
    # Config
    "StoreConfig",
    "TransferConfig",
    # Crypto
    "EncryptedChunk",
    "decrypt_chunk",
    "derive_key",
    "encrypt_chunk",
    "generate_salt",
    # Errors
    "AuthenticationError",
    "ChunkVaultError",
    "DuplicateContainerError",
    "IntegrityError",
    "KeyDerivationError",
    "NetworkError",
    "NotFoundError",
    "StoreError",
    "UnauthorizedError",
    "ValidationError",
    # Naming
    "chunk_name",
    "order_descriptors",
    "parse_chunk_number",
    # Types
    "ChunkDescriptor",
    "RemoteContainer",
    "SourceFile",
    "TransferStatus",
    "TransferType",
]
