"""Cryptographic functions for chunkvault.

This module provides:
- Key derivation using PBKDF2-HMAC-SHA256 (100,000 iterations)
- Authenticated per-chunk encryption using AES-256-GCM

Every chunk gets its own salt and nonce, so an encrypted chunk is
self-contained: the passphrase alone is enough to decrypt it.

Wire format: salt (16 bytes) || nonce (12 bytes) || ciphertext || tag (16 bytes)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from chunkvault.core.chunking import Chunk
from chunkvault.core.errors import AuthenticationError, KeyDerivationError

# PBKDF2 parameters
PBKDF2_ITERATIONS = 100_000
KEY_SIZE = 32  # 256 bits

# AES-GCM constants
SALT_SIZE = 16  # 128 bits
NONCE_SIZE = 12  # 96 bits (recommended for AES-GCM)
TAG_SIZE = 16
HEADER_SIZE = SALT_SIZE + NONCE_SIZE


@dataclass(frozen=True)
class EncryptedChunk:
    """An encrypted chunk as stored remotely.

    Attributes:
        salt: 16-byte PBKDF2 salt.
        iv: 12-byte AES-GCM nonce.
        ciphertext: Ciphertext with the 16-byte tag appended.
    """

    salt: bytes
    iv: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        """Serialize as salt || iv || ciphertext."""
        return self.salt + self.iv + self.ciphertext

    @classmethod
    def from_bytes(cls, blob: bytes) -> EncryptedChunk:
        """Parse the wire format.

        Raises:
            AuthenticationError: If the blob is too short to hold a header and tag.
        """
        if len(blob) < HEADER_SIZE + TAG_SIZE:
            raise AuthenticationError(
                f"Encrypted chunk too short ({len(blob)} bytes): corrupted data"
            )
        return cls(
            salt=blob[:SALT_SIZE],
            iv=blob[SALT_SIZE:HEADER_SIZE],
            ciphertext=blob[HEADER_SIZE:],
        )

    def __len__(self) -> int:
        return HEADER_SIZE + len(self.ciphertext)


def generate_salt() -> bytes:
    """Generate a cryptographically secure random salt.

    Returns:
        16 bytes of random data for use as salt in key derivation.
    """
    return os.urandom(SALT_SIZE)


def derive_key(passphrase: str, salt: bytes) -> bytes:
    """Derive a 256-bit key from a passphrase using PBKDF2-HMAC-SHA256.

    Args:
        passphrase: The user's passphrase.
        salt: A 16-byte salt (use generate_salt()).

    Returns:
        32 bytes (256 bits) derived key suitable for AES-256.

    Raises:
        KeyDerivationError: If the passphrase is not a string or the salt
            is not exactly 16 bytes.
    """
    if not isinstance(passphrase, str):
        raise KeyDerivationError("Passphrase must be a string")
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
        raise KeyDerivationError(f"Salt must be exactly {SALT_SIZE} bytes")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=bytes(salt),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt_chunk(chunk: Chunk | bytes, passphrase: str) -> EncryptedChunk:
    """Encrypt one chunk with a fresh salt, nonce and derived key.

    Args:
        chunk: The chunk (or raw plaintext bytes) to encrypt.
        passphrase: The user's passphrase.

    Returns:
        EncryptedChunk holding salt, iv and tagged ciphertext.
    """
    data = chunk.data if isinstance(chunk, Chunk) else chunk
    salt = generate_salt()
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(passphrase, salt)
    ciphertext = AESGCM(key).encrypt(nonce, data, None)
    return EncryptedChunk(salt=salt, iv=nonce, ciphertext=ciphertext)


def decrypt_chunk(encrypted: EncryptedChunk | bytes, passphrase: str) -> bytes:
    """Decrypt a chunk produced by encrypt_chunk.

    Args:
        encrypted: An EncryptedChunk or its serialized wire format.
        passphrase: The user's passphrase.

    Returns:
        Decrypted plaintext data.

    Raises:
        AuthenticationError: If the tag check fails (wrong passphrase or
            tampered data). No plaintext is returned in that case.
    """
    if not isinstance(encrypted, EncryptedChunk):
        encrypted = EncryptedChunk.from_bytes(encrypted)

    key = derive_key(passphrase, encrypted.salt)
    try:
        return AESGCM(key).decrypt(encrypted.iv, encrypted.ciphertext, None)
    except InvalidTag:
        raise AuthenticationError("Wrong passphrase or corrupted data") from None
