"""Configuration utilities for the chunkvault CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from chunkvault.client.api import DriveStore
from chunkvault.client.storage import BlobStore, LocalFSStore
from chunkvault.core.config import StoreConfig
from chunkvault.core.errors import ValidationError

STORE_TYPES = ("drive", "local")


def get_config_dir() -> Path:
    """Get the configuration directory for chunkvault.

    Returns:
        Path to ~/.chunkvault or equivalent.
    """
    return Path.home() / ".chunkvault"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))
    # The file may hold a bearer token
    config_file.chmod(0o600)


def get_storage_path(config: dict[str, str]) -> Path:
    """Get the local store directory (configured or default ~/.chunkvault/storage)."""
    path = os.environ.get("CHUNKVAULT_STORAGE_PATH") or config.get("storage_path")
    if path:
        return Path(path).expanduser().resolve()
    return get_config_dir() / "storage"


def build_store(config: dict[str, str] | None = None) -> BlobStore:
    """Create the store selected by config and environment.

    CHUNKVAULT_STORE overrides the configured store type.

    Raises:
        ValidationError: If the store type is unknown or a token is missing.
    """
    if config is None:
        config = load_config()
    store_type = os.environ.get("CHUNKVAULT_STORE") or config.get("store", "local")
    if store_type == "local":
        return LocalFSStore(get_storage_path(config))
    if store_type == "drive":
        return DriveStore(StoreConfig.from_env(config.get("token")))
    raise ValidationError(f"Unknown store type: {store_type!r}")
