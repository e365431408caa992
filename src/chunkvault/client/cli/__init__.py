"""Command-line interface for chunkvault.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Select the store and save credentials
- upload: Encrypt and upload a file
- download: Download and decrypt a file
- list: List stored files
- delete: Delete a stored file and its chunks
"""

from __future__ import annotations

import logging
import sys

import click

from chunkvault import __version__
from chunkvault.client.cli.config import (
    build_store,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from chunkvault.client.cli.files import configure, delete, download, list_files, upload

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool) -> None:
    """Configure the chunkvault logger to write to stderr.

    Args:
        verbose: Log DEBUG messages instead of warnings and errors only.
    """
    root_logger = logging.getLogger("chunkvault")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)


@click.group()
@click.version_option(__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """chunkvault - Passphrase-encrypted chunked file storage."""
    setup_logging(verbose)


cli.add_command(configure)
cli.add_command(upload)
cli.add_command(download)
cli.add_command(list_files)
cli.add_command(delete)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "build_store",
    "cli",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "main",
    "save_config",
    "setup_logging",
]
