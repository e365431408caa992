"""File commands for the chunkvault CLI.

Commands:
- configure: Select the store and save credentials
- upload: Encrypt and upload a file
- download: Download and decrypt a file
- list: List stored files
- delete: Delete a stored file and its chunks
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from chunkvault.client.cli.config import STORE_TYPES, build_store, load_config, save_config
from chunkvault.client.storage import BlobStore
from chunkvault.client.transfer import (
    DownloadResult,
    FileDownloader,
    FileUploader,
    ProgressUpdate,
    UploadResult,
)
from chunkvault.core.chunking import DEFAULT_CHUNK_SIZE, read_source
from chunkvault.core.config import DEFAULT_CONCURRENCY, TransferConfig
from chunkvault.core.errors import ChunkVaultError, NotFoundError
from chunkvault.core.types import RemoteContainer

T = TypeVar("T")


def _run(operation: Callable[[BlobStore], Awaitable[T]]) -> T:
    """Run an async operation against the configured store.

    Exits with status 1 and a single error line on any chunkvault error.
    """

    async def runner() -> T:
        async with build_store() as store:
            return await operation(store)

    try:
        return asyncio.run(runner())
    except ChunkVaultError as e:
        click.echo(f"Error: {e.kind}: {e}", err=True)
        sys.exit(1)


def _progress_printer(label: str, enabled: bool) -> Callable[[ProgressUpdate], None] | None:
    if not enabled:
        return None

    def show(update: ProgressUpdate) -> None:
        click.echo(
            f"\r{label}: {update.percent:5.1f}% ({update.completed}/{update.total} chunks)",
            nl=update.completed == update.total,
            err=True,
        )

    return show


@click.command()
@click.option("--store", type=click.Choice(STORE_TYPES), required=True, help="Store backend.")
@click.option("--token", help="Bearer token for the drive store.")
@click.option(
    "--storage-path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the local store.",
)
def configure(store: str, token: str | None, storage_path: Path | None) -> None:
    """Select the store and save its settings."""
    config = load_config()
    config["store"] = store
    if token:
        config["token"] = token
    if storage_path:
        config["storage_path"] = str(storage_path.expanduser().resolve())
    save_config(config)
    click.echo(f"Configured {store} store.")


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", help="Remote name (defaults to the file name).")
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=DEFAULT_CHUNK_SIZE,
    show_default=True,
    help="Chunk size in bytes.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    help="Chunks transferred in parallel.",
)
@click.option(
    "--passphrase",
    envvar="CHUNKVAULT_PASSPHRASE",
    prompt="Enter passphrase",
    hide_input=True,
    confirmation_prompt=True,
    help="Encryption passphrase (prompted if omitted).",
)
@click.option("--no-progress", is_flag=True, help="Disable progress output.")
def upload(
    file: Path,
    name: str | None,
    chunk_size: int,
    concurrency: int,
    passphrase: str,
    no_progress: bool,
) -> None:
    """Encrypt FILE chunk by chunk and upload it."""
    config = TransferConfig(chunk_size=chunk_size, concurrency=concurrency)

    async def operation(store: BlobStore) -> UploadResult:
        source = read_source(file)
        uploader = FileUploader(store, config)
        return await uploader.upload(
            source,
            passphrase,
            container_name=name,
            on_progress=_progress_printer("Uploading", not no_progress),
        )

    result = _run(operation)
    click.echo(f"Uploaded {result.name} ({result.size} bytes, {result.chunk_count} chunks).")


@click.command()
@click.argument("name")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output path (defaults to decrypted_<NAME>).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing output file.")
@click.option(
    "--passphrase",
    envvar="CHUNKVAULT_PASSPHRASE",
    prompt="Enter passphrase",
    hide_input=True,
    help="Decryption passphrase (prompted if omitted).",
)
@click.option("--no-progress", is_flag=True, help="Disable progress output.")
def download(
    name: str,
    output: Path | None,
    force: bool,
    passphrase: str,
    no_progress: bool,
) -> None:
    """Download NAME and decrypt it to a local file."""
    output = output or Path(f"decrypted_{Path(name).name}")
    if output.exists() and not force:
        click.echo(f"Error: {output} already exists (use --force to overwrite).", err=True)
        sys.exit(1)

    async def operation(store: BlobStore) -> DownloadResult:
        downloader = FileDownloader(store)
        return await downloader.download(
            name,
            passphrase,
            on_progress=_progress_printer("Downloading", not no_progress),
        )

    result = _run(operation)
    output.write_bytes(result.data)
    click.echo(f"Saved {result.name} to {output} ({result.size} bytes).")


@click.command(name="list")
def list_files() -> None:
    """List stored files."""

    async def operation(store: BlobStore) -> list[RemoteContainer]:
        return await store.list_containers()

    containers = _run(operation)
    if not containers:
        click.echo("No files found.")
        return
    for container in containers:
        suffix = "" if container.complete else " (incomplete)"
        click.echo(f"{container.name}{suffix}")


@click.command()
@click.argument("name")
@click.confirmation_option(prompt="Are you sure you want to delete this file?")
def delete(name: str) -> None:
    """Delete NAME and all of its chunks."""

    async def operation(store: BlobStore) -> None:
        container = await store.find_container(name)
        if container is None:
            raise NotFoundError(f"No such file: {name}", 404)
        await store.delete_container(container.id)

    _run(operation)
    click.echo(f"Deleted {name}.")
