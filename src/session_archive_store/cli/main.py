"""CLI entry point for session-archive-store.

Invoked as::

    session-archive-store [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m session_archive_store.cli.main

Commands
--------
- version          — Show version information
- key              — Print the remote key for a session (no network)
- exists           — Report whether a session archive exists
- save             — Upload a session archive
- extract          — Download a session archive to a local file
- delete           — Delete a session archive
- delete-previous  — Delete an object by its exact key
"""
from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from session_archive_store.config import StoreConfig
from session_archive_store.errors import StoreError
from session_archive_store.keys import derive_key
from session_archive_store.results import Presence

console = Console()

# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


def _make_store(
    bucket: str | None,
    remote_path: str | None,
    region: str | None,
    endpoint_url: str | None,
    debug: bool,
    accelerate: bool,
) -> Any:
    """Build a ``SessionBlobStore`` over S3 from CLI options and environment.

    Exits with status 2 when the bucket or remote path is missing.
    """
    from session_archive_store.clients.s3 import S3ObjectStoreClient
    from session_archive_store.store import SessionBlobStore

    try:
        config = StoreConfig.from_environment(
            bucket_name=bucket,
            remote_data_path=remote_path,
            debug=debug or None,
            accelerate=accelerate,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(2)
    client = S3ObjectStoreClient(
        region_name=region,
        endpoint_url=endpoint_url,
        use_accelerate_endpoint=accelerate,
    )
    return SessionBlobStore(client, config)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _store(ctx: click.Context) -> Any:
    if "store" not in ctx.obj:
        ctx.obj["store"] = _make_store(**ctx.obj["options"])
    return ctx.obj["store"]


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="session-archive-store")
@click.option("--bucket", envvar="STORE_BUCKET", default=None, help="Bucket holding the archives.")
@click.option(
    "--remote-path",
    envvar="STORE_REMOTE_PATH",
    default=None,
    help="Base path of the archives inside the bucket.",
)
@click.option("--region", default=None, help="AWS region of the bucket.")
@click.option("--endpoint-url", default=None, help="Custom S3 endpoint (LocalStack, MinIO).")
@click.option("--debug", is_flag=True, help="Emit per-phase diagnostic lines.")
@click.option(
    "--accelerate/--no-accelerate",
    default=False,
    show_default=True,
    help="Use the S3 Transfer Acceleration endpoint.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    bucket: str | None,
    remote_path: str | None,
    region: str | None,
    endpoint_url: str | None,
    debug: bool,
    accelerate: bool,
) -> None:
    """Persist session archives in an object store."""
    _configure_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["options"] = {
        "bucket": bucket,
        "remote_path": remote_path,
        "region": region,
        "endpoint_url": endpoint_url,
        "debug": debug,
        "accelerate": accelerate,
    }


# ---------------------------------------------------------------------------
# version / key
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from session_archive_store import __version__

    console.print(f"[bold]session-archive-store[/bold] v{__version__}")


@cli.command(name="key")
@click.argument("session_id")
@click.pass_context
def key_command(ctx: click.Context, session_id: str) -> None:
    """Print the remote object key for SESSION_ID."""
    remote_path = ctx.obj["options"]["remote_path"]
    if not remote_path:
        console.print("[red]--remote-path (or STORE_REMOTE_PATH) is required.[/red]")
        sys.exit(2)
    console.print(derive_key(remote_path, session_id), highlight=False)


# ---------------------------------------------------------------------------
# Store operations
# ---------------------------------------------------------------------------


@cli.command(name="exists")
@click.argument("session_id")
@click.pass_context
def exists_command(ctx: click.Context, session_id: str) -> None:
    """Report whether SESSION_ID has an archive.

    Exit status: 0 present, 1 absent, 3 could not determine.
    """
    presence: Presence = asyncio.run(_store(ctx).probe(session_id))
    colour = {
        Presence.PRESENT: "green",
        Presence.ABSENT: "yellow",
        Presence.INDETERMINATE: "red",
    }[presence]
    console.print(f"[{colour}]{presence.value}[/{colour}]")
    if presence is Presence.ABSENT:
        sys.exit(1)
    if presence is Presence.INDETERMINATE:
        sys.exit(3)


@cli.command(name="save")
@click.argument("session_id")
@click.option(
    "--archive",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Local zip file (defaults to SESSION_ID.zip).",
)
@click.pass_context
def save_command(ctx: click.Context, session_id: str, archive: str | None) -> None:
    """Upload the archive of SESSION_ID."""
    store = _store(ctx)
    try:
        saved = asyncio.run(store.save(session_id, archive))
    except (OSError, StoreError) as exc:
        console.print(f"[red]Save failed:[/red] {exc}")
        sys.exit(1)
    if not saved:
        console.print("[yellow]Skipped:[/yellow] store configuration check failed.")
        sys.exit(1)
    console.print(f"[green]Saved:[/green] {store.key_for(session_id)}")


@cli.command(name="extract")
@click.argument("session_id")
@click.argument("destination", type=click.Path(dir_okay=False))
@click.pass_context
def extract_command(ctx: click.Context, session_id: str, destination: str) -> None:
    """Download the archive of SESSION_ID to DESTINATION."""
    try:
        extracted = asyncio.run(_store(ctx).extract(session_id, destination))
    except (OSError, StoreError) as exc:
        console.print(f"[red]Extract failed:[/red] {exc}")
        sys.exit(1)
    if not extracted:
        console.print("[yellow]Skipped:[/yellow] store configuration check failed.")
        sys.exit(1)
    console.print(f"[green]Extracted:[/green] {destination}")


@cli.command(name="delete")
@click.argument("session_id")
@click.pass_context
def delete_command(ctx: click.Context, session_id: str) -> None:
    """Delete the archive of SESSION_ID (missing archives are ignored)."""
    asyncio.run(_store(ctx).delete(session_id))
    console.print(f"[green]Deleted (if present):[/green] {session_id}")


@cli.command(name="delete-previous")
@click.argument("remote_key")
@click.pass_context
def delete_previous_command(ctx: click.Context, remote_key: str) -> None:
    """Delete the object stored under the exact REMOTE_KEY."""
    asyncio.run(_store(ctx).delete_previous(remote_key))
    console.print(f"[green]Deleted (if present):[/green] {remote_key}")


if __name__ == "__main__":
    cli()
