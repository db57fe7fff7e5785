from __future__ import annotations

import os
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import ParamSpec, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .blob import BlobDeleteBatch, BlobSetTierBatch, coerce_tier
from .client import BatchClient
from .config import BatchSettings, load_settings
from .errors import BatchError, HttpError, StorageBatchError
from .models.blob import BlobRef, DeleteSnapshotsOption
from .multipart import boundary_from_content_type, parse_batch_body

app = typer.Typer(help="Azure Storage blob batch tooling")
console = Console()

CommandParams = ParamSpec("CommandParams")
CommandReturn = TypeVar("CommandReturn")


def _render_batch_error(exc: BatchError) -> None:
    console.print(f"[red]Error:[/red] {exc}")
    table = Table("Blob", "Status", "Error code", "Message")
    for parent, failure in exc.failures.items():
        table.add_row(str(parent), str(failure.status_code), failure.error_code or "", failure.status_message)
    console.print(table)


def handle_cli_errors(
    func: Callable[CommandParams, CommandReturn],
) -> Callable[CommandParams, CommandReturn]:
    @wraps(func)
    def wrapper(*args: CommandParams.args, **kwargs: CommandParams.kwargs) -> CommandReturn:
        try:
            return func(*args, **kwargs)
        except typer.BadParameter:
            raise
        except typer.Exit:
            raise
        except BatchError as exc:
            _render_batch_error(exc)
            raise typer.Exit(1) from None
        except HttpError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            if exc.details:
                console.print(str(exc.details))
            raise typer.Exit(1) from None
        except StorageBatchError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(1) from None

    return wrapper


def _token_getter() -> Callable[[], str]:
    token = os.getenv("STORAGEBATCH_ACCESS_TOKEN")
    if not token:
        raise typer.BadParameter("Set STORAGEBATCH_ACCESS_TOKEN to an OAuth token for Azure Storage.")
    return lambda: token


def _blob_refs(
    settings: BatchSettings, account_url: str | None, container: str, names: list[str]
) -> tuple[str, list[BlobRef]]:
    url = account_url or settings.account_url
    if not url:
        raise typer.BadParameter(
            "Storage account URL is not configured. Pass --account-url or export STORAGEBATCH_ACCOUNT_URL."
        )
    try:
        return url, [BlobRef(account_url=url, container=container, name=name) for name in names]
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command("inspect")
@handle_cli_errors
def inspect_response(
    body_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured batch response body"),
    content_type: str | None = typer.Option(None, help="Content-Type header of the batch response"),
    boundary: str | None = typer.Option(None, help="Response boundary (overrides --content-type)"),
) -> None:
    """Decode a captured multipart batch response and list its sub-responses."""

    resolved = boundary or boundary_from_content_type(content_type)
    if not resolved:
        raise typer.BadParameter("Pass --boundary or a --content-type carrying boundary=.")
    responses = parse_batch_body(body_file.read_bytes(), resolved)
    table = Table("Content-ID", "Status", "Reason", "Error code", "Body bytes")
    for response in responses:
        content_id = response.header("Content-ID")
        table.add_row(
            content_id if content_id is not None else "-",
            str(response.status_code),
            response.status_message,
            response.error_code or "",
            str(len(response.body or b"")),
        )
    console.print(table)


@app.command("delete")
@handle_cli_errors
def delete_blobs(
    container: str = typer.Argument(..., help="Container holding the blobs"),
    names: list[str] = typer.Argument(..., help="Blob names to delete"),
    account_url: str | None = typer.Option(None, help="Blob endpoint of the storage account"),
    include_snapshots: bool = typer.Option(False, help="Also delete the blobs' snapshots"),
) -> None:
    """Delete blobs in one batch request."""

    settings = load_settings()
    url, blobs = _blob_refs(settings, account_url, container, names)
    batch = BlobDeleteBatch()
    option = DeleteSnapshotsOption.INCLUDE if include_snapshots else None
    for blob in blobs:
        batch.add(blob, delete_snapshots=option)
    with BatchClient(_token_getter(), url, settings=settings) as client:
        results = client.submit_batch(batch)
    console.print(f"[green]Deleted {len(results)} blob(s).[/green]")


@app.command("set-tier")
@handle_cli_errors
def set_tier(
    container: str = typer.Argument(..., help="Container holding the blobs"),
    tier: str = typer.Argument(..., help="Target tier, e.g. Hot, Cool, Archive or P30"),
    names: list[str] = typer.Argument(..., help="Blob names to re-tier"),
    account_url: str | None = typer.Option(None, help="Blob endpoint of the storage account"),
) -> None:
    """Change the access tier of blobs in one batch request."""

    try:
        target = coerce_tier(tier)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    settings = load_settings()
    url, blobs = _blob_refs(settings, account_url, container, names)
    batch = BlobSetTierBatch()
    for blob in blobs:
        batch.add(blob, target)
    with BatchClient(_token_getter(), url, settings=settings) as client:
        results = client.submit_batch(batch)
    console.print(f"[green]Set tier {target.value} on {len(results)} blob(s).[/green]")


def main() -> None:  # pragma: no cover - console entry point
    app()


__all__ = ["app", "main"]
