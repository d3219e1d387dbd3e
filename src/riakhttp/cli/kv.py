"""riak fetch / store / delete — key/value commands."""

from __future__ import annotations

from typing import Optional

import typer

from riakhttp.cli import _exitcodes as ec
from riakhttp.cli._client import run_with_client
from riakhttp.cli._output import print_error, print_value
from riakhttp.client import RiakClient
from riakhttp.types import IndexEntry, Value


def parse_index_option(raw: str) -> IndexEntry:
    """Parse ``name_int=42`` or ``name_bin=text`` into an IndexEntry."""
    full_name, sep, value = raw.partition("=")
    name, _, kind = full_name.rpartition("_")
    if not sep or not name or kind not in ("int", "bin"):
        raise typer.BadParameter(f"Index must look like NAME_int=N or NAME_bin=TEXT, got {raw!r}")
    try:
        if kind == "int":
            return IndexEntry.int_(name, int(value))
        return IndexEntry.bin(name, value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _print_value(value: Value, key: str) -> None:
    from riakhttp.cli import state

    print_value(value, key=key, json_mode=state.json_output)


def fetch_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    key: str = typer.Argument(..., help="Key to fetch"),
) -> None:
    """Fetch the value stored under a key (siblings resolve by last write)."""

    async def _fetch(client: RiakClient) -> Optional[Value]:
        return await client.fetch(bucket, key)

    value = run_with_client(_fetch)
    if value is None:
        print_error(f"Key '{key}' not found in bucket '{bucket}'")
        raise typer.Exit(ec.NOT_FOUND)
    _print_value(value, key)


def store_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    key: str = typer.Argument(..., help="Key to store under"),
    data: str = typer.Argument(..., help="Value body"),
    content_type: str = typer.Option(
        "text/plain; charset=utf-8", "--content-type", "-t", help="Content type of the body"
    ),
    index: Optional[list[str]] = typer.Option(
        None, "--index", "-i", help="Secondary index NAME_int=N or NAME_bin=TEXT (repeatable)"
    ),
    return_body: bool = typer.Option(False, "--return-body", help="Print the stored version"),
) -> None:
    """Store a value under a key."""
    entries = [parse_index_option(raw) for raw in index or []]
    value = Value.create(data, content_type=content_type, indexes=entries)

    async def _store(client: RiakClient) -> Optional[Value]:
        return await client.store(bucket, key, value, return_body=return_body)

    stored = run_with_client(_store)
    if stored is not None:
        _print_value(stored, key)


def delete_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    key: str = typer.Argument(..., help="Key to delete"),
) -> None:
    """Delete a key. Deleting a missing key succeeds."""

    async def _delete(client: RiakClient) -> None:
        await client.delete(bucket, key)

    run_with_client(_delete)
