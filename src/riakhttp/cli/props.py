"""riak props — inspect and update bucket properties."""

from __future__ import annotations

import json
from typing import Any

import typer

from riakhttp.cli import _exitcodes as ec
from riakhttp.cli._client import run_with_client
from riakhttp.cli._output import print_error, print_properties
from riakhttp.client import RiakClient
from riakhttp.types import BucketProperties

app = typer.Typer(no_args_is_help=True)


def _parse_assignment(raw: str) -> tuple[str, Any]:
    """Parse ``name=value``; the value is read as JSON when it parses, else as text."""
    name, sep, text = raw.partition("=")
    if not sep or not name:
        raise typer.BadParameter(f"Property must look like NAME=VALUE, got {raw!r}")
    try:
        return name, json.loads(text)
    except json.JSONDecodeError:
        return name, text


@app.command("get")
def props_get(
    bucket: str = typer.Argument(..., help="Bucket name"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Show the properties of a bucket."""
    if fmt not in ("json", "yaml"):
        print_error(f"Unknown format {fmt!r}; use json or yaml")
        raise typer.Exit(ec.USAGE_ERROR)

    async def _get(client: RiakClient) -> BucketProperties:
        return await client.get_bucket_properties(bucket)

    print_properties(run_with_client(_get), fmt=fmt)


@app.command("set")
def props_set(
    bucket: str = typer.Argument(..., help="Bucket name"),
    assignments: list[str] = typer.Argument(..., help="Properties as NAME=VALUE"),
) -> None:
    """Update bucket properties, e.g. ``riak props set photos allow_mult=true n_val=3``."""
    updates = dict(_parse_assignment(raw) for raw in assignments)

    async def _set(client: RiakClient) -> None:
        await client.set_bucket_properties(bucket, updates)

    run_with_client(_set)
    print(f"Updated {len(updates)} propert{'y' if len(updates) == 1 else 'ies'} of '{bucket}'")
