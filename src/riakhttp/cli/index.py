"""riak index — fetch values through a secondary index."""

from __future__ import annotations

from typing import Optional

import typer

from riakhttp.cli import _exitcodes as ec
from riakhttp.cli._client import run_with_client
from riakhttp.cli._output import print_error, print_values
from riakhttp.client import RiakClient
from riakhttp.types import IndexEntry, IndexRange, Value


def _typed(raw: str, integer: bool) -> int | str:
    if not integer:
        return raw
    try:
        return int(raw)
    except ValueError:
        raise typer.BadParameter(f"Integer index value expected, got {raw!r}")


def index_cmd(
    bucket: str = typer.Argument(..., help="Bucket name"),
    name: str = typer.Argument(..., help="Index name without the _int/_bin suffix"),
    value: Optional[str] = typer.Argument(None, help="Exact index value"),
    start: Optional[str] = typer.Option(None, "--start", help="Range start (inclusive)"),
    end: Optional[str] = typer.Option(None, "--end", help="Range end (inclusive)"),
    integer: bool = typer.Option(False, "--int", help="Treat the index as an integer index"),
) -> None:
    """Fetch all values matching an index value or range."""
    from riakhttp.cli import state

    has_range = start is not None or end is not None
    if value is not None and has_range:
        print_error("VALUE is mutually exclusive with --start/--end")
        raise typer.Exit(ec.USAGE_ERROR)
    if value is None and (start is None or end is None):
        print_error("Provide VALUE or both --start and --end")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        query: IndexEntry | IndexRange
        if value is not None:
            query = IndexEntry.of(name, _typed(value, integer))
        else:
            assert start is not None and end is not None
            query = IndexRange.of(name, _typed(start, integer), _typed(end, integer))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    async def _lookup(client: RiakClient) -> list[Value]:
        return await client.fetch_by_index(bucket, query)

    print_values(run_with_client(_lookup), json_mode=state.json_output)
