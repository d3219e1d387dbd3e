"""riak CLI: operator console for a Riak node's HTTP interface."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from riakhttp.cli import index, kv, props
from riakhttp.transport import Transport

app = typer.Typer(
    name="riak",
    help="riak — fetch, store and query values on a Riak node over HTTP.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    url: str | None = None
    json_output: bool = False
    client_id_header: bool = False
    transport: Transport | None = None


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("riakhttp")
        except Exception:
            v = "unknown"
        print(f"riak {v}")
        raise typer.Exit()


@app.callback()
def main_callback(
    url: Optional[str] = typer.Option(
        None,
        "--url",
        envvar="RIAK_URL",
        help="Riak HTTP endpoint (default: http://127.0.0.1:8098)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests to stderr"),
    client_id_header: bool = typer.Option(
        False, "--client-id-header", help="Send an X-Riak-ClientId header"
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all riak commands."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    state.url = url
    state.json_output = json_output
    state.client_id_header = client_id_header


app.add_typer(props.app, name="props", help="Bucket property commands")

app.command(name="fetch")(kv.fetch_cmd)
app.command(name="store")(kv.store_cmd)
app.command(name="delete")(kv.delete_cmd)
app.command(name="index")(index.index_cmd)


def main() -> None:
    """Entry point for the riak CLI."""
    app()
