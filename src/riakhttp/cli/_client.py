"""CLI helpers for building a client from global CLI state."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Awaitable, Callable, TypeVar

import typer

from riakhttp.cli import _exitcodes as ec
from riakhttp.cli._output import print_error
from riakhttp.client import RiakClient
from riakhttp.config import RiakConfig
from riakhttp.errors import InvalidParametersError, RiakError

T = TypeVar("T")


def config_from_state() -> RiakConfig:
    """Environment config overridden by explicit global CLI options."""
    from riakhttp.cli import state

    config = RiakConfig.from_env()
    if state.url:
        config = replace(config, url=state.url)
    if state.client_id_header:
        config = replace(config, add_client_id_header=True)
    return config


def open_client() -> RiakClient:
    from riakhttp.cli import state

    try:
        return RiakClient(config_from_state(), transport=state.transport)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)


def run_with_client(action: Callable[[RiakClient], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh client, mapping client errors to exit codes."""

    async def _run() -> T:
        async with open_client() as client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except InvalidParametersError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except RiakError as e:
        print_error(str(e))
        raise typer.Exit(ec.SERVER_ERROR)
