"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

import riakhttp.cli
from riakhttp.cli import app
from tests.conftest import BASE, FakeTransport

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def transport(monkeypatch):
    """Route every CLI request to an in-memory transport."""
    fake = FakeTransport()
    monkeypatch.setattr(riakhttp.cli.state, "transport", fake)
    monkeypatch.delenv("RIAK_URL", raising=False)
    monkeypatch.delenv("RIAK_ADD_CLIENT_ID_HEADER", raising=False)
    return fake


def invoke(runner: CliRunner, args: list[str]) -> "Result":
    """Invoke the CLI against the fake node."""
    return runner.invoke(app, ["--url", BASE] + args, catch_exceptions=False)
