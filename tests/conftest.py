"""Shared test fixtures for nbxclient.

Provides an isolated cookie file, environment isolation for the
``NBXPLORER_*`` variables, output reset between tests, and a factory that
builds clients whose HTTP traffic is answered by an in-process handler via
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from nbxclient.auth.cookie import CookieAuth
from nbxclient.client import BlockingExplorerClient, ExplorerClient
from nbxclient.models import Network
from nbxclient.output import reset_output

COOKIE = "__cookie__:7f3c2a9d0b51e6"
BASE_URL = "http://explorer.test/"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager keeps references to the streams that were current when it
    was created; CliRunner swaps those out per invocation.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear NBXPLORER_* variables that might leak into tests."""
    for var in [
        "NBXPLORER_URL",
        "NBXPLORER_NETWORK",
        "NBXPLORER_COOKIEFILE",
        "NBXPLORER_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cookie_file(tmp_path: Path) -> Path:
    """A cookie file containing :data:`COOKIE`."""
    path = tmp_path / ".cookie"
    path.write_text(COOKIE, encoding="ascii")
    return path


@pytest.fixture
def make_client(cookie_file: Path) -> Callable[..., ExplorerClient]:
    """Factory for an :class:`ExplorerClient` served by *handler*."""

    def factory(handler: Handler, address: str = BASE_URL, **kwargs: Any) -> ExplorerClient:
        kwargs.setdefault("auth", CookieAuth(cookie_file))
        return ExplorerClient(
            Network.REGTEST,
            address,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            **kwargs,
        )

    return factory


@pytest.fixture
def make_blocking_client(cookie_file: Path) -> Callable[..., BlockingExplorerClient]:
    """Factory for a :class:`BlockingExplorerClient` served by *handler*."""

    def factory(handler: Handler, address: str = BASE_URL, **kwargs: Any) -> BlockingExplorerClient:
        kwargs.setdefault("auth", CookieAuth(cookie_file))
        return BlockingExplorerClient(
            Network.REGTEST,
            address,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            **kwargs,
        )

    return factory


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cookie_secret() -> str:
    return COOKIE
