"""Blocking explorer client -- a thin facade over :class:`ExplorerClient`.

:class:`BlockingExplorerClient` owns a private event loop, running in a
daemon thread, and submits the coroutines of an
:class:`~nbxclient.client.async_client.ExplorerClient` to it. Scripts and
the command line can call the service without managing asyncio themselves,
and several threads may share one instance. No protocol logic lives here.

Every method takes an optional ``timeout`` in seconds; when it expires the
pending request is cancelled and :class:`~nbxclient.exceptions.Canceled` is
raised.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Coroutine, Optional, TypeVar, Union

import httpx

from nbxclient.auth.base import Credential
from nbxclient.client.async_client import ExplorerClient, with_deadline
from nbxclient.models import (
    BroadcastResult,
    ClientSettings,
    DerivationFeature,
    KeyPathInformation,
    Network,
    UTXOChanges,
)

T = TypeVar("T")


class BlockingExplorerClient:
    """Synchronous client for the explorer service.

    Accepts the same arguments as
    :class:`~nbxclient.client.async_client.ExplorerClient`. Use it as a
    context manager, or call :meth:`close` when done.

    Example::

        with BlockingExplorerClient(Network.REGTEST, "http://localhost:24446") as client:
            client.wait_server_started(timeout=30)
            info = client.get_unused(strategy, DerivationFeature.DEPOSIT)
    """

    def __init__(self, network: Union[Network, str], address: Union[httpx.URL, str], **kwargs: Any) -> None:
        self._inner = ExplorerClient(network, address, **kwargs)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="nbxclient-loop", daemon=True
        )
        self._thread.start()

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> BlockingExplorerClient:
        """Build a client from resolved :class:`~nbxclient.models.ClientSettings`."""
        return cls(
            settings.network,
            settings.base_url,
            cookie_file=settings.cookie_file,
            timeout=settings.timeout,
            **kwargs,
        )

    @property
    def inner(self) -> ExplorerClient:
        """The asynchronous client doing the actual work."""
        return self._inner

    @property
    def network(self) -> Network:
        return self._inner.network

    @property
    def address(self) -> httpx.URL:
        return self._inner.address

    def set_cookie_file(self, path: str) -> Credential:
        """See :meth:`ExplorerClient.set_cookie_file`."""
        return self._inner.set_cookie_file(path)

    def __enter__(self) -> BlockingExplorerClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport (if owned), stop the loop thread and close the loop."""
        if self._loop.is_closed():
            return
        try:
            asyncio.run_coroutine_threadsafe(self._inner.aclose(), self._loop).result()
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join()
            self._loop.close()

    def _run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float], what: str) -> T:
        if self._loop.is_closed():
            coro.close()
            raise RuntimeError("client is closed")
        future = asyncio.run_coroutine_threadsafe(with_deadline(coro, timeout, what), self._loop)
        try:
            return future.result()
        except BaseException:
            # caller stopped waiting; abort the pending request
            future.cancel()
            raise

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def ping(self, timeout: Optional[float] = None) -> str:
        return self._run(self._inner.ping(), timeout, "Ping")

    def wait_server_started(self, timeout: Optional[float] = None, interval: float = 0.0) -> None:
        """See :meth:`ExplorerClient.wait_server_started`."""
        self._run(
            self._inner.wait_server_started(interval=interval),
            timeout,
            f"Waiting for {self.address}",
        )

    def sync(
        self,
        strategy: Any,
        confirmed_hash: Optional[str] = None,
        unconfirmed_hash: Optional[str] = None,
        no_wait: bool = False,
        timeout: Optional[float] = None,
    ) -> UTXOChanges:
        """See :meth:`ExplorerClient.sync`. *timeout* bounds the long-poll."""
        return self._run(
            self._inner.sync(strategy, confirmed_hash, unconfirmed_hash, no_wait=no_wait),
            timeout,
            "Sync",
        )

    def sync_from(
        self,
        strategy: Any,
        previous: Optional[UTXOChanges],
        no_wait: bool = False,
        timeout: Optional[float] = None,
    ) -> UTXOChanges:
        return self._run(
            self._inner.sync_from(strategy, previous, no_wait=no_wait), timeout, "Sync"
        )

    def get_unused(
        self,
        strategy: Any,
        feature: Union[DerivationFeature, str],
        skip: int = 0,
        timeout: Optional[float] = None,
    ) -> Optional[KeyPathInformation]:
        """See :meth:`ExplorerClient.get_unused`."""
        return self._run(
            self._inner.get_unused(strategy, feature, skip), timeout, "Unused address lookup"
        )

    def broadcast(self, tx: bytes, timeout: Optional[float] = None) -> BroadcastResult:
        """See :meth:`ExplorerClient.broadcast`."""
        return self._run(self._inner.broadcast(tx), timeout, "Broadcast")
