"""Asynchronous explorer client -- request dispatch and service operations.

This module provides :class:`ExplorerClient`, the single implementation of
every call the explorer service exposes. It wraps :class:`httpx.AsyncClient`
and offers:

* path resolution against the base address with exactly one separating
  slash,
* cookie-based Basic auth injection with exactly one refresh-and-resend when
  the server answers 401,
* content negotiation through :mod:`nbxclient.client.codec` and typed
  errors through :mod:`nbxclient.client.response`,
* the long-poll sync protocol, the readiness wait loop, unused-address
  lookup and transaction broadcast.

Cancellation follows asyncio: cancelling the task running a call aborts the
pending HTTP exchange and :class:`asyncio.CancelledError` propagates
unchanged. Operations that take a ``timeout`` raise
:class:`~nbxclient.exceptions.Canceled` when it expires.

See Also:
    :class:`~nbxclient.client.sync_client.BlockingExplorerClient` for the
    blocking facade over the same coroutines.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import httpx

from nbxclient.auth.base import Credential, CredentialProvider
from nbxclient.auth.cookie import CookieAuth
from nbxclient.client.codec import encode, parse_change_set
from nbxclient.client.response import interpret
from nbxclient.config import get_default_cookie_path, parse_network
from nbxclient.exceptions import (
    AuthorizationRejected,
    Canceled,
    ConnectionFailure,
    ServiceError,
    TransportFailure,
)
from nbxclient.models import (
    EMPTY_HASH,
    BroadcastResult,
    ClientSettings,
    DerivationFeature,
    KeyPathInformation,
    Network,
    UTXOChanges,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ChangeSetParser = Callable[[bytes], UTXOChanges]

PING_PATH = "v1/ping"
SYNC_PATH = "v1/sync/{0}?confHash={1}&unconfHash={2}&noWait={3}"
UNUSED_PATH = "v1/addresses/{0}/unused?feature={1}&skip={2}"
BROADCAST_PATH = "v1/broadcast"


def _format_param(value: Any) -> str:
    """Render one positional path parameter."""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


async def with_deadline(awaitable: Awaitable[T], timeout: Optional[float], what: str) -> T:
    """Await *awaitable*, raising :class:`Canceled` if *timeout* seconds pass first."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise Canceled(f"{what} did not complete within {timeout}s") from None


class ExplorerClient:
    """Asynchronous client for the explorer service.

    Args:
        network: Chain the service tracks; selects the default cookie path.
        address: Base address of the service (with or without a trailing
            slash). Immutable for the lifetime of the client.
        auth: Credential provider. Defaults to a
            :class:`~nbxclient.auth.cookie.CookieAuth` reading *cookie_file*.
        cookie_file: Cookie file path used when *auth* is not given.
            Defaults to the network's standard location.
        http_client: Optional transport to use instead of creating one. An
            injected client is never closed by this object.
        timeout: Timeout in seconds for ordinary requests. Long-poll sync
            calls wait for the response without a read timeout.
        change_set_parser: Decoder for the sync endpoint's binary body.

    Example::

        async with ExplorerClient(Network.REGTEST, "http://localhost:24446") as client:
            await client.wait_server_started(timeout=30)
            changes = await client.sync(strategy, no_wait=True)
    """

    def __init__(
        self,
        network: Union[Network, str],
        address: Union[httpx.URL, str],
        auth: Optional[CredentialProvider] = None,
        cookie_file: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        change_set_parser: ChangeSetParser = parse_change_set,
    ) -> None:
        if address is None:
            raise ValueError("address is required")
        self._network = parse_network(network)
        self._address = httpx.URL(str(address))
        if auth is None:
            auth = CookieAuth(cookie_file or get_default_cookie_path(self._network))
        self._auth = auth
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._parse_changes = change_set_parser

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> ExplorerClient:
        """Build a client from resolved :class:`~nbxclient.models.ClientSettings`."""
        return cls(
            settings.network,
            settings.base_url,
            cookie_file=settings.cookie_file,
            timeout=settings.timeout,
            **kwargs,
        )

    @property
    def network(self) -> Network:
        return self._network

    @property
    def address(self) -> httpx.URL:
        return self._address

    @property
    def auth(self) -> CredentialProvider:
        return self._auth

    def set_cookie_file(self, path: str) -> Credential:
        """Read credentials from *path* from now on.

        The file is read immediately so that a wrong path fails here, not on
        the next request.

        Raises:
            CredentialUnavailable: If the file cannot be read.
        """
        if isinstance(self._auth, CookieAuth):
            return self._auth.set_source(path)
        auth = CookieAuth(path)
        credential = auth.refresh()
        self._auth = auth
        return credential

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> ExplorerClient:
        self._http()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying transport if this client created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def resolve_uri(self, relative_path: str, *parameters: Any) -> str:
        """Substitute *parameters* into *relative_path* and join it to the base address."""
        if parameters:
            relative_path = relative_path.format(*(_format_param(p) for p in parameters))
        base = str(self._address)
        if not base.endswith("/"):
            base += "/"
        return base + relative_path.lstrip("/")

    async def send(
        self,
        method: str,
        relative_path: str,
        *parameters: Any,
        body: Any = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> httpx.Response:
        """Send an authenticated request and return the final raw response.

        If the server answers 401 the credential is refreshed and the same
        request is sent once more. A second 401 is terminal.

        Args:
            method: HTTP method.
            relative_path: Path template relative to the base address;
                ``{0}``, ``{1}``, ... are replaced by *parameters*.
            *parameters: Positional values for the template.
            body: Optional request body (see :func:`~nbxclient.client.codec.encode`).
            timeout: Per-request timeout override.

        Raises:
            CredentialUnavailable: If no credential can be loaded.
            AuthorizationRejected: If the refreshed credential is rejected too.
            ConnectionFailure: On network-level errors.
        """
        uri = self.resolve_uri(relative_path, *parameters)
        headers: dict[str, str] = {}
        content: Optional[bytes] = None
        if body is not None:
            content, headers["Content-Type"] = encode(body)

        # providers may read files; keep that off the event loop
        credential = await asyncio.to_thread(self._auth.current)
        response = await self._send_once(method, uri, headers, content, credential, timeout)
        if response.status_code == 401:
            logger.debug("%s %s returned 401, refreshing credential", method, uri)
            credential = await asyncio.to_thread(self._auth.refresh)
            response = await self._send_once(method, uri, headers, content, credential, timeout)
            if response.status_code == 401:
                logger.warning("Server rejected the refreshed credential for %s %s", method, uri)
                raise AuthorizationRejected(
                    f"Server rejected the refreshed credential for {method} {uri}"
                )
        return response

    async def _send_once(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        content: Optional[bytes],
        credential: Credential,
        timeout: Optional[httpx.Timeout],
    ) -> httpx.Response:
        client = self._http()
        kwargs: dict[str, Any] = {
            "headers": {**headers, **credential.headers},
            "content": content,
        }
        if timeout is not None:
            kwargs["timeout"] = timeout
        request = client.build_request(method, uri, **kwargs)
        try:
            response = await client.send(request)
        except httpx.TransportError as exc:
            raise ConnectionFailure(f"{method} {uri} failed: {exc}") from exc
        logger.debug("%s %s -> %d", method, uri, response.status_code)
        return response

    async def request(
        self,
        method: str,
        relative_path: str,
        *parameters: Any,
        result_type: type[T],
        body: Any = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> T:
        """Send a request and decode the response into *result_type*.

        Raises:
            ServiceError: For structured errors reported by the server.
            TransportFailure: For unusable responses.
        """
        response = await self.send(
            method, relative_path, *parameters, body=body, timeout=timeout
        )
        return interpret(response, result_type)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def ping(self) -> str:
        """Send a single readiness ping and return the body (``"pong"`` when up)."""
        return await self.request("GET", PING_PATH, result_type=str)

    async def wait_server_started(
        self, timeout: Optional[float] = None, interval: float = 0.0
    ) -> None:
        """Poll ``v1/ping`` until the server answers ``"pong"``.

        Every error raised by a ping is logged at debug level and retried,
        so a server that stays broken keeps this loop running until the
        caller gives up. Task cancellation is never retried.

        Args:
            timeout: Optional deadline in seconds. ``None`` waits forever.
            interval: Pause between pings in seconds.

        Raises:
            Canceled: If *timeout* expires first.
        """
        await with_deadline(
            self._wait_until_pong(interval),
            timeout,
            f"Waiting for {self._address}",
        )

    async def _wait_until_pong(self, interval: float) -> None:
        attempt = 0
        while True:
            attempt += 1
            try:
                if await self.ping() == "pong":
                    logger.debug("Server at %s is up after %d attempt(s)", self._address, attempt)
                    return
            except Exception as exc:
                logger.debug("Server at %s not ready (attempt %d): %s", self._address, attempt, exc)
            # cancellation point, even when pings fail without awaiting
            await asyncio.sleep(interval)

    async def sync(
        self,
        strategy: Any,
        confirmed_hash: Optional[str] = None,
        unconfirmed_hash: Optional[str] = None,
        no_wait: bool = False,
    ) -> UTXOChanges:
        """Fetch the changes for *strategy* since the given cursor pair.

        Missing cursors default to :data:`~nbxclient.models.EMPTY_HASH`,
        which asks for a complete change-set. Unless *no_wait* is set the
        server may hold the request open until something changes, and the
        client waits without a read timeout.

        Args:
            strategy: Derivation strategy; its ``str()`` is the identifier
                used in the path.
            confirmed_hash: Confirmed cursor from the previous result.
            unconfirmed_hash: Unconfirmed cursor from the previous result.
            no_wait: Ask the server to answer immediately.
        """
        timeout = None if no_wait else httpx.Timeout(self._timeout, read=None)
        data = await self.request(
            "GET",
            SYNC_PATH,
            strategy,
            confirmed_hash or EMPTY_HASH,
            unconfirmed_hash or EMPTY_HASH,
            no_wait,
            result_type=bytes,
            timeout=timeout,
        )
        return self._parse_changes(data)

    async def sync_from(
        self,
        strategy: Any,
        previous: Optional[UTXOChanges],
        no_wait: bool = False,
    ) -> UTXOChanges:
        """Like :meth:`sync`, taking the cursors from a previous result (or none)."""
        if previous is None:
            return await self.sync(strategy, no_wait=no_wait)
        return await self.sync(
            strategy, previous.confirmed.hash, previous.unconfirmed.hash, no_wait=no_wait
        )

    async def get_unused(
        self,
        strategy: Any,
        feature: Union[DerivationFeature, str],
        skip: int = 0,
    ) -> Optional[KeyPathInformation]:
        """Return the next unused address slot, or ``None`` if the server has none.

        A 404 answer means "none", whether or not it carries a structured
        error body; every other error propagates.
        """
        try:
            return await self.request(
                "GET",
                UNUSED_PATH,
                strategy,
                DerivationFeature(feature),
                skip,
                result_type=KeyPathInformation,
            )
        except ServiceError as exc:
            if exc.http_code == 404:
                return None
            raise
        except TransportFailure as exc:
            if exc.status_code == 404:
                return None
            raise

    async def broadcast(self, tx: bytes) -> BroadcastResult:
        """Broadcast a serialised transaction.

        A rejection by the node is returned as ``success=False`` with a
        reason, not raised.
        """
        if not isinstance(tx, (bytes, bytearray, memoryview)):
            raise TypeError(f"broadcast expects serialised transaction bytes, got {type(tx).__name__}")
        return await self.request("POST", BROADCAST_PATH, body=bytes(tx), result_type=BroadcastResult)
