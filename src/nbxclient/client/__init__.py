"""HTTP client module for nbxclient.

Provides the explorer service client in two shapes that share one
implementation:

    :class:`ExplorerClient` -- asyncio client backed by :class:`httpx.AsyncClient`.
    :class:`BlockingExplorerClient` -- blocking facade running the same
    coroutines on a private event loop.

Example::

    from nbxclient.client import BlockingExplorerClient

    with BlockingExplorerClient("regtest", "http://localhost:24446") as client:
        client.wait_server_started(timeout=30)
"""

from nbxclient.client.async_client import ExplorerClient
from nbxclient.client.sync_client import BlockingExplorerClient

__all__ = ["ExplorerClient", "BlockingExplorerClient"]
