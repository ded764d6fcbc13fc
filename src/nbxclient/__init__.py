"""nbxclient -- HTTP client for the NBXplorer wallet-tracking service.

This package turns typed method calls into authenticated HTTP requests against
an explorer instance, decodes its JSON and binary responses, maps its error
payloads into exceptions, and implements the long-poll sync protocol that
wallets use to follow UTXO changes.

Typical usage::

    from nbxclient import BlockingExplorerClient, DerivationFeature

    with BlockingExplorerClient("regtest", "http://localhost:24446") as client:
        client.wait_server_started(timeout=30)
        info = client.get_unused(strategy, DerivationFeature.DEPOSIT)
        changes = client.sync(strategy, no_wait=True)

Modules:
    client: Request dispatch and service operations (async and blocking).
    auth: Cookie-file credential cache.
    models: Pydantic models for settings and wire payloads.
    config: Settings precedence and well-known paths.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer command line.
"""

__version__ = "0.1.0"

from nbxclient.client import BlockingExplorerClient, ExplorerClient  # noqa: E402
from nbxclient.models import (  # noqa: E402
    EMPTY_HASH,
    BroadcastResult,
    DerivationFeature,
    KeyPathInformation,
    Network,
    UTXOChanges,
)

__all__ = [
    "__version__",
    "BlockingExplorerClient",
    "ExplorerClient",
    "EMPTY_HASH",
    "BroadcastResult",
    "DerivationFeature",
    "KeyPathInformation",
    "Network",
    "UTXOChanges",
]
