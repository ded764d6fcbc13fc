"""Typer application and CLI entry point for nbxclient.

The ``nbxclient`` command talks to an explorer service from the shell:
readiness checks for start-up scripts, one-off sync calls, unused-address
lookups and transaction broadcasts.

Connection settings come from ``--url``/``--network``/``--cookie-file``,
then the ``NBXPLORER_*`` environment variables, then per-network defaults
(see :func:`nbxclient.config.resolve_settings`).

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~nbxclient.exceptions.ExplorerError` instances
become a one-line error and the exception's exit code.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from nbxclient import __version__
from nbxclient.client import BlockingExplorerClient
from nbxclient.config import resolve_settings
from nbxclient.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NOT_FOUND
from nbxclient.models import ClientSettings, DerivationFeature
from nbxclient.output import (
    OutputFormat,
    OutputManager,
    configure_logging,
    debug,
    info,
    print_data,
    print_record,
    set_output,
    success,
    warning,
)

app = typer.Typer(
    name="nbxclient",
    help="Query an NBXplorer wallet-tracking service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"nbxclient {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    url: Optional[str] = typer.Option(
        None, "--url", help="Service base address (env: NBXPLORER_URL)."
    ),
    network: Optional[str] = typer.Option(
        None, "--network", help="mainnet, testnet or regtest (env: NBXPLORER_NETWORK)."
    ),
    cookie_file: Optional[str] = typer.Option(
        None, "--cookie-file", help="Cookie file path (env: NBXPLORER_COOKIEFILE)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug output and HTTP traffic."
    ),
) -> None:
    """Set up output and logging, and remember connection flags for sub-commands."""
    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["network"] = network
    ctx.obj["cookie_file"] = cookie_file


def _settings(ctx: typer.Context) -> ClientSettings:
    obj = ctx.obj or {}
    settings = resolve_settings(
        cli_url=obj.get("url"),
        cli_network=obj.get("network"),
        cli_cookie_file=obj.get("cookie_file"),
    )
    debug(f"Using {settings.base_url} ({settings.network.value})")
    return settings


def make_client(settings: ClientSettings) -> BlockingExplorerClient:
    """Create the client used by every command."""
    return BlockingExplorerClient.from_settings(settings)


@app.command()
def ping(ctx: typer.Context) -> None:
    """Send a single readiness ping."""
    with make_client(_settings(ctx)) as client:
        print_data(client.ping())


@app.command()
def wait(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Give up after this many seconds."
    ),
    interval: float = typer.Option(
        0.5, "--interval", help="Seconds between pings."
    ),
) -> None:
    """Block until the service answers its readiness ping."""
    with make_client(_settings(ctx)) as client:
        info(f"Waiting for {client.address} ...")
        client.wait_server_started(timeout=timeout, interval=interval)
    success("Server is up")


@app.command()
def unused(
    ctx: typer.Context,
    strategy: str = typer.Argument(..., help="Derivation strategy identifier."),
    feature: DerivationFeature = typer.Option(
        DerivationFeature.DEPOSIT, "--feature", help="Derivation branch."
    ),
    skip: int = typer.Option(0, "--skip", min=0, help="Skip this many unused slots."),
) -> None:
    """Show the next unused address slot for a strategy."""
    with make_client(_settings(ctx)) as client:
        result = client.get_unused(strategy, feature, skip=skip)
    if result is None:
        warning(f"No unused {feature.value} address for this strategy")
        raise typer.Exit(EXIT_NOT_FOUND)
    print_record(result.model_dump(by_alias=True, mode="json"), title="Unused address")


@app.command()
def sync(
    ctx: typer.Context,
    strategy: str = typer.Argument(..., help="Derivation strategy identifier."),
    conf_hash: Optional[str] = typer.Option(
        None, "--conf-hash", help="Confirmed cursor from a previous sync."
    ),
    unconf_hash: Optional[str] = typer.Option(
        None, "--unconf-hash", help="Unconfirmed cursor from a previous sync."
    ),
    no_wait: bool = typer.Option(
        False, "--no-wait", help="Return immediately even if nothing changed."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Give up the long-poll after this many seconds."
    ),
) -> None:
    """Fetch the change-set since a cursor pair and print the new cursors."""
    with make_client(_settings(ctx)) as client:
        changes = client.sync(
            strategy, conf_hash, unconf_hash, no_wait=no_wait, timeout=timeout
        )
    print_record(
        {
            "confHash": changes.confirmed.hash,
            "unconfHash": changes.unconfirmed.hash,
            "payloadSize": len(changes.payload),
        },
        title="Sync",
    )


@app.command()
def broadcast(
    ctx: typer.Context,
    tx_hex: str = typer.Argument(..., help="Serialised transaction, hex encoded."),
) -> None:
    """Broadcast a raw transaction."""
    try:
        tx = bytes.fromhex(tx_hex)
    except ValueError:
        raise typer.BadParameter("transaction must be hex encoded", param_hint="TX_HEX")
    with make_client(_settings(ctx)) as client:
        result = client.broadcast(tx)
    print_record(result.model_dump(by_alias=True, mode="json"), title="Broadcast")
    if not result.success:
        warning(f"Transaction rejected: {result.reason or 'no reason given'}")
        raise typer.Exit(EXIT_GENERIC_FAILURE)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``nbxclient`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from nbxclient.exceptions import ExplorerError
        from nbxclient.output import error

        if isinstance(exc, ExplorerError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc!r}")
        sys.exit(EXIT_GENERIC_FAILURE)
