"""Settings resolution and well-known paths for nbxclient.

This module handles the small amount of configuration the client needs:

* **Data directory** -- where the explorer service writes its per-network
  files. ``%APPDATA%\\NBXplorer`` on Windows, ``~/.nbxplorer`` elsewhere.
  See :func:`get_data_dir`.
* **Cookie file** -- the secret the service generates at startup, found by
  default at ``<data_dir>/<network>/.cookie``. See
  :func:`get_default_cookie_path`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables and per-network defaults into a
  :class:`~nbxclient.models.ClientSettings`.

The client only ever reads the cookie file; nothing here writes to disk.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from nbxclient.exceptions import ConfigError
from nbxclient.models import DEFAULT_PORTS, ClientSettings, Network

_APP_NAME = "NBXplorer"
_COOKIE_FILENAME = ".cookie"

ENV_URL = "NBXPLORER_URL"
ENV_NETWORK = "NBXPLORER_NETWORK"
ENV_COOKIE_FILE = "NBXPLORER_COOKIEFILE"
ENV_TIMEOUT = "NBXPLORER_TIMEOUT"


# --- Paths ---


def _is_windows() -> bool:
    return platform.system() == "Windows"


def get_data_dir() -> Path:
    """Return the explorer service's data directory.

    On Windows: ``%APPDATA%\\NBXplorer`` (falling back to
    ``~/AppData/Roaming/NBXplorer``). Elsewhere: ``~/.nbxplorer``.

    The directory is not created; the service owns it.
    """
    if _is_windows():
        appdata = os.environ.get("APPDATA", "")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME.lower()}"


def get_default_cookie_path(network: Network | str) -> Path:
    """Return the default cookie file location for *network*.

    Args:
        network: A :class:`~nbxclient.models.Network` or its string value.

    Returns:
        ``<data_dir>/<network>/.cookie``.
    """
    return get_data_dir() / parse_network(network).value / _COOKIE_FILENAME


def get_default_url(network: Network | str) -> str:
    """Return the base address a locally running service listens on for *network*."""
    port = DEFAULT_PORTS[parse_network(network)]
    return f"http://localhost:{port}/"


# --- Parsing helpers ---


def parse_network(value: Network | str) -> Network:
    """Convert a user-supplied network name into a :class:`Network`.

    Accepts the canonical values plus a few common spellings (``main``,
    ``test``, ``testnet3``).

    Raises:
        ConfigError: If the name is not recognised.
    """
    if isinstance(value, Network):
        return value
    aliases = {"main": "mainnet", "test": "testnet", "testnet3": "testnet"}
    name = value.strip().lower()
    name = aliases.get(name, name)
    try:
        return Network(name)
    except ValueError:
        valid = ", ".join(n.value for n in Network)
        raise ConfigError(f"Unknown network '{value}'. Expected one of: {valid}") from None


def _parse_url(value: str, origin: str) -> str:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise ConfigError(f"Invalid service URL '{value}' ({origin}): {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigError(
            f"Service URL must be an absolute http(s) address, got '{value}' ({origin})"
        )
    return str(url)


def _parse_timeout(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigError(
            f"Environment variable {ENV_TIMEOUT} must be a number of seconds, got '{value}'"
        ) from None


# --- Precedence resolution ---


def resolve_settings(
    cli_url: Optional[str] = None,
    cli_network: Optional[str] = None,
    cli_cookie_file: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> ClientSettings:
    """Resolve client settings with full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``NBXPLORER_URL``, ``NBXPLORER_NETWORK``,
           ``NBXPLORER_COOKIEFILE``, ``NBXPLORER_TIMEOUT``)
        3. Per-network defaults

    The network is resolved first because the default URL and cookie path
    depend on it.

    Returns:
        The effective :class:`~nbxclient.models.ClientSettings`.

    Raises:
        ConfigError: If any supplied value is invalid.
    """
    network_name = cli_network or os.environ.get(ENV_NETWORK) or Network.MAINNET.value
    network = parse_network(network_name)

    if cli_url is not None:
        base_url = _parse_url(cli_url, "--url")
    elif os.environ.get(ENV_URL):
        base_url = _parse_url(os.environ[ENV_URL], ENV_URL)
    else:
        base_url = get_default_url(network)

    cookie_file = cli_cookie_file or os.environ.get(ENV_COOKIE_FILE) or None

    timeout: Optional[float] = cli_timeout
    if timeout is None and os.environ.get(ENV_TIMEOUT):
        timeout = _parse_timeout(os.environ[ENV_TIMEOUT])

    fields: dict[str, object] = {
        "base_url": base_url,
        "network": network,
        "cookie_file": cookie_file,
    }
    if timeout is not None:
        fields["timeout"] = timeout
    try:
        return ClientSettings.model_validate(fields)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client settings: {exc}") from exc
