"""Canonical Pydantic models shared across nbxclient modules.

The models fall into two groups:

**Configuration models**:
    :class:`Network` and :class:`ClientSettings`.

**Wire models** -- request/response bodies exchanged with the explorer
service:
    :class:`DerivationFeature`, :class:`KeyPathInformation`,
    :class:`BroadcastResult`, :class:`ServiceErrorPayload`,
    :class:`UTXOChange` and :class:`UTXOChanges`.

The service speaks camelCase JSON. Wire models declare camelCase aliases and
``populate_by_name=True`` so they can be built from Python as well.
Unknown keys are preserved in ``model_extra`` because the server adds fields
over time.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

EMPTY_HASH = "0" * 64
"""Cursor value meaning "no prior state"; asks the server for a full change-set."""


# --- Configuration ---


class Network(str, enum.Enum):
    """Chain the explorer instance tracks."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"


DEFAULT_PORTS: dict[Network, int] = {
    Network.MAINNET: 24444,
    Network.TESTNET: 24445,
    Network.REGTEST: 24446,
}


class ClientSettings(BaseModel):
    """Effective client configuration after precedence resolution.

    See :func:`nbxclient.config.resolve_settings` for how each field is
    filled from CLI flags, environment variables and defaults.
    """

    base_url: str = Field(description="Base address of the explorer service")
    network: Network = Field(default=Network.MAINNET)
    cookie_file: Optional[str] = Field(
        default=None,
        description="Path to the cookie file; None means the network default",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for ordinary (non long-poll) requests",
    )


# --- Wire models ---


class DerivationFeature(str, enum.Enum):
    """Which branch of a derivation strategy an address belongs to."""

    DEPOSIT = "Deposit"
    CHANGE = "Change"
    DIRECT = "Direct"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class KeyPathInformation(_WireModel):
    """An address slot tracked by the server for a derivation strategy."""

    key_path: str = Field(alias="keyPath")
    feature: Optional[DerivationFeature] = None
    derivation_strategy: Optional[str] = Field(default=None, alias="derivationStrategy")
    script_pub_key: Optional[str] = Field(default=None, alias="scriptPubKey")
    redeem: Optional[str] = None
    address: Optional[str] = None


class BroadcastResult(_WireModel):
    """Outcome of a transaction broadcast.

    A rejected transaction is a normal result with ``success=False``; the
    node's reason is available through :attr:`reason`.
    """

    success: bool
    rpc_code: Optional[int] = Field(default=None, alias="rpcCode")
    rpc_code_message: Optional[str] = Field(default=None, alias="rpcCodeMessage")
    rpc_message: Optional[str] = Field(default=None, alias="rpcMessage")

    @property
    def reason(self) -> Optional[str]:
        """Rejection reason reported by the node, or ``None`` on success."""
        if self.success:
            return None
        return self.rpc_message or self.rpc_code_message


class ServiceErrorPayload(_WireModel):
    """Structured error body the server returns for failed requests."""

    http_code: int = Field(alias="httpCode")
    error_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("code", "errorCode", "error_code"),
        serialization_alias="code",
    )
    message: Optional[str] = None
    additional_data: Any = Field(
        default=None,
        validation_alias=AliasChoices("additionalData", "additional_data"),
        serialization_alias="additionalData",
    )


class UTXOChange(BaseModel):
    """One side (confirmed or unconfirmed) of a change-set."""

    hash: str = EMPTY_HASH


class UTXOChanges(BaseModel):
    """Decoded result of a sync call.

    Only the cursors are interpreted; :attr:`payload` holds the rest of the
    change-set body untouched for a domain-level decoder.
    """

    confirmed: UTXOChange = Field(default_factory=UTXOChange)
    unconfirmed: UTXOChange = Field(default_factory=UTXOChange)
    payload: bytes = b""

    @property
    def cursors(self) -> tuple[str, str]:
        """``(confirmed_hash, unconfirmed_hash)`` to thread into the next sync."""
        return self.confirmed.hash, self.unconfirmed.hash
