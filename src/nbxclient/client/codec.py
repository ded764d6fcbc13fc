"""Content codec -- request body encoding and response body decoding.

Two media types are understood in both directions:

* ``application/octet-stream`` -- raw bytes, passed through untouched.
* ``application/json`` -- UTF-8 JSON, produced from and parsed into
  Pydantic models (or any type a :class:`pydantic.TypeAdapter` accepts,
  such as ``str`` or ``dict[str, Any]``).

Any other media type on a successful response is a protocol violation and
raises :class:`~nbxclient.exceptions.UnexpectedContentType`.

This module also holds :func:`parse_change_set`, the default decoder for the
binary body returned by the sync endpoint.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from nbxclient.exceptions import TransportFailure, UnexpectedContentType
from nbxclient.models import UTXOChange, UTXOChanges

JSON = "application/json"
OCTET_STREAM = "application/octet-stream"

HASH_SIZE = 32

T = TypeVar("T")


def media_type(response: httpx.Response) -> Optional[str]:
    """Return the response's media type without parameters, lower-cased.

    ``"application/json; charset=utf-8"`` becomes ``"application/json"``.
    Returns ``None`` when the response has no ``Content-Type`` header.
    """
    header = response.headers.get("content-type")
    if not header:
        return None
    return header.split(";", 1)[0].strip().lower()


def encode(body: Any) -> tuple[bytes, str]:
    """Serialise a request body.

    Args:
        body: ``bytes``-like objects are sent verbatim as an octet stream.
            Anything else (Pydantic models, dicts, lists, scalars) is
            serialised to JSON using the models' camelCase aliases.

    Returns:
        A ``(content, content_type)`` pair ready for :mod:`httpx`.
    """
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body), OCTET_STREAM
    return _adapter(Any).dump_json(body, by_alias=True), JSON


@lru_cache(maxsize=None)
def _adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


def decode(response: httpx.Response, result_type: type[T]) -> T:
    """Decode a successful response body into *result_type*.

    Args:
        response: A response with a 2xx status.
        result_type: ``bytes`` to receive the raw body of an octet-stream
            response, or any JSON-decodable type.

    Returns:
        The decoded value.

    Raises:
        UnexpectedContentType: If the media type is neither JSON nor octet
            stream, or does not match the requested result type.
        TransportFailure: If a JSON body does not validate as *result_type*.
    """
    kind = media_type(response)
    if kind == JSON and result_type is not bytes:
        try:
            return _adapter(result_type).validate_json(response.content)
        except ValidationError as exc:
            raise TransportFailure(
                f"Malformed JSON response (HTTP {response.status_code}): {exc}",
                status_code=response.status_code,
            ) from exc
    if kind == OCTET_STREAM and result_type is bytes:
        return response.content  # type: ignore[return-value]
    raise UnexpectedContentType(
        response.headers.get("content-type"), status_code=response.status_code
    )


def _read_hash(data: bytes, offset: int) -> str:
    # uint256 values are serialised little-endian and displayed big-endian.
    return data[offset : offset + HASH_SIZE][::-1].hex()


def parse_change_set(data: bytes) -> UTXOChanges:
    """Default decoder for the sync endpoint's binary change-set.

    The body starts with the confirmed cursor hash followed by the
    unconfirmed cursor hash, each 32 bytes little-endian. Everything after
    the two cursors is kept opaque in :attr:`UTXOChanges.payload`.

    Clients that need the UTXO entries themselves pass their own decoder to
    :class:`~nbxclient.client.async_client.ExplorerClient`.

    Raises:
        TransportFailure: If the body is too short to hold both cursors.
    """
    if len(data) < 2 * HASH_SIZE:
        raise TransportFailure(
            f"Change-set body too short: {len(data)} bytes, expected at least {2 * HASH_SIZE}"
        )
    return UTXOChanges(
        confirmed=UTXOChange(hash=_read_hash(data, 0)),
        unconfirmed=UTXOChange(hash=_read_hash(data, HASH_SIZE)),
        payload=data[2 * HASH_SIZE :],
    )


def build_change_set(
    confirmed_hash: str, unconfirmed_hash: str, payload: bytes = b""
) -> bytes:
    """Inverse of :func:`parse_change_set`; used by test servers and fixtures."""
    return (
        bytes.fromhex(confirmed_hash)[::-1]
        + bytes.fromhex(unconfirmed_hash)[::-1]
        + payload
    )
