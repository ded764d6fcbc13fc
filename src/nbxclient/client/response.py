"""Response interpretation -- classification and error mapping.

After the dispatcher receives the final response for a call,
:func:`interpret` turns it into either a decoded value (via
:mod:`nbxclient.client.codec`) or a typed exception (via
:func:`raise_for_error`).

Error mapping rules:

* HTTP 500 -- :class:`~nbxclient.exceptions.TransportFailure` without
  looking at the body; the server does not promise a structured error there.
* A body that parses as a
  :class:`~nbxclient.models.ServiceErrorPayload` --
  :class:`~nbxclient.exceptions.ServiceError`.
* Anything else -- :class:`~nbxclient.exceptions.TransportFailure` carrying
  the raw status.

Nothing here suppresses errors; callers that treat 404 as "absent" check
:attr:`ServiceError.http_code` themselves.
"""

from __future__ import annotations

import enum
from typing import NoReturn, Optional, TypeVar

import httpx
from pydantic import ValidationError

from nbxclient.client.codec import JSON, OCTET_STREAM, decode, media_type
from nbxclient.exceptions import ServiceError, TransportFailure, UnexpectedContentType
from nbxclient.models import ServiceErrorPayload

T = TypeVar("T")


class ResponseKind(str, enum.Enum):
    """Transient classification of a response."""

    JSON = "json"
    BINARY = "binary"
    ERROR = "error"
    MALFORMED = "malformed"


def classify(response: httpx.Response) -> ResponseKind:
    """Classify *response* by status code and declared media type."""
    if not response.is_success:
        return ResponseKind.ERROR
    kind = media_type(response)
    if kind == JSON:
        return ResponseKind.JSON
    if kind == OCTET_STREAM:
        return ResponseKind.BINARY
    return ResponseKind.MALFORMED


def parse_service_error(response: httpx.Response) -> Optional[ServiceErrorPayload]:
    """Try to read a structured service error from the response body.

    Returns:
        The payload, or ``None`` if the body is empty or is not a service
        error object.
    """
    if not response.content:
        return None
    try:
        return ServiceErrorPayload.model_validate_json(response.content)
    except ValidationError:
        return None


def raise_for_error(response: httpx.Response) -> NoReturn:
    """Raise the typed exception matching a non-success *response*.

    Raises:
        TransportFailure: For HTTP 500 and for bodies that are not a
            structured service error.
        ServiceError: For well-formed service error bodies.
    """
    status = response.status_code
    if status == 500:
        raise TransportFailure(
            f"HTTP 500 {response.reason_phrase or 'Internal Server Error'}",
            status_code=status,
        )
    payload = parse_service_error(response)
    if payload is None:
        raise TransportFailure(
            f"HTTP {status} {response.reason_phrase or ''}".rstrip(),
            status_code=status,
        )
    raise ServiceError(
        http_code=payload.http_code,
        error_code=payload.error_code,
        message=payload.message,
        additional_data=payload.additional_data,
    )


def interpret(response: httpx.Response, result_type: type[T]) -> T:
    """Decode a successful response or raise for a failed one.

    Dispatches on :func:`classify`. Errors go through
    :func:`raise_for_error`. A success with an unknown media type raises
    :class:`~nbxclient.exceptions.UnexpectedContentType`.
    """
    kind = classify(response)
    if kind is ResponseKind.ERROR:
        raise_for_error(response)
    if kind is ResponseKind.MALFORMED:
        raise UnexpectedContentType(
            response.headers.get("content-type"), status_code=response.status_code
        )
    return decode(response, result_type)
