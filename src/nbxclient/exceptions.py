"""Exception hierarchy for nbxclient.

All exceptions inherit from :class:`ExplorerError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`nbxclient.exit_codes`.
The command line entry point in :func:`nbxclient.app.main` catches
``ExplorerError`` and exits with the appropriate code.

Subclass hierarchy::

    ExplorerError (exit 1)
    +-- ConfigError             (exit 2)
    +-- CredentialUnavailable   (exit 3)
    +-- AuthorizationRejected   (exit 3)
    +-- ServiceError            (exit 5, or 4 for HTTP 404)
    +-- TransportFailure        (exit 5)
    |   +-- UnexpectedContentType
    |   +-- ConnectionFailure   (exit 6)
    +-- Canceled                (exit 8)

Task cancellation (:class:`asyncio.CancelledError`) is not part of
this hierarchy: it always propagates untouched.
"""

from __future__ import annotations

from typing import Any, Optional

from nbxclient.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class ExplorerError(Exception):
    """Base exception for all nbxclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(ExplorerError):
    """Raised for invalid settings (bad network name, malformed URL or timeout)."""

    exit_code = EXIT_INVALID_USAGE


class CredentialUnavailable(ExplorerError):
    """Raised when the cookie file is missing, unreadable or not ASCII."""

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class AuthorizationRejected(ExplorerError):
    """Raised when the server answers 401 again after the credential was refreshed."""

    exit_code = EXIT_AUTH_FAILURE


class ServiceError(ExplorerError):
    """Structured error reported by the server.

    Callers branch on :attr:`http_code` and :attr:`error_code`; for example
    ``http_code == 404`` means "nothing there" for lookups.

    Args:
        http_code: HTTP status the server attached to the error payload.
        error_code: Machine-readable error code (e.g. ``"not-found"``).
        message: Human-readable message from the server.
        additional_data: Optional free-form payload attached by the server.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(
        self,
        http_code: int,
        error_code: Optional[str],
        message: Optional[str],
        additional_data: Any = None,
    ):
        text = f"{http_code}: {message or error_code or 'service error'}"
        if error_code:
            text = f"{text} ({error_code})"
        super().__init__(text)
        self.http_code = http_code
        self.error_code = error_code
        self.message = message
        self.additional_data = additional_data
        if http_code == 404:
            self.exit_code = EXIT_NOT_FOUND


class TransportFailure(ExplorerError):
    """Raised for responses that carry no usable structured error.

    Covers HTTP 500, error bodies that do not parse as a service error, and
    protocol violations. :attr:`status_code` preserves the raw HTTP status,
    or is ``None`` when no response was received at all.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnexpectedContentType(TransportFailure):
    """Raised when a successful response declares a media type the client cannot decode."""

    def __init__(self, content_type: Optional[str], status_code: Optional[int] = None):
        super().__init__(
            f"Unexpected content type {content_type or '(none)'!r} in response",
            status_code=status_code,
        )
        self.content_type = content_type


class ConnectionFailure(TransportFailure):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class Canceled(ExplorerError):
    """Raised when a caller-supplied deadline expires before the operation completes."""

    exit_code = EXIT_CANCELED
