"""Numeric process exit codes used by the ``nbxclient`` command line.

Each constant maps to one error category and is referenced by the
corresponding :class:`~nbxclient.exceptions.ExplorerError` subclass, so that
shell scripts waiting on the service can branch on ``$?`` without parsing
stderr.

Example::

    $ nbxclient wait --timeout 30
    $ echo $?
    8   # EXIT_CANCELED -- the server did not answer in time
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The cookie file could not be read or the server rejected it."""

EXIT_NOT_FOUND = 4
"""The server reported that the requested resource does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The server returned a structured error or an unusable response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CANCELED = 8
"""The operation was aborted before it completed."""
