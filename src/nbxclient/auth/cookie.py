"""Cookie-file credential provider.

The explorer service writes a random secret to a ``.cookie`` file in its
data directory at startup. :class:`CookieAuth` reads that file, encodes its
exact ASCII content with Base64 and sends it as an
``Authorization: Basic <encoded>`` header per :rfc:`7617`. The cookie
content is already in ``user:password`` form, so it is not split or
trimmed.

The file is re-read only when the cache is empty, when the source path
changes, or when the dispatcher sees a 401 (the service rotates the cookie on
every restart).
"""

from __future__ import annotations

import base64
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from nbxclient.auth.base import Credential, CredentialProvider
from nbxclient.exceptions import CredentialUnavailable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def encode_basic(secret: str) -> str:
    """Return the ``Authorization`` header value for *secret*."""
    encoded = base64.b64encode(secret.encode("ascii")).decode("ascii")
    return f"Basic {encoded}"


class CookieAuth(CredentialProvider):
    """Cache of the single authorization value derived from a cookie file.

    Safe to share between threads and tasks: the cached
    :class:`~nbxclient.auth.base.Credential` is swapped by reference under a
    lock, so readers never observe a partially updated value. Concurrent
    refreshes may race; the last one wins.

    Args:
        path: Location of the cookie file.

    Example::

        auth = CookieAuth("~/.nbxplorer/regtest/.cookie")
        headers = auth.current().headers
    """

    def __init__(self, path: PathLike) -> None:
        self._path = Path(path).expanduser()
        self._cached: Optional[Credential] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """The cookie file currently used as the credential source."""
        return self._path

    def refresh(self) -> Credential:
        """Re-read the cookie file and replace the cached credential.

        Raises:
            CredentialUnavailable: If the file is missing, unreadable or
                contains non-ASCII data. The previously cached value is
                left untouched in that case.
        """
        path = self._path
        try:
            secret = path.read_bytes().decode("ascii")
        except FileNotFoundError:
            raise CredentialUnavailable(
                f"Cookie file not found: {path}", path=str(path)
            ) from None
        except (OSError, UnicodeDecodeError) as exc:
            raise CredentialUnavailable(
                f"Cannot read cookie file {path}: {exc}", path=str(path)
            ) from exc

        credential = Credential(authorization=encode_basic(secret))
        with self._lock:
            self._cached = credential
        logger.debug("Loaded credential from %s", path)
        return credential

    def current(self) -> Credential:
        with self._lock:
            cached = self._cached
        if cached is None:
            return self.refresh()
        return cached

    def set_source(self, path: PathLike) -> Credential:
        """Switch to another cookie file and load it immediately.

        Read failures surface here rather than on the next request.

        Raises:
            CredentialUnavailable: If the new file cannot be read.
        """
        with self._lock:
            self._path = Path(path).expanduser()
            self._cached = None
        return self.refresh()

    def invalidate(self) -> None:
        """Drop the cached credential; the next :meth:`current` re-reads the file."""
        with self._lock:
            self._cached = None
