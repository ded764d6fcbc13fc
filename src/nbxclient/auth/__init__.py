"""Authentication for nbxclient.

The explorer service authenticates clients with HTTP Basic credentials taken
from a cookie file it writes at startup. The main entry points are:

- :class:`CredentialProvider` -- interface the request dispatcher talks to.
- :class:`Credential` -- immutable header-ready authorization value.
- :class:`CookieAuth` -- provider backed by the service's ``.cookie`` file.

Typical usage::

    from nbxclient.auth import CookieAuth

    auth = CookieAuth("~/.nbxplorer/mainnet/.cookie")
    headers = auth.current().headers
"""

from nbxclient.auth.base import Credential, CredentialProvider
from nbxclient.auth.cookie import CookieAuth

__all__ = ["Credential", "CredentialProvider", "CookieAuth"]
