"""Bearer token handling for the Cocoon SDK.

Token acquisition (the OAuth flows) happens outside this package; the SDK only
needs an access token to put in the ``Authorization`` header.
"""

from __future__ import annotations

import os

from .config import ACCESS_TOKEN_ENV
from .exceptions import AuthenticationError


def get_access_token(access_token: str | None = None) -> str | None:
    """Get the access token from the explicit argument or the environment.

    Args:
        access_token: Explicitly provided token. Takes priority.

    Returns:
        The token if found, None otherwise.
    """
    if access_token:
        return access_token

    return os.environ.get(ACCESS_TOKEN_ENV) or None


class AuthProvider:
    """Provider for authentication headers."""

    def __init__(self, access_token: str | None = None) -> None:
        self._access_token = access_token
        self._resolved_token: str | None = None

    @property
    def access_token(self) -> str | None:
        """Get the resolved access token."""
        if self._resolved_token is None:
            self._resolved_token = get_access_token(self._access_token)
        return self._resolved_token

    def set_access_token(self, access_token: str | None) -> None:
        """Replace the token, e.g. after an external refresh."""
        self._access_token = access_token
        self._resolved_token = None

    def get_headers(self) -> dict[str, str]:
        """Get authorization headers for requests.

        Raises:
            AuthenticationError: If no access token is available.
        """
        token = self.access_token
        if not token:
            raise AuthenticationError(
                f"No access token found. Pass access_token or set {ACCESS_TOKEN_ENV}."
            )

        return {"Authorization": f"Bearer {token}"}

    def is_authenticated(self) -> bool:
        """Check if an access token is available."""
        return self.access_token is not None
