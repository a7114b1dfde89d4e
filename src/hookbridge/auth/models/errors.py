"""Exception hierarchy for OAuth 2.0 delegated-access errors.

Protocol errors (missing authorization code, non-success provider responses)
carry the HTTP status and response body when there is one. Shape errors
(a provider answering with something that is not the JSON we expected) are
kept in a separate branch so callers can tell them apart.
"""

from __future__ import annotations

from hookbridge.errors import HookBridgeError


class OAuth2Error(HookBridgeError):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class ProtocolError(OAuth2Error):
    """Raised when a provider interaction violates the OAuth protocol.

    Attributes:
        status_code: HTTP status of the failing response, if any.
        body: Raw response body of the failing response, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DiscoveryError(ProtocolError):
    """Raised when a post-exchange discovery call fails."""

    pass


class TokenError(ProtocolError):
    """Raised when token operations fail."""

    pass


class TokenRefreshError(TokenError):
    """Raised when token refresh fails."""

    pass


class TokenExchangeError(TokenError):
    """Raised when authorization code to token exchange fails."""

    pass


class AuthorizationError(ProtocolError):
    """Raised when the provider reports that user authorization failed."""

    pass


class AuthorizationCallbackError(ProtocolError):
    """Raised when the redirect back from the provider is malformed.

    The most common case is a callback URL without a ``code`` parameter.
    Such a callback is terminal: retrying it cannot produce a code.
    """

    pass


class StateValidationError(AuthorizationCallbackError):
    """Raised when OAuth state parameter validation fails.

    This indicates either a missing state parameter or a state mismatch,
    which could indicate a CSRF attack or authorization server issue.
    """

    pass


class ResponseFormatError(OAuth2Error):
    """Raised when a provider response cannot be parsed into the expected shape."""

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class TokenResponseFormatError(ResponseFormatError):
    """Raised when a token endpoint answers 2xx with an unusable body."""

    pass


class PKCEError(OAuth2Error):
    """Raised when PKCE parameter generation or validation fails."""

    pass
