"""Authorization flow models.

Contains the inputs the host hands to an adapter at each step of the
authorization code flow, and the values the adapter hands back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlencode


def _freeze(fields: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(fields or {}))


@dataclass(frozen=True)
class AuthorizationRequest:
    """Everything an adapter needs to build a provider authorization URL.

    ``fields`` holds the values collected through the adapter's auth form
    (for example a tenant subdomain). ``state`` is the host's anti-forgery
    token; adapters echo it verbatim and never validate it.
    """

    client_id: str
    client_secret: str
    state: str
    redirect_uri: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))


@dataclass(frozen=True)
class AuthorizationUrl:
    """Authorization URL plus the PKCE verifier the host must keep."""

    authorization_url: str
    code_verifier: str | None = None

    @classmethod
    def coerce(cls, value: str | AuthorizationUrl) -> AuthorizationUrl:
        """Normalize a bare URL string into an AuthorizationUrl."""
        if isinstance(value, AuthorizationUrl):
            return value
        if isinstance(value, str):
            return cls(authorization_url=value)
        raise TypeError(
            f"get_authorization_url must return str or AuthorizationUrl, "
            f"got {type(value).__name__}"
        )


@dataclass(frozen=True)
class CallbackInput:
    """The redirect back from the provider plus what the host persisted.

    ``code`` is normally left unset; it is parsed out of ``full_url`` before
    the adapter's callback hook runs.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    full_url: str
    state: str
    code_verifier: str | None = None
    code: str | None = None
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))


@dataclass(frozen=True)
class RefreshInput:
    """A previously stored refresh token plus client credentials."""

    refresh_token: str
    client_id: str
    client_secret: str
    redirect_uri: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _freeze(self.fields))


@dataclass(frozen=True)
class AuthorizationParameters:
    """Query parameters for an OAuth 2.0 authorization request."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    scope: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
        }

        if self.scope:
            params["scope"] = self.scope
        if self.code_challenge:
            params["code_challenge"] = self.code_challenge
            params["code_challenge_method"] = self.code_challenge_method or "S256"

        # Provider quirks never override the core parameters
        for key, value in self.extra.items():
            params.setdefault(key, value)

        separator = "&" if "?" in self.authorization_endpoint else "?"
        return f"{self.authorization_endpoint}{separator}{urlencode(params)}"


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None
