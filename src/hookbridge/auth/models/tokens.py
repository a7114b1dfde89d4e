"""Token models for delegated OAuth access.

``TokenSet`` is the record produced by a code exchange and replaced by each
refresh. The host's credential store owns it; nothing here persists tokens.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hookbridge.auth.models.errors import TokenResponseFormatError

ClientAuthMethod = Literal["body", "basic"]

CORE_FIELDS = ("access_token", "refresh_token", "expires_in", "scope", "token_type")


class TokenSet(BaseModel):
    """Access credentials returned by a provider.

    The core OAuth fields are typed. Everything else the provider returned
    and the adapter needs later (a tenant id, an instance URL, a webhook id)
    travels untouched in ``extensions``.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None  # Seconds until expiry
    scope: str | None = None
    token_type: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response(
        cls,
        payload: Mapping[str, Any],
        *,
        keep: Iterable[str] | None = None,
        fallback_refresh_token: str | None = None,
    ) -> TokenSet:
        """Split a token endpoint JSON object into core fields and extensions.

        Args:
            payload: Decoded token endpoint response body
            keep: Extension keys to retain. None keeps every extra field.
            fallback_refresh_token: Used when the provider did not rotate
                the refresh token and omitted it from the response

        Raises:
            TokenResponseFormatError: If the payload has no access_token or
                a core field has the wrong type
        """
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenResponseFormatError(
                "Token response missing required access_token"
            )

        allowed = None if keep is None else set(keep)
        extensions = {
            key: value
            for key, value in payload.items()
            if key not in CORE_FIELDS and (allowed is None or key in allowed)
        }

        scope = payload.get("scope")
        if isinstance(scope, (list, tuple)):
            scope = " ".join(str(s) for s in scope)

        try:
            return cls(
                access_token=access_token,
                refresh_token=payload.get("refresh_token") or fallback_refresh_token,
                expires_in=payload.get("expires_in"),
                scope=scope,
                token_type=payload.get("token_type"),
                extensions=extensions,
            )
        except ValidationError as e:
            raise TokenResponseFormatError(
                f"Token response has invalid fields: {e}",
                body=json.dumps(dict(payload), default=str),
            ) from e

    def with_extensions(self, **extensions: Any) -> TokenSet:
        """Return a copy with additional extension fields merged in."""
        return self.model_copy(
            update={"extensions": {**self.extensions, **extensions}}
        )

    def to_payload(self) -> dict[str, Any]:
        """Flatten into the host wire shape, omitting unset core fields."""
        payload = {
            key: getattr(self, key)
            for key in CORE_FIELDS
            if getattr(self, key) is not None
        }
        for key, value in self.extensions.items():
            payload.setdefault(key, value)
        return payload


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3).

    Includes the PKCE code_verifier (RFC 7636) when the provider uses PKCE.
    """

    # Required fields first
    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    client_secret: str

    # Optional fields with defaults last
    code_verifier: str | None = None
    client_auth: ClientAuthMethod = "body"
    grant_type: str = "authorization_code"
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Returns:
            Dictionary suitable for httpx data parameter
        """
        data = {
            "grant_type": self.grant_type,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
        }

        if self.code_verifier:
            data["code_verifier"] = self.code_verifier
        if self.client_auth == "body":
            data["client_id"] = self.client_id
            data["client_secret"] = self.client_secret

        for key, value in self.extra.items():
            data.setdefault(key, value)

        return data

    def basic_auth(self) -> tuple[str, str] | None:
        """Credentials for an HTTP Basic Authorization header, if used."""
        if self.client_auth == "basic":
            return (self.client_id, self.client_secret)
        return None


@dataclass(frozen=True)
class RefreshTokenRequest:
    """Refresh token grant parameters (RFC 6749 Section 6)."""

    # Required fields first
    token_endpoint: str
    refresh_token: str
    client_id: str
    client_secret: str

    # Optional fields with defaults last
    redirect_uri: str | None = None
    client_auth: ClientAuthMethod = "body"
    grant_type: str = "refresh_token"
    extra: Mapping[str, str] = field(default_factory=dict)

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request."""
        data = {
            "grant_type": self.grant_type,
            "refresh_token": self.refresh_token,
        }

        if self.redirect_uri:
            data["redirect_uri"] = self.redirect_uri
        if self.client_auth == "body":
            data["client_id"] = self.client_id
            data["client_secret"] = self.client_secret

        for key, value in self.extra.items():
            data.setdefault(key, value)

        return data

    def basic_auth(self) -> tuple[str, str] | None:
        if self.client_auth == "basic":
            return (self.client_id, self.client_secret)
        return None
