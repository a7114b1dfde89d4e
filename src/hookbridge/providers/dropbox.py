"""Dropbox app.

``token_access_type=offline`` is what makes Dropbox issue a refresh token.
Dropbox does not rotate it, so refresh responses omit it.
"""

from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager


def dropbox_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "dropbox",
        ProviderEndpoints(
            authorize_url="https://www.dropbox.com/oauth2/authorize",
            token_url="https://api.dropboxapi.com/oauth2/token",
        ),
        use_pkce=False,
        extra_authorize_params={
            "token_access_type": "offline",
            "force_reapprove": "false",
        },
        token_keep=("account_id", "uid"),
        token_manager=token_manager,
    )
