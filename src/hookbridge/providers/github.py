"""GitHub OAuth app.

GitHub issues long-lived tokens without refresh tokens and does not support
PKCE for OAuth apps. Token endpoint errors come back with a 200 status and
an ``error`` field, which the token manager turns into TokenExchangeError.
"""

from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

SCOPES = ("repo", "user", "read:org", "write:discussion", "gist")


def github_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "github",
        ProviderEndpoints(
            authorize_url="https://github.com/login/oauth/authorize",
            token_url="https://github.com/login/oauth/access_token",
        ),
        SCOPES,
        use_pkce=False,
        supports_refresh=False,
        token_keep=(),
        token_manager=token_manager,
    )
