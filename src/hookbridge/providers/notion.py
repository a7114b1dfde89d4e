"""Notion public integration.

Client credentials go in an HTTP Basic header, not the form body. Notion
tokens do not expire and there is no refresh grant. The workspace the user
picked during consent is only reported in the token response.
"""

from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager


def notion_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "notion",
        ProviderEndpoints(
            authorize_url="https://api.notion.com/v1/oauth/authorize",
            token_url="https://api.notion.com/v1/oauth/token",
        ),
        extra_authorize_params={"owner": "user"},
        client_auth="basic",
        supports_refresh=False,
        token_keep=("bot_id", "workspace_id", "workspace_name", "workspace_icon", "owner"),
        token_manager=token_manager,
    )
