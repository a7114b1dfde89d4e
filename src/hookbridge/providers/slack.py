"""Slack app (OAuth v2).

Slack separates scopes with commas and reports failures as
``{"ok": false, "error": ...}`` with a 200 status. The installing team and
the bot identity are only available from the token response.
"""

from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

SCOPES = (
    "channels:read",
    "channels:history",
    "chat:write",
    "files:write",
    "team:read",
    "groups:read",
    "groups:history",
    "im:read",
    "im:history",
    "mpim:read",
    "mpim:history",
    "reactions:write",
    "users:read",
)


def slack_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "slack",
        ProviderEndpoints(
            authorize_url="https://slack.com/oauth/v2/authorize",
            token_url="https://slack.com/api/oauth.v2.access",
        ),
        SCOPES,
        scope_separator=",",
        use_pkce=False,
        supports_refresh=False,
        token_keep=(
            "bot_user_id",
            "app_id",
            "team",
            "enterprise",
            "authed_user",
            "incoming_webhook",
        ),
        token_manager=token_manager,
    )
