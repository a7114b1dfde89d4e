from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

SCOPES = ("bot", "messages.read", "guilds", "guilds.members.read", "identify")

# Bot permission bitfield requested when the bot joins a guild
BOT_PERMISSIONS = "1099780063296"


def discord_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "discord",
        ProviderEndpoints(
            authorize_url="https://discord.com/oauth2/authorize",
            token_url="https://discord.com/api/v10/oauth2/token",
        ),
        SCOPES,
        use_pkce=False,
        extra_authorize_params={"permissions": BOT_PERMISSIONS},
        token_keep=("guild", "webhook"),
        token_manager=token_manager,
    )
