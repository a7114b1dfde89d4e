"""Google OAuth 2.0 for Gmail, Drive, Docs/Sheets and Calendar.

``access_type=offline`` with ``prompt=consent`` makes Google return a
refresh token on every consent, not only the first one. Google does not
rotate refresh tokens.
"""

from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

ENDPOINTS = ProviderEndpoints(
    authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
    token_url="https://oauth2.googleapis.com/token",
)

SCOPES = {
    "gmail": (
        "https://www.googleapis.com/auth/gmail.modify",
        "https://www.googleapis.com/auth/gmail.labels",
        "https://www.googleapis.com/auth/gmail.settings.basic",
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    ),
    "google-drive": (
        "https://www.googleapis.com/auth/drive.readonly",
        "https://www.googleapis.com/auth/drive.file",
        "https://www.googleapis.com/auth/drive.metadata.readonly",
        "https://www.googleapis.com/auth/drive",
    ),
    "google-docs": (
        "https://www.googleapis.com/auth/spreadsheets",
        "https://www.googleapis.com/auth/spreadsheets.readonly",
        "https://www.googleapis.com/auth/drive.readonly",
        "https://www.googleapis.com/auth/drive.file",
    ),
    "google-calendar": (
        "https://www.googleapis.com/auth/calendar.readonly",
        "https://www.googleapis.com/auth/calendar.events.readonly",
        "https://www.googleapis.com/auth/calendar.events",
        "https://www.googleapis.com/auth/calendar",
    ),
}


def google_provider(
    product: str, token_manager: OAuth2TokenManager | None = None
) -> OAuthProvider:
    """Build a Google provider for one product's scope set.

    Raises:
        KeyError: If ``product`` is not one of SCOPES
    """
    return OAuthProvider(
        product,
        ENDPOINTS,
        SCOPES[product],
        extra_authorize_params={"access_type": "offline", "prompt": "consent"},
        token_keep=("id_token",),
        token_manager=token_manager,
    )
