from __future__ import annotations

from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

SCOPES = (
    "crm.objects.contacts.read",
    "crm.objects.contacts.write",
    "crm.objects.companies.read",
    "crm.objects.companies.write",
    "crm.objects.deals.read",
    "crm.objects.deals.write",
    "tickets",
    "crm.objects.quotes.read",
    "crm.objects.quotes.write",
    "sales-email-read",
    "crm.schemas.contacts.read",
    "crm.schemas.companies.read",
    "crm.schemas.deals.read",
    "crm.objects.owners.read",
    "crm.lists.read",
    "crm.lists.write",
    "forms",
    "timeline",
    "content",
    "automation",
    "oauth",
)


def hubspot_provider(token_manager: OAuth2TokenManager | None = None) -> OAuthProvider:
    return OAuthProvider(
        "hubspot",
        ProviderEndpoints(
            authorize_url="https://app.hubspot.com/oauth/authorize",
            token_url="https://api.hubapi.com/oauth/v1/token",
        ),
        SCOPES,
        include_redirect_uri_on_refresh=True,
        token_keep=(),
        token_manager=token_manager,
    )
