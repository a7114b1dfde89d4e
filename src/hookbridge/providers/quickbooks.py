"""Intuit QuickBooks Online.

The company the user connected (the realm) is reported as a ``realmId``
query parameter on the redirect, not in the token response. It is checked
before the code exchange and attached to the TokenSet after it. Intuit
rotates refresh tokens.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from hookbridge.auth.models.errors import AuthorizationCallbackError
from hookbridge.auth.models.flow import CallbackInput
from hookbridge.auth.models.forms import FormDescriptor, SelectField, SelectOption
from hookbridge.auth.models.tokens import TokenSet
from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

API_BASE_URLS = {
    "sandbox": "https://sandbox-quickbooks.api.intuit.com",
    "production": "https://quickbooks.api.intuit.com",
}


def realm_id_from(callback_url: str) -> str:
    """Return the realmId carried by the QuickBooks redirect.

    Raises:
        AuthorizationCallbackError: If the redirect has no realmId
    """
    realm_ids = parse_qs(urlparse(callback_url).query).get("realmId")
    if not realm_ids:
        raise AuthorizationCallbackError("QuickBooks callback is missing realmId")
    return realm_ids[0]


class QuickBooksProvider(OAuthProvider):
    def __init__(self, token_manager: OAuth2TokenManager | None = None):
        super().__init__(
            "quickbooks",
            ProviderEndpoints(
                authorize_url="https://appcenter.intuit.com/connect/oauth2",
                token_url="https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer",
            ),
            ("com.intuit.quickbooks.accounting",),
            use_pkce=False,
            client_auth="basic",
            token_keep=("x_refresh_token_expires_in", "id_token"),
            form=FormDescriptor(
                fields=[
                    SelectField(
                        label="Environment",
                        key="environment",
                        is_required=True,
                        options=[
                            SelectOption(value="sandbox", label="Sandbox"),
                            SelectOption(value="production", label="Production"),
                        ],
                    )
                ]
            ),
            token_manager=token_manager,
        )

    async def handle_callback(self, callback: CallbackInput) -> TokenSet:
        realm_id_from(callback.full_url)
        return await super().handle_callback(callback)

    async def after_exchange(
        self, token_set: TokenSet, callback: CallbackInput
    ) -> TokenSet:
        environment = callback.fields.get("environment", "production")
        return token_set.with_extensions(
            realm_id=realm_id_from(callback.full_url),
            api_base_url=API_BASE_URLS.get(environment, API_BASE_URLS["production"]),
        )


def quickbooks_provider(
    token_manager: OAuth2TokenManager | None = None,
) -> QuickBooksProvider:
    return QuickBooksProvider(token_manager)
