"""Salesforce connected app.

Production and sandbox orgs authenticate against different login hosts.
The token response carries ``instance_url``, which every later API call
needs, so it is kept as an extension.
"""

from __future__ import annotations

from typing import Mapping

from hookbridge.auth.models.forms import FormDescriptor, SelectField, SelectOption
from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

LOGIN_HOSTS = {
    "production": "https://login.salesforce.com",
    "sandbox": "https://test.salesforce.com",
}


class SalesforceProvider(OAuthProvider):
    def __init__(self, token_manager: OAuth2TokenManager | None = None):
        super().__init__(
            "salesforce",
            ProviderEndpoints(
                authorize_url="{login_host}/services/oauth2/authorize",
                token_url="{login_host}/services/oauth2/token",
            ),
            ("full", "refresh_token"),
            token_keep=("instance_url", "id", "issued_at", "signature"),
            form=FormDescriptor(
                fields=[
                    SelectField(
                        label="Environment",
                        key="environment",
                        is_required=True,
                        options=[
                            SelectOption(value="production", label="Production"),
                            SelectOption(value="sandbox", label="Sandbox"),
                        ],
                    )
                ]
            ),
            token_manager=token_manager,
        )

    def resolve_endpoints(self, fields: Mapping[str, str]) -> ProviderEndpoints:
        environment = fields.get("environment", "")
        login_host = LOGIN_HOSTS.get(environment, LOGIN_HOSTS["production"])
        return self.endpoints.resolve({"login_host": login_host})


def salesforce_provider(
    token_manager: OAuth2TokenManager | None = None,
) -> SalesforceProvider:
    return SalesforceProvider(token_manager)
