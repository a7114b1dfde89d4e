"""Microsoft identity platform (Microsoft 365 / Graph).

The account type chosen in the auth form selects the tenant segment of
both endpoints.
"""

from __future__ import annotations

from typing import Mapping

from hookbridge.auth.models.forms import FormDescriptor, SelectField, SelectOption
from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

SCOPES = (
    "User.Read",
    "Mail.ReadWrite",
    "Mail.Send",
    "Calendars.ReadWrite",
    "Contacts.ReadWrite",
    "Files.ReadWrite.All",
    "Sites.ReadWrite.All",
    "Tasks.ReadWrite",
    "Notes.ReadWrite.All",
    "People.Read",
    "offline_access",
)

ACCOUNT_TYPES = FormDescriptor(
    fields=[
        SelectField(
            label="Account Type",
            key="accountType",
            is_required=True,
            options=[
                SelectOption(
                    value="common", label="Work or School & Personal Accounts"
                ),
                SelectOption(
                    value="organizations", label="Work or School Accounts Only"
                ),
                SelectOption(
                    value="consumers", label="Personal Microsoft Accounts Only"
                ),
            ],
        )
    ]
)


class MicrosoftProvider(OAuthProvider):
    def __init__(self, token_manager: OAuth2TokenManager | None = None):
        super().__init__(
            "microsoft365",
            ProviderEndpoints(
                authorize_url=(
                    "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/authorize"
                ),
                token_url="https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token",
            ),
            SCOPES,
            extra_authorize_params={"response_mode": "query"},
            token_keep=("id_token", "ext_expires_in"),
            form=ACCOUNT_TYPES,
            token_manager=token_manager,
        )

    def resolve_endpoints(self, fields: Mapping[str, str]) -> ProviderEndpoints:
        return self.endpoints.resolve({"tenant": fields.get("accountType") or "common"})


def microsoft_provider(
    token_manager: OAuth2TokenManager | None = None,
) -> MicrosoftProvider:
    return MicrosoftProvider(token_manager)
