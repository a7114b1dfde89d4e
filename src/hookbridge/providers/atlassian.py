"""Atlassian Cloud (Jira, Confluence) OAuth 2.0 (3LO).

A grant is not tied to a single site, so after the code exchange the
accessible resources are listed and the site matching the ``cloudId`` form
value is picked (by id or by URL), falling back to the first one.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from hookbridge.auth.models.errors import DiscoveryError
from hookbridge.auth.models.flow import CallbackInput
from hookbridge.auth.models.forms import FormDescriptor, TextField
from hookbridge.auth.models.tokens import TokenSet
from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints
from hookbridge.auth.services.tokens import OAuth2TokenManager

logger = logging.getLogger(__name__)

ACCESSIBLE_RESOURCES_URL = "https://api.atlassian.com/oauth/token/accessible-resources"

JIRA_SCOPES = ("read:jira-work", "write:jira-work", "read:jira-user", "offline_access")
CONFLUENCE_SCOPES = (
    "read:confluence-content.all",
    "write:confluence-content",
    "read:confluence-space.summary",
    "write:confluence-space",
    "read:confluence-props",
    "write:confluence-props",
    "read:confluence-user",
    "offline_access",
)


def select_site(resources: list[dict[str, Any]], cloud_id: str | None) -> dict[str, Any]:
    """Pick the accessible resource matching ``cloud_id``, else the first.

    Raises:
        DiscoveryError: If the grant gives access to no site at all
    """
    if not resources:
        raise DiscoveryError("Grant does not give access to any Atlassian site")
    if cloud_id:
        for resource in resources:
            if resource.get("id") == cloud_id or cloud_id in resource.get("url", ""):
                return resource
        logger.warning(f"No accessible site matches {cloud_id}, using the first")
    return resources[0]


class AtlassianProvider(OAuthProvider):
    def __init__(
        self,
        name: str,
        scopes: Sequence[str],
        product: str,
        token_manager: OAuth2TokenManager | None = None,
    ):
        super().__init__(
            name,
            ProviderEndpoints(
                authorize_url="https://auth.atlassian.com/authorize",
                token_url="https://auth.atlassian.com/oauth/token",
            ),
            scopes,
            extra_authorize_params={"audience": "api.atlassian.com", "prompt": "consent"},
            token_keep=(),
            form=FormDescriptor(
                fields=[
                    TextField(
                        label=f"{product} Cloud Site",
                        key="cloudId",
                        is_required=True,
                        placeholder="your-domain (from your-domain.atlassian.net)",
                        description=(
                            f"Your {product} cloud domain name without .atlassian.net"
                        ),
                    )
                ]
            ),
            token_manager=token_manager,
        )

    async def after_exchange(
        self, token_set: TokenSet, callback: CallbackInput
    ) -> TokenSet:
        resources = await self.token_manager.get_json(
            ACCESSIBLE_RESOURCES_URL, token_set.access_token
        )
        if not isinstance(resources, list):
            raise DiscoveryError("Accessible resources response is not a list")

        site = select_site(resources, callback.fields.get("cloudId"))
        logger.info(f"{self.name} grant resolved to site {site.get('url')}")
        return token_set.with_extensions(
            cloud_id=site.get("id"),
            site_url=site.get("url"),
            site_name=site.get("name"),
        )


def jira_provider(token_manager: OAuth2TokenManager | None = None) -> AtlassianProvider:
    return AtlassianProvider("jira", JIRA_SCOPES, "Jira", token_manager)


def confluence_provider(
    token_manager: OAuth2TokenManager | None = None,
) -> AtlassianProvider:
    return AtlassianProvider("confluence", CONFLUENCE_SCOPES, "Confluence", token_manager)
