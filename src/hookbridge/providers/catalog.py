"""Named provider factories, for hosts that pick providers from config."""

from __future__ import annotations

from functools import partial
from typing import Callable

from hookbridge.auth.provider import OAuthProvider
from hookbridge.auth.services.tokens import OAuth2TokenManager
from hookbridge.errors import ConfigurationError
from hookbridge.providers.atlassian import confluence_provider, jira_provider
from hookbridge.providers.discord import discord_provider
from hookbridge.providers.dropbox import dropbox_provider
from hookbridge.providers.github import github_provider
from hookbridge.providers.google import google_provider
from hookbridge.providers.hubspot import hubspot_provider
from hookbridge.providers.microsoft import microsoft_provider
from hookbridge.providers.notion import notion_provider
from hookbridge.providers.quickbooks import quickbooks_provider
from hookbridge.providers.salesforce import salesforce_provider
from hookbridge.providers.slack import slack_provider

ProviderFactory = Callable[..., OAuthProvider]

PROVIDERS: dict[str, ProviderFactory] = {
    "confluence": confluence_provider,
    "discord": discord_provider,
    "dropbox": dropbox_provider,
    "github": github_provider,
    "gmail": partial(google_provider, "gmail"),
    "google-calendar": partial(google_provider, "google-calendar"),
    "google-docs": partial(google_provider, "google-docs"),
    "google-drive": partial(google_provider, "google-drive"),
    "hubspot": hubspot_provider,
    "jira": jira_provider,
    "microsoft365": microsoft_provider,
    "notion": notion_provider,
    "quickbooks": quickbooks_provider,
    "salesforce": salesforce_provider,
    "slack": slack_provider,
}


def build_provider(
    name: str, token_manager: OAuth2TokenManager | None = None
) -> OAuthProvider:
    """Instantiate the provider registered under ``name``.

    Raises:
        ConfigurationError: If no provider has that name
    """
    try:
        factory = PROVIDERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown provider: {name}") from None
    return factory(token_manager)
