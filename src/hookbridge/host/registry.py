"""Adapter registry.

Adapters are handed to the host explicitly instead of installing hooks
into process-global state. Registration validates the hooks immediately,
so a misconfigured adapter stops host startup instead of failing on the
first event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from hookbridge.auth.handler import OAuthRegistration
from hookbridge.callbacks.bridge import CallbackBridge
from hookbridge.callbacks.models import PollState
from hookbridge.callbacks.state import InMemoryPollStateStore, PollStateStore
from hookbridge.errors import AdapterNotFoundError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adapter:
    adapter_id: str
    oauth: OAuthRegistration | None = None
    callbacks: CallbackBridge | None = None


class AdapterRegistry:
    def __init__(self, state_store: PollStateStore | None = None):
        """Create an empty registry.

        Args:
            state_store: Poll checkpoint store shared by every callback
                bridge this registry creates
        """
        self.state_store = (
            state_store if state_store is not None else InMemoryPollStateStore()
        )
        self._adapters: dict[str, Adapter] = {}

    def register(
        self,
        adapter_id: str,
        *,
        oauth: Any = None,
        callbacks: Any = None,
        initial_state: PollState | None = None,
    ) -> Adapter:
        """Register an adapter's authorization and/or callback hooks.

        Args:
            adapter_id: Unique key for the adapter
            oauth: OAuthRegistration or an object implementing OAuthHandler
            callbacks: CallbackRegistration, CallbackBridge or an object with
                handle/install/poll methods
            initial_state: First poll state for this adapter's callbacks

        Raises:
            ConfigurationError: Duplicate id, nothing to register, or a
                required hook missing
        """
        if adapter_id in self._adapters:
            raise ConfigurationError(f"Adapter already registered: {adapter_id}")
        if oauth is None and callbacks is None:
            raise ConfigurationError(
                f"Adapter {adapter_id} registers neither oauth nor callbacks"
            )

        oauth_registration = (
            OAuthRegistration.from_handler(oauth) if oauth is not None else None
        )
        if callbacks is None or isinstance(callbacks, CallbackBridge):
            bridge = callbacks
        else:
            bridge = CallbackBridge(
                callbacks,
                state_store=self.state_store,
                initial_state=initial_state,
                namespace=adapter_id,
            )

        adapter = Adapter(adapter_id=adapter_id, oauth=oauth_registration, callbacks=bridge)
        self._adapters[adapter_id] = adapter

        logger.info(
            f"Registered adapter {adapter_id} "
            f"(oauth={oauth_registration is not None}, callbacks={bridge is not None})"
        )
        return adapter

    def get(self, adapter_id: str) -> Adapter:
        try:
            return self._adapters[adapter_id]
        except KeyError:
            raise AdapterNotFoundError(f"Unknown adapter: {adapter_id}") from None

    def oauth(self, adapter_id: str) -> OAuthRegistration:
        adapter = self.get(adapter_id)
        if adapter.oauth is None:
            raise ConfigurationError(f"Adapter {adapter_id} has no oauth handler")
        return adapter.oauth

    def callbacks(self, adapter_id: str) -> CallbackBridge:
        adapter = self.get(adapter_id)
        if adapter.callbacks is None:
            raise ConfigurationError(f"Adapter {adapter_id} has no callback handler")
        return adapter.callbacks

    def __contains__(self, adapter_id: object) -> bool:
        return adapter_id in self._adapters

    def __iter__(self) -> Iterator[Adapter]:
        return iter(list(self._adapters.values()))

    def __len__(self) -> int:
        return len(self._adapters)
