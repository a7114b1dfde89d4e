"""Callback event bridge.

Gives the host one contract for receiving provider events whether the
provider pushes them (webhooks delivered to ``handle``) or has to be polled
(``poll`` on a host-chosen cadence). ``install`` runs once per subscription
so the adapter can create the provider-side webhook.

The bridge never retries a hook and never swallows a hook's exception.
Poll checkpoints are committed only after the poll hook returned normally.
Two concurrent polls for the same callback id are not serialized here; the
last one to finish wins. Hosts that poll concurrently must serialize per
callback id.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from hookbridge.callbacks.models import (
    CallbackEvent,
    CallbackResult,
    InstallData,
    PollRequest,
    PollResult,
    PollState,
)
from hookbridge.callbacks.registration import CallbackRegistration
from hookbridge.callbacks.state import InMemoryPollStateStore, PollStateStore
from hookbridge.errors import ConfigurationError
from hookbridge.shared.hooks import call_hook

logger = logging.getLogger(__name__)


class CallbackBridge:
    def __init__(
        self,
        registration: CallbackRegistration | Any,
        state_store: PollStateStore | None = None,
        initial_state: PollState | None = None,
        namespace: str | None = None,
    ):
        """Create a bridge for one adapter's callback hooks.

        Args:
            registration: A CallbackRegistration or any object with
                handle/install/poll methods. Validated immediately.
            state_store: Where poll checkpoints are committed
            initial_state: State presented to the very first poll of a
                callback id. Defaults to an empty dict.
            namespace: Prefix for state store keys, so bridges sharing one
                store never see each other's checkpoints

        Raises:
            ConfigurationError: If the registration has no handle hook
        """
        self.registration = CallbackRegistration.from_handler(registration)
        self.state_store = (
            state_store if state_store is not None else InMemoryPollStateStore()
        )
        self.initial_state: PollState = dict(initial_state or {})
        self.namespace = namespace

    @property
    def supports_install(self) -> bool:
        return self.registration.install is not None

    @property
    def supports_poll(self) -> bool:
        return self.registration.poll is not None

    async def install(self, data: InstallData) -> Any:
        """Run the install hook, if any, and return whatever it returned."""
        if self.registration.install is None:
            return None

        logger.debug(f"Installing callback {data.callback_id} at {data.callback_url}")
        try:
            result = await call_hook(self.registration.install, data)
        except Exception:
            logger.exception(f"Install hook failed for callback {data.callback_id}")
            raise

        logger.info(f"Installed callback {data.callback_id}")
        return result

    async def handle(self, event: CallbackEvent) -> CallbackResult | None:
        """Run the handle hook for one pushed event.

        Returns:
            The hook's result, or None when the event produced nothing
            actionable. None is not an error.
        """
        logger.debug(
            f"Handling event {event.event_id} for callback {event.callback_id}"
        )
        try:
            result = await call_hook(self.registration.handle, event)
        except Exception:
            logger.exception(
                f"Handle hook failed for event {event.event_id} "
                f"(callback {event.callback_id})"
            )
            raise

        return CallbackResult.coerce(result)

    async def poll(self, callback_id: str) -> list[dict[str, Any]]:
        """Poll once for ``callback_id``.

        Loads the last committed checkpoint (or the initial state on the
        first call), runs the poll hook and commits the hook's
        ``next_state`` if the hook returned normally.

        Returns:
            New items; an empty list when there are none

        Raises:
            ConfigurationError: If the adapter registered no poll hook
        """
        if self.registration.poll is None:
            raise ConfigurationError("Adapter does not support polling")

        state = await self.current_state(callback_id)
        request = PollRequest(callback_id=callback_id, state=state)

        try:
            result = PollResult.coerce(
                await call_hook(self.registration.poll, request)
            )
        except Exception:
            logger.exception(f"Poll hook failed for callback {callback_id}")
            raise

        if result.next_state is not None:
            await self.state_store.save(
                self._state_key(callback_id), result.next_state
            )
            logger.debug(f"Committed poll state for callback {callback_id}")

        if result.items:
            logger.info(f"Poll for callback {callback_id} found {len(result.items)} items")
        return list(result.items)

    async def current_state(self, callback_id: str) -> PollState:
        """The state the next poll of ``callback_id`` will see.

        Always a private copy: a hook mutating it and then raising leaves the
        committed checkpoint untouched, whatever the store returns.
        """
        state = await self.state_store.load(self._state_key(callback_id))
        if state is None:
            state = self.initial_state
        return copy.deepcopy(state)

    def _state_key(self, callback_id: str) -> str:
        if self.namespace is None:
            return callback_id
        return f"{self.namespace}/{callback_id}"
