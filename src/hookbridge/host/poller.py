"""Poll scheduler for adapters without push delivery.

Polls of the same callback id never overlap: each callback id being polled
holds its own lock, so a checkpoint committed by poll n is always the input
of poll n+1.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from hookbridge.errors import ConfigurationError
from hookbridge.host.registry import AdapterRegistry

logger = logging.getLogger(__name__)

Subscription = tuple[str, str]


class Poller:
    def __init__(self, registry: AdapterRegistry):
        self.registry = registry
        self._subscriptions: list[Subscription] = []
        self._locks: dict[Subscription, asyncio.Lock] = {}
        self._lock_users: dict[Subscription, int] = {}

    def subscribe(self, adapter_id: str, callback_id: str) -> None:
        """Add a callback id to the polling rotation.

        Raises:
            ConfigurationError: If the adapter cannot be polled
        """
        bridge = self.registry.callbacks(adapter_id)
        if not bridge.supports_poll:
            raise ConfigurationError(f"Adapter {adapter_id} does not support polling")

        key = (adapter_id, callback_id)
        if key not in self._subscriptions:
            self._subscriptions.append(key)

    def unsubscribe(self, adapter_id: str, callback_id: str) -> None:
        key = (adapter_id, callback_id)
        if key in self._subscriptions:
            self._subscriptions.remove(key)

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    async def poll(self, adapter_id: str, callback_id: str) -> list[dict[str, Any]]:
        """Poll one callback id, waiting for any poll of it already in flight.

        A lock lives only while some poll of its callback id is running or
        waiting, so ad hoc polls of arbitrary ids leave nothing behind.
        """
        key = (adapter_id, callback_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                return await self.registry.callbacks(adapter_id).poll(callback_id)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def run_once(self) -> dict[Subscription, list[dict[str, Any]]]:
        """Poll every subscription once.

        A failing subscription is logged and skipped; its checkpoint stays
        where it was and the other subscriptions still run.
        """
        results: dict[Subscription, list[dict[str, Any]]] = {}
        for adapter_id, callback_id in self.subscriptions:
            try:
                results[(adapter_id, callback_id)] = await self.poll(
                    adapter_id, callback_id
                )
            except Exception as e:
                logger.error(f"Poll failed for {adapter_id}/{callback_id}: {e}")
        return results

    async def run_forever(self, interval: float) -> None:
        """Poll all subscriptions every ``interval`` seconds until cancelled."""
        logger.info(f"Polling {len(self._subscriptions)} subscriptions every {interval}s")
        while True:
            await self.run_once()
            await asyncio.sleep(interval)
