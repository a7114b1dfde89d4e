"""Poll checkpoint storage.

The host owns poll state; the bridge only loads the last committed value
before a poll and saves the new one after a successful poll. Durable
storage is the host's concern; ``InMemoryPollStateStore`` serves tests and
the example host.
"""

from __future__ import annotations

import copy
from typing import Protocol

from hookbridge.callbacks.models import PollState


class PollStateStore(Protocol):
    """Where poll checkpoints are committed.

    Implementations must not alias state between ``save`` and ``load``
    callers; the bridge copies on load as well, but other readers may not.
    """

    async def load(self, callback_id: str) -> PollState | None:
        """Return the last committed state, or None if nothing was committed."""
        ...

    async def save(self, callback_id: str, state: PollState) -> None:
        """Commit ``state`` as the checkpoint for ``callback_id``."""
        ...


class InMemoryPollStateStore:
    """Process-local store. Copies on the way in and out."""

    def __init__(self):
        self._states: dict[str, PollState] = {}

    async def load(self, callback_id: str) -> PollState | None:
        state = self._states.get(callback_id)
        return copy.deepcopy(state) if state is not None else None

    async def save(self, callback_id: str, state: PollState) -> None:
        self._states[callback_id] = copy.deepcopy(state)

    def __len__(self) -> int:
        return len(self._states)
