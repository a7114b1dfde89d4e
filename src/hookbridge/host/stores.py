"""Process-local stores used by the example host.

A production host keeps these in its own durable store. These exist so the
host app can run end to end in development and in tests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Mapping

from hookbridge.auth.models.tokens import TokenSet


@dataclass(frozen=True)
class PendingAuthorization:
    """What the host must remember between issuing a URL and its callback."""

    adapter_id: str
    state: str
    redirect_uri: str
    fields: Mapping[str, str] = field(default_factory=dict)
    code_verifier: str | None = None
    created_at: float = field(default_factory=time.time)


class InMemoryAuthorizationStore:
    """Pending authorizations keyed by state. Each can be taken once."""

    def __init__(self, max_age: float = 600.0):
        self.max_age = max_age
        self._pending: dict[str, PendingAuthorization] = {}

    async def put(self, pending: PendingAuthorization) -> None:
        """Remember ``pending`` and drop entries whose consent was abandoned."""
        now = time.time()
        expired = [
            state
            for state, entry in self._pending.items()
            if self._is_expired(entry, now)
        ]
        for state in expired:
            del self._pending[state]
        self._pending[pending.state] = pending

    async def pop(self, state: str) -> PendingAuthorization | None:
        pending = self._pending.pop(state, None)
        if pending is None or self._is_expired(pending, time.time()):
            return None
        return pending

    def _is_expired(self, pending: PendingAuthorization, now: float) -> bool:
        return now - pending.created_at > self.max_age

    def __len__(self) -> int:
        return len(self._pending)


@dataclass(frozen=True)
class Credential:
    token_set: TokenSet
    fields: Mapping[str, str] = field(default_factory=dict)
    stored_at: float = field(default_factory=time.time)


class InMemoryCredentialStore:
    """Latest credential per adapter. A refresh replaces the previous one."""

    def __init__(self):
        self._credentials: dict[str, Credential] = {}

    async def save(self, adapter_id: str, credential: Credential) -> None:
        self._credentials[adapter_id] = credential

    async def get(self, adapter_id: str) -> Credential | None:
        return self._credentials.get(adapter_id)
