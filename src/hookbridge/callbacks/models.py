"""Callback event models.

Values passed to and returned from the three callback hooks. The poll hook
returns its new checkpoint as ``PollResult.next_state`` instead of calling
back into the host, so a checkpoint can only be committed once per poll and
only when the hook returns normally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

PollState = dict[str, Any]


@dataclass(frozen=True)
class InstallData:
    """Where the provider should deliver events for one subscription."""

    callback_url: str
    callback_id: str


@dataclass(frozen=True)
class CallbackEvent:
    """One inbound push event.

    ``event_id`` is supplied by the host and is not deduplicated here.
    Hooks that need at-most-once handling must dedupe on it themselves.
    """

    callback_id: str
    event_id: str
    payload: Any


@dataclass(frozen=True)
class CallbackResult:
    """Actionable result produced from an event."""

    type: str
    result: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, value: Any) -> CallbackResult | None:
        if value is None or isinstance(value, CallbackResult):
            return value
        if isinstance(value, Mapping) and "type" in value:
            return cls(type=str(value["type"]), result=dict(value.get("result") or {}))
        raise TypeError(
            f"handle must return CallbackResult, a {{type, result}} mapping or None, "
            f"got {type(value).__name__}"
        )

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, "result": self.result}


@dataclass(frozen=True)
class PollRequest:
    """Input of one poll: the last committed checkpoint for the callback."""

    callback_id: str
    state: PollState


@dataclass(frozen=True)
class PollResult:
    """Items found by one poll and the checkpoint to resume from.

    ``next_state=None`` leaves the committed checkpoint unchanged.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    next_state: PollState | None = None

    @classmethod
    def coerce(cls, value: Any) -> PollResult:
        if isinstance(value, PollResult):
            return value
        if value is None:
            return cls()
        if isinstance(value, list):
            return cls(items=value)
        raise TypeError(
            f"poll must return PollResult, a list or None, got {type(value).__name__}"
        )
