from __future__ import annotations

from typing import Any, Awaitable, Callable, Union

from hookbridge.callbacks.models import (
    CallbackEvent,
    InstallData,
    PollRequest,
    PollResult,
    PollState,
)
from hookbridge.shared.hooks import call_hook, require_callable

MaybeAwaitable = Union[Any, Awaitable[Any]]

InstallHook = Callable[[InstallData], MaybeAwaitable]
HandleHook = Callable[[CallbackEvent], MaybeAwaitable]
PollHook = Callable[[PollRequest], MaybeAwaitable]

SetState = Callable[[PollState], None]
LegacyPollHook = Callable[[str, PollState, SetState], MaybeAwaitable]


class CallbackRegistration:
    """Validated callback hooks for one adapter.

    ``handle`` is mandatory. ``install`` and ``poll`` are optional: an
    adapter whose provider pushes events needs no poll hook, and one that
    must be polled usually needs no install hook.
    """

    def __init__(
        self,
        handle: HandleHook | None,
        install: InstallHook | None = None,
        poll: PollHook | None = None,
    ):
        """Register callback hooks.

        Raises:
            ConfigurationError: If handle is missing or a hook is not callable
        """
        require_callable("handle", handle, True)
        require_callable("install", install)
        require_callable("poll", poll)

        self.handle = handle
        self.install = install
        self.poll = poll

    @classmethod
    def from_handler(cls, handler: Any) -> CallbackRegistration:
        """Build a registration from any object exposing the hook methods."""
        if isinstance(handler, CallbackRegistration):
            return handler
        return cls(
            handle=getattr(handler, "handle", None),
            install=getattr(handler, "install", None),
            poll=getattr(handler, "poll", None),
        )


def poll_with_set_state(hook: LegacyPollHook) -> PollHook:
    """Adapt a poll hook written against a ``set_state`` callback.

    The wrapped hook is called as ``hook(callback_id, state, set_state)``.
    ``set_state`` calls are buffered: the last one wins, and it becomes the
    ``next_state`` of the returned PollResult only if the hook returns
    normally. A hook that raises after calling ``set_state`` commits nothing.
    """

    async def poll(request: PollRequest) -> PollResult:
        pending: list[PollState] = []

        def set_state(value: PollState) -> None:
            pending.append(value)

        items = await call_hook(hook, request.callback_id, request.state, set_state)
        return PollResult(
            items=list(items or []),
            next_state=pending[-1] if pending else None,
        )

    return poll
