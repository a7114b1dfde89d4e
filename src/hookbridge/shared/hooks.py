"""Helpers for invoking adapter hooks that may be sync or async."""

from __future__ import annotations

import inspect
from typing import Any, Callable

from hookbridge.errors import ConfigurationError


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call ``hook`` and await the result if it is awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def require_callable(name: str, hook: Any, required: bool = False) -> None:
    """Validate a hook at registration time.

    Raises:
        ConfigurationError: If a required hook is missing, or a hook that
            was given is not callable
    """
    if hook is None:
        if required:
            raise ConfigurationError(f"{name} is required")
        return
    if not callable(hook):
        raise ConfigurationError(f"{name} must be callable")
