"""Root exception types shared by every hookbridge subsystem.

Configuration errors are raised synchronously while adapters are being
registered. They indicate a programming mistake in the adapter and should
stop host startup, never be retried.
"""

from __future__ import annotations


class HookBridgeError(Exception):
    """Base exception for everything raised by hookbridge."""

    pass


class ConfigurationError(HookBridgeError):
    """Raised when an adapter registration is incomplete or invalid."""

    pass


class FormValidationError(ConfigurationError):
    """Raised when form-collected provider fields are missing or invalid."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class AdapterNotFoundError(ConfigurationError):
    """Raised when the host asks for an adapter that was never registered."""

    pass
