"""Authorization handler contract and registration.

An adapter that needs delegated access to a user's account implements
``OAuthHandler`` (or passes plain callables) and hands it to the host. The
host wraps it in an ``OAuthRegistration``, which validates the hooks once at
registration time and then drives the flow:

    get_authorization_url -> user consent -> handle_callback
        -> refresh_access_token (repeatedly)

The registration keeps no per-user state between these calls; the host
persists the state value, the PKCE verifier and the resulting tokens.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from hookbridge.auth.models.flow import (
    AuthorizationRequest,
    AuthorizationUrl,
    CallbackInput,
    RefreshInput,
)
from hookbridge.auth.models.forms import FormDescriptor
from hookbridge.auth.models.tokens import TokenSet
from hookbridge.auth.services.flow import require_code
from hookbridge.errors import ConfigurationError
from hookbridge.shared.hooks import call_hook, require_callable

MaybeAwaitable = Union[Any, Awaitable[Any]]

AuthFormHook = Callable[[], MaybeAwaitable]
AuthorizationUrlHook = Callable[[AuthorizationRequest], MaybeAwaitable]
CallbackHook = Callable[[CallbackInput], MaybeAwaitable]
RefreshHook = Callable[[RefreshInput], MaybeAwaitable]


@runtime_checkable
class OAuthHandler(Protocol):
    """Protocol for provider authorization handlers.

    ``get_auth_form`` and ``refresh_access_token`` are optional: an object
    may simply not define them. Any method may be sync or async.
    """

    def get_authorization_url(
        self, request: AuthorizationRequest
    ) -> str | AuthorizationUrl | Awaitable[str | AuthorizationUrl]:
        """Build the provider authorization URL for ``request``."""
        ...

    def handle_callback(
        self, callback: CallbackInput
    ) -> TokenSet | Awaitable[TokenSet]:
        """Exchange the code carried by the callback for tokens."""
        ...


class OAuthRegistration:
    """Validated set of authorization hooks for one adapter."""

    def __init__(
        self,
        get_authorization_url: AuthorizationUrlHook | None,
        handle_callback: CallbackHook | None,
        get_auth_form: AuthFormHook | None = None,
        refresh_access_token: RefreshHook | None = None,
    ):
        """Register authorization hooks.

        Raises:
            ConfigurationError: If get_authorization_url or handle_callback is
                missing, or any given hook is not callable
        """
        require_callable("get_authorization_url", get_authorization_url, True)
        require_callable("handle_callback", handle_callback, True)
        require_callable("get_auth_form", get_auth_form)
        require_callable("refresh_access_token", refresh_access_token)

        self._get_authorization_url = get_authorization_url
        self._handle_callback = handle_callback
        self._get_auth_form = get_auth_form
        self._refresh_access_token = refresh_access_token

    @classmethod
    def from_handler(cls, handler: Any) -> OAuthRegistration:
        """Build a registration from any object exposing the hook methods."""
        if isinstance(handler, OAuthRegistration):
            return handler
        refresh = getattr(handler, "refresh_access_token", None)
        if not getattr(handler, "supports_refresh", True):
            refresh = None
        return cls(
            get_authorization_url=getattr(handler, "get_authorization_url", None),
            handle_callback=getattr(handler, "handle_callback", None),
            get_auth_form=getattr(handler, "get_auth_form", None),
            refresh_access_token=refresh,
        )

    @property
    def supports_refresh(self) -> bool:
        return self._refresh_access_token is not None

    async def auth_form(self) -> FormDescriptor:
        """Return the adapter's auth form, or an empty one if it has none."""
        if self._get_auth_form is None:
            return FormDescriptor()
        form = await call_hook(self._get_auth_form)
        if isinstance(form, FormDescriptor):
            return form
        return FormDescriptor.model_validate(form)

    async def authorization_url(
        self, request: AuthorizationRequest
    ) -> AuthorizationUrl:
        result = await call_hook(self._get_authorization_url, request)
        return AuthorizationUrl.coerce(result)

    async def callback(self, callback: CallbackInput) -> TokenSet:
        """Run the callback hook.

        The authorization code is extracted from ``callback.full_url``
        before the hook runs, so a redirect without a code fails here
        without any network call.

        Raises:
            AuthorizationCallbackError: If the redirect carries no code
            AuthorizationError: If the provider redirected with an error
        """
        if not callback.code:
            callback = replace(callback, code=require_code(callback.full_url))
        return _coerce_token_set(await call_hook(self._handle_callback, callback))

    async def refresh(self, refresh: RefreshInput) -> TokenSet:
        """Run the refresh hook.

        Raises:
            ConfigurationError: If the adapter has no refresh hook
        """
        if self._refresh_access_token is None:
            raise ConfigurationError("Adapter does not support token refresh")
        result = _coerce_token_set(
            await call_hook(self._refresh_access_token, refresh)
        )
        if result.refresh_token is None:
            # Hooks built by hand may forget the non-rotating fallback
            result = result.model_copy(update={"refresh_token": refresh.refresh_token})
        return result


def _coerce_token_set(value: Any) -> TokenSet:
    if isinstance(value, TokenSet):
        return value
    if isinstance(value, dict):
        return TokenSet.from_response(value)
    raise TypeError(f"Expected TokenSet or dict, got {type(value).__name__}")
