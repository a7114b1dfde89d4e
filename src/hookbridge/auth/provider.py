"""Generic OAuth 2.0 authorization code provider.

Nearly every provider integration follows the same three steps with a
handful of quirks: extra authorize parameters, a templated tenant URL, HTTP
Basic client authentication, a refresh token that is or is not rotated, a
discovery call after the exchange. ``OAuthProvider`` implements the
``OAuthHandler`` contract once and exposes those quirks as constructor
arguments and overridable hooks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from hookbridge.auth.models.errors import AuthorizationCallbackError
from hookbridge.auth.models.flow import (
    AuthorizationParameters,
    AuthorizationRequest,
    AuthorizationUrl,
    CallbackInput,
    RefreshInput,
)
from hookbridge.auth.models.forms import FormDescriptor
from hookbridge.auth.models.tokens import (
    ClientAuthMethod,
    RefreshTokenRequest,
    TokenRequest,
    TokenSet,
)
from hookbridge.auth.primitives.pkce import PKCEManager
from hookbridge.auth.services.flow import require_code
from hookbridge.auth.services.tokens import OAuth2TokenManager
from hookbridge.errors import ConfigurationError, FormValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderEndpoints:
    """Authorize and token endpoints.

    Either URL may contain ``{field}`` placeholders filled from the auth
    form values, e.g. ``https://login.example.com/{tenant}/authorize``.
    """

    authorize_url: str
    token_url: str

    def resolve(self, fields: Mapping[str, str]) -> ProviderEndpoints:
        try:
            return ProviderEndpoints(
                authorize_url=self.authorize_url.format_map(dict(fields)),
                token_url=self.token_url.format_map(dict(fields)),
            )
        except KeyError as e:
            key = e.args[0]
            raise FormValidationError(
                f"Missing auth form field for endpoint: {key}", {key: "required"}
            ) from e


class OAuthProvider:
    """Authorization code flow for one downstream service.

    Subclasses override ``resolve_endpoints``, ``authorize_params``,
    ``after_exchange`` or ``after_refresh`` when a provider needs more than
    configuration.
    """

    def __init__(
        self,
        name: str,
        endpoints: ProviderEndpoints,
        scopes: Sequence[str] = (),
        *,
        scope_separator: str = " ",
        use_pkce: bool = True,
        extra_authorize_params: Mapping[str, str] | None = None,
        client_auth: ClientAuthMethod = "body",
        token_keep: Iterable[str] | None = None,
        form: FormDescriptor | None = None,
        supports_refresh: bool = True,
        include_redirect_uri_on_refresh: bool = False,
        token_manager: OAuth2TokenManager | None = None,
    ):
        """Configure a provider.

        Args:
            name: Provider identifier, used in logs
            endpoints: Authorize and token endpoints
            scopes: Scopes requested on every authorization
            scope_separator: Joins scopes; most providers use a space
            use_pkce: Attach an S256 code challenge and send the verifier
            extra_authorize_params: Provider-specific authorize parameters
            client_auth: Send client credentials in the body or as Basic auth
            token_keep: Extension fields to keep from token responses;
                None keeps all of them
            form: Fields the user must supply before authorizing
            supports_refresh: False for providers without refresh tokens
            include_redirect_uri_on_refresh: Some providers require it
            token_manager: Shared token manager, created if not given
        """
        self.name = name
        self.endpoints = endpoints
        self.scopes = tuple(scopes)
        self.scope_separator = scope_separator
        self.use_pkce = use_pkce
        self.extra_authorize_params = dict(extra_authorize_params or {})
        self.client_auth = client_auth
        self.token_keep = None if token_keep is None else tuple(token_keep)
        self.form = form
        self.supports_refresh = supports_refresh
        self.include_redirect_uri_on_refresh = include_redirect_uri_on_refresh
        self._pkce_manager = PKCEManager()
        self._token_manager = token_manager or OAuth2TokenManager()

    # ----- extension points -----
    def resolve_endpoints(self, fields: Mapping[str, str]) -> ProviderEndpoints:
        return self.endpoints.resolve(fields)

    def scope_for(self, fields: Mapping[str, str]) -> str | None:
        if not self.scopes:
            return None
        return self.scope_separator.join(self.scopes)

    def authorize_params(self, request: AuthorizationRequest) -> dict[str, str]:
        return dict(self.extra_authorize_params)

    async def after_exchange(
        self, token_set: TokenSet, callback: CallbackInput
    ) -> TokenSet:
        """Complete the TokenSet after a code exchange (e.g. tenant discovery)."""
        return token_set

    async def after_refresh(self, token_set: TokenSet, refresh: RefreshInput) -> TokenSet:
        return token_set

    # ----- OAuthHandler contract -----
    def get_auth_form(self) -> FormDescriptor:
        return self.form or FormDescriptor()

    async def get_authorization_url(
        self, request: AuthorizationRequest
    ) -> AuthorizationUrl:
        """Build the authorization URL for ``request``.

        When PKCE is enabled a fresh pair is generated and its verifier is
        returned alongside the URL; nothing is retained here.

        Raises:
            FormValidationError: If the auth form values are invalid
        """
        if self.form is not None:
            self.form.validate_values(request.fields)

        endpoints = self.resolve_endpoints(request.fields)
        pkce = self._pkce_manager.generate_parameters() if self.use_pkce else None

        parameters = AuthorizationParameters(
            authorization_endpoint=endpoints.authorize_url,
            client_id=request.client_id,
            redirect_uri=request.redirect_uri,
            state=request.state,
            scope=self.scope_for(request.fields),
            code_challenge=pkce.code_challenge if pkce else None,
            code_challenge_method=pkce.code_challenge_method if pkce else None,
            extra=self.authorize_params(request),
        )

        logger.info(f"Generated {self.name} authorization URL for {request.client_id}")
        return AuthorizationUrl(
            authorization_url=parameters.build_authorization_url(),
            code_verifier=pkce.code_verifier if pkce else None,
        )

    async def handle_callback(self, callback: CallbackInput) -> TokenSet:
        """Exchange the authorization code for tokens.

        Raises:
            AuthorizationCallbackError: No code in the redirect, or a PKCE
                provider called without the stored verifier
            TokenExchangeError: The token endpoint rejected the exchange
            TokenResponseFormatError: The token endpoint answered garbage
        """
        code = callback.code or require_code(callback.full_url)
        if self.use_pkce and not callback.code_verifier:
            raise AuthorizationCallbackError(
                f"{self.name} callback is missing the stored code_verifier"
            )

        endpoints = self.resolve_endpoints(callback.fields)
        token_request = TokenRequest(
            token_endpoint=endpoints.token_url,
            code=code,
            redirect_uri=callback.redirect_uri,
            client_id=callback.client_id,
            client_secret=callback.client_secret,
            code_verifier=callback.code_verifier if self.use_pkce else None,
            client_auth=self.client_auth,
        )

        token_set = await self._token_manager.exchange_code(
            token_request, keep=self.token_keep
        )
        return await self.after_exchange(token_set, callback)

    async def refresh_access_token(self, refresh: RefreshInput) -> TokenSet:
        """Refresh tokens with the refresh grant.

        Raises:
            ConfigurationError: If the provider issues no refresh tokens
            TokenRefreshError: The token endpoint rejected the refresh
        """
        if not self.supports_refresh:
            raise ConfigurationError(f"{self.name} does not support token refresh")

        endpoints = self.resolve_endpoints(refresh.fields)
        refresh_request = RefreshTokenRequest(
            token_endpoint=endpoints.token_url,
            refresh_token=refresh.refresh_token,
            client_id=refresh.client_id,
            client_secret=refresh.client_secret,
            redirect_uri=(
                refresh.redirect_uri if self.include_redirect_uri_on_refresh else None
            ),
            client_auth=self.client_auth,
        )

        token_set = await self._token_manager.refresh_token(
            refresh_request, keep=self.token_keep
        )
        return await self.after_refresh(token_set, refresh)

    @property
    def token_manager(self) -> OAuth2TokenManager:
        return self._token_manager

    async def close(self) -> None:
        await self._token_manager.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

