"""OAuth 2.0 token exchange and refresh service.

Implements the RFC 6749 token endpoint interactions shared by every
provider integration: authorization code exchange (with the PKCE verifier
when applicable) and the refresh grant. Requests are always
application/x-www-form-urlencoded.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from hookbridge.auth.models.errors import (
    DiscoveryError,
    ProtocolError,
    ResponseFormatError,
    TokenExchangeError,
    TokenRefreshError,
    TokenResponseFormatError,
)
from hookbridge.auth.models.tokens import (
    RefreshTokenRequest,
    TokenRequest,
    TokenSet,
)

logger = logging.getLogger(__name__)

TOKEN_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


class OAuth2TokenManager:
    """Performs token endpoint requests on behalf of provider adapters.

    Every failure is raised, never returned: a non-success status becomes a
    TokenExchangeError or TokenRefreshError carrying the status code and the
    response body, and an unparseable success body becomes a
    TokenResponseFormatError. Nothing is retried.
    """

    def __init__(
        self, timeout: float = 30.0, http_client: httpx.AsyncClient | None = None
    ):
        """Initialize the token manager.

        Args:
            timeout: HTTP request timeout in seconds
            http_client: Optional preconfigured client, mostly for tests
        """
        self.timeout = timeout
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> OAuth2TokenManager:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def exchange_code(
        self, token_request: TokenRequest, keep: Iterable[str] | None = None
    ) -> TokenSet:
        """Exchange an authorization code for tokens.

        Args:
            token_request: Token exchange request parameters
            keep: Extension fields to retain from the response (None keeps all)

        Returns:
            TokenSet: Tokens plus provider-specific extensions

        Raises:
            TokenExchangeError: Non-success status, OAuth error body or
                transport failure
            TokenResponseFormatError: Success status with an unusable body
        """
        logger.debug(
            f"Exchanging authorization code at {token_request.token_endpoint} "
            f"for client {token_request.client_id}"
        )

        payload = await self._post_token(
            token_request.token_endpoint,
            token_request.to_form_data(),
            token_request.basic_auth(),
            TokenExchangeError,
            "Token exchange",
        )
        token_set = TokenSet.from_response(payload, keep=keep)

        logger.info(f"Token exchange successful for client {token_request.client_id}")
        return token_set

    async def refresh_token(
        self, refresh_request: RefreshTokenRequest, keep: Iterable[str] | None = None
    ) -> TokenSet:
        """Refresh an access token.

        Providers that do not rotate refresh tokens omit ``refresh_token``
        from the response; the request's refresh token is carried over so
        the caller can refresh again.

        Raises:
            TokenRefreshError: Non-success status, OAuth error body or
                transport failure
            TokenResponseFormatError: Success status with an unusable body
        """
        logger.debug(
            f"Refreshing access token at {refresh_request.token_endpoint} "
            f"for client {refresh_request.client_id}"
        )

        payload = await self._post_token(
            refresh_request.token_endpoint,
            refresh_request.to_form_data(),
            refresh_request.basic_auth(),
            TokenRefreshError,
            "Token refresh",
        )
        token_set = TokenSet.from_response(
            payload,
            keep=keep,
            fallback_refresh_token=refresh_request.refresh_token,
        )

        logger.info(f"Token refresh successful for client {refresh_request.client_id}")
        return token_set

    async def get_json(
        self,
        url: str,
        access_token: str,
        error_cls: type[ProtocolError] = DiscoveryError,
    ) -> Any:
        """GET a JSON document with a bearer token.

        Used by adapters that must discover the tenant or site a grant
        applies to before the final TokenSet is assembled.
        """
        logger.debug(f"Fetching {url}")
        try:
            response = await self._http_client.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise error_cls(f"HTTP error fetching {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"GET {url} failed with {response.status_code}")
            raise error_cls(
                f"Request to {url} failed with {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ResponseFormatError(
                f"Invalid JSON from {url}: {e}", body=response.text
            ) from e

    async def _post_token(
        self,
        endpoint: str,
        form_data: dict[str, str],
        basic_auth: tuple[str, str] | None,
        error_cls: type[ProtocolError],
        operation: str,
    ) -> dict[str, Any]:
        logger.debug(f"{operation} request: grant_type={form_data['grant_type']}")

        kwargs: dict[str, Any] = {"data": form_data, "headers": TOKEN_HEADERS}
        if basic_auth is not None:
            kwargs["auth"] = basic_auth

        try:
            response = await self._http_client.post(endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(f"HTTP error during {operation.lower()}: {e}") from e

        return self._parse_token_response(response, error_cls, operation)

    def _parse_token_response(
        self,
        response: httpx.Response,
        error_cls: type[ProtocolError],
        operation: str,
    ) -> dict[str, Any]:
        """Parse a token endpoint response into a JSON object.

        Raises:
            ProtocolError: ``error_cls`` for non-success responses and for
                success responses carrying an OAuth ``error`` field
            TokenResponseFormatError: If a success body is not a JSON object
        """
        if not 200 <= response.status_code < 300:
            logger.warning(f"{operation} failed with {response.status_code}")
            raise error_cls(
                f"{operation} failed: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenResponseFormatError(
                f"Invalid token response format: {e}", body=response.text
            ) from e

        if not isinstance(payload, dict):
            raise TokenResponseFormatError(
                "Token response is not a JSON object", body=response.text
            )

        # Some providers (GitHub) report OAuth errors with a 200 status
        if payload.get("error"):
            description = payload.get("error_description") or payload["error"]
            logger.warning(f"{operation} returned OAuth error: {payload['error']}")
            raise error_cls(
                f"{operation} failed: {description}",
                status_code=response.status_code,
                body=response.text,
            )

        return payload

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
