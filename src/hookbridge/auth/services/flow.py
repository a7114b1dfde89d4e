"""Authorization callback handling.

Parses the provider's redirect back to the host and extracts the
authorization code. State comparison belongs to the host, which is the only
party that knows which state it issued; ``validate_state`` is provided for
that purpose.
"""

from __future__ import annotations

import logging
import secrets
from urllib.parse import parse_qs, urlparse

from hookbridge.auth.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
    StateValidationError,
)
from hookbridge.auth.models.flow import AuthorizationResponse

logger = logging.getLogger(__name__)


def parse_callback_url(callback_url: str) -> AuthorizationResponse:
    """Parse an OAuth callback URL into an AuthorizationResponse.

    Args:
        callback_url: Full callback URL from the authorization server

    Returns:
        AuthorizationResponse: Parsed callback parameters

    Raises:
        AuthorizationCallbackError: If the URL is malformed
    """
    try:
        parsed = urlparse(callback_url)
        query_params = parse_qs(parsed.query)
    except (TypeError, ValueError) as e:
        raise AuthorizationCallbackError(f"Failed to parse callback URL: {e}") from e

    # Extract single values from query parameter lists
    def get_single_param(key: str) -> str | None:
        values = query_params.get(key, [])
        return values[0] if values else None

    return AuthorizationResponse(
        code=get_single_param("code"),
        state=get_single_param("state"),
        error=get_single_param("error"),
        error_description=get_single_param("error_description"),
        error_uri=get_single_param("error_uri"),
    )


def require_code(callback_url: str) -> str:
    """Return the authorization code carried by ``callback_url``.

    Raises:
        AuthorizationError: If the provider redirected with an error
        AuthorizationCallbackError: If no code is present
    """
    response = parse_callback_url(callback_url)

    if response.is_error():
        logger.warning(
            f"Authorization callback contained error: {response.error} - "
            f"{response.error_description}"
        )
        raise AuthorizationError(
            f"Authorization failed: {response.error} "
            f"({response.error_description or ''}) "
            f"{'See: ' + response.error_uri if response.error_uri else ''}".strip()
        )
    if not response.code:
        raise AuthorizationCallbackError("No authorization code received")

    return response.code


def validate_state(expected: str, actual: str | None) -> None:
    """Validate state parameter matches expected value.

    Args:
        expected: State parameter from original authorization request
        actual: State parameter from callback URL

    Raises:
        StateValidationError: If state parameters don't match
    """
    if actual is None:
        raise StateValidationError(
            "Authorization server callback missing required state parameter"
        )
    if not secrets.compare_digest(expected.encode(), actual.encode()):
        raise StateValidationError("State parameter mismatch - possible CSRF attack")
