"""PKCE (Proof Key for Code Exchange) generation.

Implements the S256 method of RFC 7636. The ``plain`` method is not
supported. Every call is independent: there is no shared state, so the
functions here are safe to call concurrently.
"""

from __future__ import annotations

import base64
import secrets

from hookbridge.auth.models.errors import PKCEError
from hookbridge.auth.models.security import PKCEParameters, s256

VERIFIER_BYTES = 32


def generate() -> PKCEParameters:
    """Generate a fresh PKCE pair.

    The verifier is 32 random bytes, base64url-encoded without padding,
    which yields 43 characters from the unreserved URL alphabet.
    """
    raw = secrets.token_bytes(VERIFIER_BYTES)
    code_verifier = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return PKCEParameters(
        code_verifier=code_verifier,
        code_challenge=derive_challenge(code_verifier),
        code_challenge_method="S256",
    )


def derive_challenge(code_verifier: str) -> str:
    """Derive the S256 code challenge for ``code_verifier``.

    RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))
    """
    return s256(code_verifier)


class PKCEManager:
    """Generates PKCE pairs for provider authorization URLs."""

    def generate_parameters(self) -> PKCEParameters:
        """Generate new PKCE parameters for an authorization flow.

        Returns:
            PKCEParameters: Immutable pair for one authorization attempt

        Raises:
            PKCEError: If parameter generation fails
        """
        try:
            return generate()
        except Exception as e:
            raise PKCEError(f"Failed to generate PKCE parameters: {e}") from e
