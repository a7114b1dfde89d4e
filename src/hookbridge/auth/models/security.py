"""Security-related models for delegated OAuth flows.

Contains the PKCE pair that binds an authorization code to the party that
requested it.
"""

from __future__ import annotations

import base64
import hashlib
import re
from dataclasses import dataclass, field

# RFC 7636 Section 4.1 unreserved characters
_VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")


def s256(code_verifier: str) -> str:
    """Return BASE64URL(SHA256(ASCII(code_verifier))) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) pair for one authorization attempt.

    Immutable and generated fresh for every authorization URL. The verifier
    is handed back to the host, which keeps it until the callback arrives.
    """

    code_verifier: str = field()
    code_challenge: str = field()
    code_challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not _VERIFIER_PATTERN.match(self.code_verifier):
            raise ValueError(
                "code_verifier must be 43-128 characters from the unreserved set"
            )
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")
        if self.code_challenge != s256(self.code_verifier):
            raise ValueError("code_challenge does not match code_verifier")
