import base64
import hashlib
import re

import pytest

from hookbridge.auth.models.security import PKCEParameters
from hookbridge.auth.primitives.pkce import PKCEManager, derive_challenge, generate

UNRESERVED = re.compile(r"^[A-Za-z0-9\-._~]+$")


class TestGenerate:
    def test_verifier_is_43_unreserved_characters(self) -> None:
        # Act
        params = generate()

        # Assert - 32 random bytes encode to 43 base64url characters
        assert len(params.code_verifier) == 43
        assert UNRESERVED.match(params.code_verifier)
        assert "=" not in params.code_verifier

    def test_challenge_is_s256_of_verifier(self) -> None:
        # Act
        params = generate()

        # Assert
        expected_challenge = (
            base64.urlsafe_b64encode(
                hashlib.sha256(params.code_verifier.encode("ascii")).digest()
            )
            .decode("ascii")
            .rstrip("=")
        )
        assert params.code_challenge == expected_challenge
        assert params.code_challenge_method == "S256"

    def test_each_call_is_unique(self) -> None:
        # Act
        verifiers = {generate().code_verifier for _ in range(50)}

        # Assert
        assert len(verifiers) == 50


class TestDeriveChallenge:
    def test_matches_rfc_7636_appendix_b(self) -> None:
        # Arrange - test vector from RFC 7636 Appendix B
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        # Act
        challenge = derive_challenge(verifier)

        # Assert
        assert challenge == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


class TestPKCEParameters:
    def test_rejects_short_verifier(self) -> None:
        with pytest.raises(ValueError, match="43-128"):
            PKCEParameters(code_verifier="short", code_challenge=derive_challenge("short"))

    def test_rejects_plain_method(self) -> None:
        verifier = "a" * 43
        with pytest.raises(ValueError, match="S256"):
            PKCEParameters(
                code_verifier=verifier,
                code_challenge=verifier,
                code_challenge_method="plain",
            )

    def test_rejects_mismatched_challenge(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            PKCEParameters(code_verifier="a" * 43, code_challenge="b" * 43)


class TestPKCEManager:
    def test_generate_parameters_returns_valid_pair(self) -> None:
        # Arrange
        pkce_manager = PKCEManager()

        # Act
        params = pkce_manager.generate_parameters()

        # Assert
        assert params.code_challenge == derive_challenge(params.code_verifier)
