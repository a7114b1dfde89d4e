"""Full authorization code flow through a registration, with a fake provider."""

from hookbridge.auth.handler import OAuthRegistration
from hookbridge.auth.models.flow import AuthorizationRequest, CallbackInput, RefreshInput
from hookbridge.auth.provider import OAuthProvider, ProviderEndpoints

ENDPOINTS = ProviderEndpoints(
    authorize_url="https://provider.example.com/authorize",
    token_url="https://provider.example.com/token",
)


class TestAuthorizationCodeFlow:
    async def test_url_carries_state_and_encoded_redirect_uri(self, token_manager) -> None:
        # Arrange
        registration = OAuthRegistration.from_handler(
            OAuthProvider("example", ENDPOINTS, token_manager=token_manager)
        )

        # Act
        result = await registration.authorization_url(
            AuthorizationRequest(
                client_id="C1",
                client_secret="S1",
                state="abc123",
                redirect_uri="https://host/cb",
            )
        )

        # Assert
        assert "state=abc123" in result.authorization_url
        assert "redirect_uri=https%3A%2F%2Fhost%2Fcb" in result.authorization_url
        assert "client_id=C1" in result.authorization_url
        assert "code_challenge_method=S256" in result.authorization_url

    async def test_callback_posts_code_and_stored_verifier(
        self, fake_provider, token_manager
    ) -> None:
        # Arrange
        registration = OAuthRegistration.from_handler(
            OAuthProvider("example", ENDPOINTS, token_manager=token_manager)
        )
        fake_provider.respond(
            json={"access_token": "AT1", "refresh_token": "RT1", "expires_in": 3600}
        )

        # Act
        token_set = await registration.callback(
            CallbackInput(
                client_id="C1",
                client_secret="S1",
                redirect_uri="https://host/cb",
                full_url="https://host/cb?code=XYZ&state=abc123",
                state="abc123",
                code_verifier="V1",
            )
        )

        # Assert
        form = fake_provider.form()
        assert form["code"] == "XYZ"
        assert form["code_verifier"] == "V1"
        assert form["grant_type"] == "authorization_code"
        assert token_set.refresh_token == "RT1"

    async def test_refresh_cycle_with_and_without_rotation(
        self, fake_provider, token_manager
    ) -> None:
        # Arrange
        registration = OAuthRegistration.from_handler(
            OAuthProvider("example", ENDPOINTS, token_manager=token_manager)
        )
        fake_provider.respond(json={"access_token": "AT2", "refresh_token": "RT2"})
        fake_provider.respond(json={"access_token": "AT3"})

        # Act - first refresh rotates, second does not
        rotated = await registration.refresh(
            RefreshInput(
                refresh_token="RT1",
                client_id="C1",
                client_secret="S1",
                redirect_uri="https://host/cb",
            )
        )
        kept = await registration.refresh(
            RefreshInput(
                refresh_token=rotated.refresh_token,
                client_id="C1",
                client_secret="S1",
                redirect_uri="https://host/cb",
            )
        )

        # Assert
        assert rotated.refresh_token == "RT2"
        assert kept.access_token == "AT3"
        assert kept.refresh_token == "RT2"
        assert fake_provider.form(1)["refresh_token"] == "RT2"
