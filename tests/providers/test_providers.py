import base64
from urllib.parse import parse_qs, urlparse

import pytest

from hookbridge.auth.models.errors import AuthorizationCallbackError, TokenExchangeError
from hookbridge.auth.models.flow import AuthorizationRequest, CallbackInput, RefreshInput
from hookbridge.errors import ConfigurationError
from hookbridge.providers.catalog import PROVIDERS, build_provider
from hookbridge.providers.github import github_provider
from hookbridge.providers.google import google_provider
from hookbridge.providers.microsoft import microsoft_provider
from hookbridge.providers.notion import notion_provider
from hookbridge.providers.quickbooks import quickbooks_provider
from hookbridge.providers.salesforce import salesforce_provider
from hookbridge.providers.slack import slack_provider


def authorization_request(**fields: str) -> AuthorizationRequest:
    return AuthorizationRequest(
        client_id="C1",
        client_secret="S1",
        state="abc123",
        redirect_uri="https://host/cb",
        fields=fields,
    )


def callback(full_url: str, code_verifier: str | None = None, **fields: str) -> CallbackInput:
    return CallbackInput(
        client_id="C1",
        client_secret="S1",
        redirect_uri="https://host/cb",
        full_url=full_url,
        state="abc123",
        code_verifier=code_verifier,
        fields=fields,
    )


def query_of(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}


class TestGitHub:
    async def test_error_in_success_body_fails_exchange(
        self, fake_provider, token_manager
    ) -> None:
        # Arrange
        fake_provider.respond(json={"error": "bad_verification_code"})

        # Act & Assert
        with pytest.raises(TokenExchangeError, match="bad_verification_code"):
            await github_provider(token_manager).handle_callback(
                callback("https://host/cb?code=XYZ&state=abc123")
            )

    async def test_no_pkce_and_no_extensions_kept(self, fake_provider, token_manager) -> None:
        # Arrange
        provider = github_provider(token_manager)
        fake_provider.respond(
            json={"access_token": "gho_1", "token_type": "bearer", "scope": "repo"}
        )

        # Act
        url = await provider.get_authorization_url(authorization_request())
        token_set = await provider.handle_callback(
            callback("https://host/cb?code=XYZ&state=abc123")
        )

        # Assert
        assert url.code_verifier is None
        assert "code_verifier" not in fake_provider.form()
        assert token_set.extensions == {}
        assert provider.supports_refresh is False


class TestSalesforce:
    @pytest.mark.parametrize(
        ("environment", "host"),
        [
            ("production", "https://login.salesforce.com"),
            ("sandbox", "https://test.salesforce.com"),
        ],
    )
    async def test_environment_selects_login_host(
        self, token_manager, environment, host
    ) -> None:
        result = await salesforce_provider(token_manager).get_authorization_url(
            authorization_request(environment=environment)
        )

        assert result.authorization_url.startswith(f"{host}/services/oauth2/authorize?")

    async def test_keeps_instance_url(self, fake_provider, token_manager) -> None:
        # Arrange
        fake_provider.respond(
            json={
                "access_token": "AT1",
                "refresh_token": "RT1",
                "instance_url": "https://na1.salesforce.com",
                "id": "https://login.salesforce.com/id/00D/005",
                "issued_at": "1700000000000",
                "signature": "sig",
                "unrelated": "dropped",
            }
        )

        # Act
        token_set = await salesforce_provider(token_manager).handle_callback(
            callback(
                "https://host/cb?code=XYZ&state=abc123",
                code_verifier="V1",
                environment="sandbox",
            )
        )

        # Assert
        assert str(fake_provider.last_request.url) == (
            "https://test.salesforce.com/services/oauth2/token"
        )
        assert token_set.extensions["instance_url"] == "https://na1.salesforce.com"
        assert "unrelated" not in token_set.extensions


class TestMicrosoft:
    async def test_account_type_selects_tenant(self, token_manager) -> None:
        result = await microsoft_provider(token_manager).get_authorization_url(
            authorization_request(accountType="organizations")
        )

        assert result.authorization_url.startswith(
            "https://login.microsoftonline.com/organizations/oauth2/v2.0/authorize?"
        )
        assert query_of(result.authorization_url)["response_mode"] == "query"


class TestGoogle:
    async def test_requests_offline_access(self, token_manager) -> None:
        result = await google_provider("gmail", token_manager).get_authorization_url(
            authorization_request()
        )

        query = query_of(result.authorization_url)
        assert query["access_type"] == "offline"
        assert query["prompt"] == "consent"
        assert "gmail.modify" in query["scope"]

    async def test_refresh_keeps_non_rotated_token(self, fake_provider, token_manager) -> None:
        fake_provider.respond(json={"access_token": "AT2", "expires_in": 3599})

        token_set = await google_provider("google-drive", token_manager).refresh_access_token(
            RefreshInput(
                refresh_token="RT1",
                client_id="C1",
                client_secret="S1",
                redirect_uri="https://host/cb",
            )
        )

        assert token_set.refresh_token == "RT1"


class TestNotion:
    async def test_uses_basic_client_auth(self, fake_provider, token_manager) -> None:
        # Arrange
        fake_provider.respond(
            json={
                "access_token": "secret_1",
                "workspace_id": "ws1",
                "workspace_name": "Acme",
                "bot_id": "bot1",
            }
        )

        # Act
        token_set = await notion_provider(token_manager).handle_callback(
            callback("https://host/cb?code=XYZ&state=abc123", code_verifier="V1")
        )

        # Assert
        expected = base64.b64encode(b"C1:S1").decode()
        assert fake_provider.last_request.headers["authorization"] == f"Basic {expected}"
        assert "client_secret" not in fake_provider.form()
        assert token_set.extensions["workspace_id"] == "ws1"


class TestSlack:
    async def test_scopes_are_comma_separated(self, token_manager) -> None:
        result = await slack_provider(token_manager).get_authorization_url(
            authorization_request()
        )

        assert "," in query_of(result.authorization_url)["scope"]
        assert " " not in query_of(result.authorization_url)["scope"]


class TestQuickBooks:
    async def test_realm_id_is_attached(self, fake_provider, token_manager) -> None:
        # Arrange
        fake_provider.respond(json={"access_token": "AT1", "refresh_token": "RT1"})

        # Act
        token_set = await quickbooks_provider(token_manager).handle_callback(
            callback(
                "https://host/cb?code=XYZ&state=abc123&realmId=9130",
                environment="sandbox",
            )
        )

        # Assert
        assert token_set.extensions["realm_id"] == "9130"
        assert token_set.extensions["api_base_url"] == (
            "https://sandbox-quickbooks.api.intuit.com"
        )

    async def test_missing_realm_id_fails_before_exchange(
        self, fake_provider, token_manager
    ) -> None:
        with pytest.raises(AuthorizationCallbackError, match="realmId"):
            await quickbooks_provider(token_manager).handle_callback(
                callback("https://host/cb?code=XYZ&state=abc123")
            )

        assert fake_provider.requests == []


class TestCatalog:
    @pytest.mark.parametrize("name", sorted(PROVIDERS))
    def test_every_provider_can_be_built(self, name, token_manager) -> None:
        provider = build_provider(name, token_manager)

        assert provider.token_manager is token_manager

    def test_unknown_provider_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            build_provider("myspace")
