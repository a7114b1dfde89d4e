from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from hookbridge.auth.services.tokens import OAuth2TokenManager


class FakeProvider:
    """Records outgoing requests and answers them from a response queue."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response] = []

    def respond(self, status_code: int = 200, **kwargs: Any) -> None:
        """Queue the next response. Accepts httpx.Response kwargs (json, text)."""
        self._responses.append(httpx.Response(status_code, **kwargs))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self._responses.pop(0)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def form(self, index: int = -1) -> dict[str, str]:
        """Decode a recorded form-encoded body into single values."""
        body = parse_qs(self.requests[index].content.decode())
        return {key: values[0] for key, values in body.items()}


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def token_manager(fake_provider: FakeProvider) -> OAuth2TokenManager:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_provider.handler))
    return OAuth2TokenManager(http_client=http_client)
