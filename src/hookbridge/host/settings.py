"""Host configuration.

Read from ``HOOKBRIDGE_*`` environment variables, optionally loaded from a
``.env`` file:

    HOOKBRIDGE_BASE_URL=https://bridge.example.com
    HOOKBRIDGE_HOST=127.0.0.1
    HOOKBRIDGE_PORT=8000
    HOOKBRIDGE_POLL_INTERVAL=60
    HOOKBRIDGE_GITHUB_CLIENT_ID=...
    HOOKBRIDGE_GITHUB_CLIENT_SECRET=...
"""

from __future__ import annotations

import os
import re
from typing import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from hookbridge.errors import ConfigurationError

_CLIENT_ID_PATTERN = re.compile(r"^HOOKBRIDGE_(?P<adapter>[A-Z0-9_]+)_CLIENT_ID$")


class ClientCredentials(BaseModel):
    """OAuth client registered with one provider."""

    client_id: str
    client_secret: str = ""


class HostSettings(BaseModel):
    base_url: str = "http://localhost:8000"
    host: str = "127.0.0.1"
    port: int = 8000
    poll_interval: float = Field(default=60.0, gt=0)
    clients: dict[str, ClientCredentials] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, dotenv: bool = True
    ) -> HostSettings:
        """Build settings from the environment.

        Args:
            environ: Mapping to read instead of ``os.environ``
            dotenv: Load a ``.env`` file into ``os.environ`` first
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        clients: dict[str, ClientCredentials] = {}
        for key, value in environ.items():
            match = _CLIENT_ID_PATTERN.match(key)
            if not match:
                continue
            adapter = match.group("adapter")
            clients[adapter.lower().replace("_", "-")] = ClientCredentials(
                client_id=value,
                client_secret=environ.get(f"HOOKBRIDGE_{adapter}_CLIENT_SECRET", ""),
            )

        values: dict[str, object] = {"clients": clients}
        for field_name in ("base_url", "host", "port", "poll_interval"):
            env_key = f"HOOKBRIDGE_{field_name.upper()}"
            if env_key in environ:
                values[field_name] = environ[env_key]
        return cls.model_validate(values)

    def client(self, adapter_id: str) -> ClientCredentials:
        try:
            return self.clients[adapter_id]
        except KeyError:
            raise ConfigurationError(
                f"No client credentials configured for {adapter_id}"
            ) from None

    def oauth_redirect_uri(self, adapter_id: str) -> str:
        return f"{self.base_url}/oauth/{adapter_id}/callback"

    def callback_url(self, adapter_id: str, callback_id: str) -> str:
        return f"{self.base_url}/callbacks/{adapter_id}/{callback_id}"
