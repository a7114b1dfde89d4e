"""Reference HTTP host for registered adapters.

Exposes the OAuth redirect endpoints and the webhook receiver over
Starlette:

    GET  /oauth/{adapter_id}/form                     auth form descriptor
    GET  /oauth/{adapter_id}/authorize                redirect to provider
    GET  /oauth/{adapter_id}/callback                 provider redirect target
    POST /oauth/{adapter_id}/refresh                  refresh stored tokens
    POST /callbacks/{adapter_id}/{callback_id}        inbound push event
    POST /callbacks/{adapter_id}/{callback_id}/install
    POST /callbacks/{adapter_id}/{callback_id}/poll

Responses never contain tokens, client secrets or PKCE verifiers.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import secrets
import uuid
from typing import Any
from urllib.parse import parse_qsl

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from hookbridge.auth.models.errors import (
    AuthorizationCallbackError,
    AuthorizationError,
    OAuth2Error,
    StateValidationError,
)
from hookbridge.auth.models.flow import (
    AuthorizationRequest,
    CallbackInput,
    RefreshInput,
)
from hookbridge.auth.services.flow import parse_callback_url
from hookbridge.callbacks.models import CallbackEvent, InstallData
from hookbridge.errors import (
    AdapterNotFoundError,
    ConfigurationError,
    FormValidationError,
    HookBridgeError,
)
from hookbridge.host.poller import Poller
from hookbridge.host.registry import AdapterRegistry
from hookbridge.host.settings import HostSettings
from hookbridge.host.stores import (
    Credential,
    InMemoryAuthorizationStore,
    InMemoryCredentialStore,
    PendingAuthorization,
)

logger = logging.getLogger(__name__)


class HostApp:
    """Starlette application wiring HTTP requests to adapter hooks."""

    def __init__(
        self,
        registry: AdapterRegistry,
        settings: HostSettings,
        authorizations: InMemoryAuthorizationStore | None = None,
        credentials: InMemoryCredentialStore | None = None,
        poller: Poller | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings
        self.authorizations = (
            authorizations if authorizations is not None else InMemoryAuthorizationStore()
        )
        self.credentials = (
            credentials if credentials is not None else InMemoryCredentialStore()
        )
        self.poller = poller if poller is not None else Poller(registry)

        self._app = Starlette(
            routes=[
                Route("/oauth/{adapter_id}/form", self._handle_form, methods=["GET"]),
                Route(
                    "/oauth/{adapter_id}/authorize",
                    self._handle_authorize,
                    methods=["GET"],
                ),
                Route(
                    "/oauth/{adapter_id}/callback",
                    self._handle_oauth_callback,
                    methods=["GET"],
                ),
                Route(
                    "/oauth/{adapter_id}/refresh",
                    self._handle_refresh,
                    methods=["POST"],
                ),
                Route(
                    "/callbacks/{adapter_id}/{callback_id}",
                    self._handle_event,
                    methods=["POST"],
                ),
                Route(
                    "/callbacks/{adapter_id}/{callback_id}/install",
                    self._handle_install,
                    methods=["POST"],
                ),
                Route(
                    "/callbacks/{adapter_id}/{callback_id}/poll",
                    self._handle_poll,
                    methods=["POST"],
                ),
            ],
            exception_handlers={HookBridgeError: self._handle_error},
        )
        self._server: uvicorn.Server | None = None
        self._poll_task: asyncio.Task | None = None

    @property
    def app(self) -> Starlette:
        return self._app

    async def start(self) -> None:
        """Start the HTTP server and the background poller."""
        config = uvicorn.Config(
            app=self._app,
            host=self.settings.host,
            port=self.settings.port,
            log_level="info",
        )
        self._server = uvicorn.Server(config)

        asyncio.create_task(self._server.serve())
        self._poll_task = asyncio.create_task(
            self.poller.run_forever(self.settings.poll_interval)
        )
        logger.info(f"Host started on {self.settings.host}:{self.settings.port}")

    async def stop(self) -> None:
        """Stop the HTTP server and the background poller."""
        if self._poll_task:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        if self._server:
            self._server.should_exit = True
            await self._server.shutdown()

    # ----- oauth -----
    async def _handle_form(self, request: Request) -> Response:
        oauth = self.registry.oauth(request.path_params["adapter_id"])
        form = await oauth.auth_form()
        return JSONResponse(form.to_wire())

    async def _handle_authorize(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        oauth = self.registry.oauth(adapter_id)
        client = self.settings.client(adapter_id)

        fields = dict(request.query_params)
        state = secrets.token_urlsafe(32)
        redirect_uri = self.settings.oauth_redirect_uri(adapter_id)

        result = await oauth.authorization_url(
            AuthorizationRequest(
                client_id=client.client_id,
                client_secret=client.client_secret,
                state=state,
                redirect_uri=redirect_uri,
                fields=fields,
            )
        )
        await self.authorizations.put(
            PendingAuthorization(
                adapter_id=adapter_id,
                state=state,
                redirect_uri=redirect_uri,
                fields=fields,
                code_verifier=result.code_verifier,
            )
        )

        logger.info(f"Redirecting to {adapter_id} authorization")
        return RedirectResponse(result.authorization_url, status_code=307)

    async def _handle_oauth_callback(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        oauth = self.registry.oauth(adapter_id)
        client = self.settings.client(adapter_id)

        full_url = str(request.url)
        returned_state = parse_callback_url(full_url).state
        if returned_state is None:
            raise StateValidationError(
                "Authorization server callback missing required state parameter"
            )

        pending = await self.authorizations.pop(returned_state)
        if pending is None or pending.adapter_id != adapter_id:
            raise StateValidationError("Unknown or expired authorization state")

        token_set = await oauth.callback(
            CallbackInput(
                client_id=client.client_id,
                client_secret=client.client_secret,
                redirect_uri=pending.redirect_uri,
                full_url=full_url,
                state=pending.state,
                code_verifier=pending.code_verifier,
                fields=pending.fields,
            )
        )
        await self.credentials.save(
            adapter_id, Credential(token_set=token_set, fields=pending.fields)
        )

        logger.info(f"Stored credentials for {adapter_id}")
        return JSONResponse(
            {
                "adapter": adapter_id,
                "token_type": token_set.token_type,
                "scope": token_set.scope,
                "expires_in": token_set.expires_in,
                "refreshable": token_set.refresh_token is not None,
            }
        )

    async def _handle_refresh(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        oauth = self.registry.oauth(adapter_id)
        client = self.settings.client(adapter_id)

        credential = await self.credentials.get(adapter_id)
        if credential is None or credential.token_set.refresh_token is None:
            raise ConfigurationError(f"No refreshable credentials for {adapter_id}")

        token_set = await oauth.refresh(
            RefreshInput(
                refresh_token=credential.token_set.refresh_token,
                client_id=client.client_id,
                client_secret=client.client_secret,
                redirect_uri=self.settings.oauth_redirect_uri(adapter_id),
                fields=credential.fields,
            )
        )
        await self.credentials.save(
            adapter_id, Credential(token_set=token_set, fields=credential.fields)
        )

        return JSONResponse(
            {"adapter": adapter_id, "expires_in": token_set.expires_in}
        )

    # ----- callbacks -----
    async def _handle_event(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        callback_id = request.path_params["callback_id"]
        bridge = self.registry.callbacks(adapter_id)

        try:
            payload = await self._read_payload(request)
        except ValueError:
            return Response("Invalid JSON", status_code=400)

        event = CallbackEvent(
            callback_id=callback_id,
            event_id=request.headers.get("x-event-id") or str(uuid.uuid4()),
            payload=payload,
        )
        result = await bridge.handle(event)

        if result is None:
            return Response(status_code=204)
        return JSONResponse(result.to_wire())

    async def _handle_install(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        callback_id = request.path_params["callback_id"]
        bridge = self.registry.callbacks(adapter_id)

        result = await bridge.install(
            InstallData(
                callback_url=self.settings.callback_url(adapter_id, callback_id),
                callback_id=callback_id,
            )
        )
        if bridge.supports_poll:
            self.poller.subscribe(adapter_id, callback_id)

        return JSONResponse({"installed": True, "result": _jsonable(result)})

    async def _handle_poll(self, request: Request) -> Response:
        adapter_id = request.path_params["adapter_id"]
        callback_id = request.path_params["callback_id"]

        items = await self.poller.poll(adapter_id, callback_id)
        return JSONResponse({"items": items})

    async def _read_payload(self, request: Request) -> Any:
        body = await request.body()
        content_type = request.headers.get("content-type", "")
        if "application/x-www-form-urlencoded" in content_type:
            return dict(parse_qsl(body.decode()))
        if not body:
            return None
        return json.loads(body)

    async def _handle_error(self, request: Request, exc: Exception) -> Response:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")

        content: dict[str, Any] = {"error": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, FormValidationError):
            content["fields"] = exc.errors
        return JSONResponse(content, status_code=status_code)


def create_app(registry: AdapterRegistry, settings: HostSettings) -> Starlette:
    return HostApp(registry, settings).app


def _status_for(exc: Exception) -> int:
    if isinstance(exc, AdapterNotFoundError):
        return 404
    if isinstance(
        exc, (ConfigurationError, AuthorizationCallbackError, AuthorizationError)
    ):
        return 400
    if isinstance(exc, OAuth2Error):
        return 502
    return 500


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value
