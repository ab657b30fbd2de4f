# ABOUTME: Platform API client wrapper with status mapping and error handling
# ABOUTME: Owns the httpx.AsyncClient lifecycle and exposes per-resource facades

"""
Platform API client.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

``PlatformClient`` is the one object that talks HTTP. It handles:

1. LIFECYCLE: creating and closing the httpx connection pool
2. AUTHENTICATION: via ``AuthLoggingTransport`` (bearer token + tracing)
3. STATUS MAPPING: every call states the status it expects; anything else
   becomes a ``RemoteError`` carrying the status code and Platform message
4. ERROR WRAPPING: network failures become ``TransportError`` with a
   "failed to <action>: " prefix

Resource facades hang off the client as attributes:

    async with PlatformClient(config) as client:
        apps = await client.applications.list()
        await client.deployments.trigger(app_uuid)

=============================================================================
PLATFORM REST API OVERVIEW
=============================================================================

All endpoints live under the configured base URL (``.../api/v1``):

    GET  /applications                 - list applications
    GET  /applications/{uuid}/start    - start (deploy) an application
    GET  /deploy?uuid=a,b&force=true   - trigger deployments
    PATCH /applications/{uuid}/envs/bulk - upsert environment variables

Success codes differ per endpoint (200 for reads and actions, 201 for most
creates and env updates), which is why ``request()`` takes ``expected``.
Errors usually carry ``{"message": "..."}``.

=============================================================================
WHY NO RETRY DECORATOR HERE?
=============================================================================

Retries wrap whole logical operations (see ``coolifyme.utils.retry``), so a
call that builds a request body can rebuild it on each attempt. This layer
fails on the first error.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from coolifyme.errors import EmptyResponseError, RemoteError, TransportError
from coolifyme.resources.applications import ApplicationsClient
from coolifyme.resources.catalog import ResourcesClient
from coolifyme.resources.databases import DatabasesClient
from coolifyme.resources.deployments import DeploymentsClient
from coolifyme.resources.private_keys import PrivateKeysClient
from coolifyme.resources.projects import ProjectsClient
from coolifyme.resources.servers import ServersClient
from coolifyme.resources.services import ServicesClient
from coolifyme.resources.system import SystemClient
from coolifyme.resources.teams import TeamsClient
from coolifyme.utils.transport import AuthLoggingTransport

if TYPE_CHECKING:
    from coolifyme.config import EffectiveConfig

logger = structlog.get_logger(__name__)

# Error bodies are truncated to this many characters in messages and logs
MAX_ERROR_DETAIL = 200


# =============================================================================
# PLATFORM CLIENT
# =============================================================================


class PlatformClient:
    """
    Async Platform API client.

    LIFECYCLE:
    ----------
    1. Create client: client = PlatformClient(config)   (fails without token)
    2. Enter context: async with client: ...
    3. Use facades:   await client.servers.list()
    4. Exit context:  HTTP connections closed

    Args:
        config: Effective configuration; must carry a token.
        timeout: HTTP timeout in seconds for each request.
        transport: Base transport to wrap; real network when omitted.
                   Tests pass ``httpx.MockTransport`` here.

    Raises:
        ConfigurationError: If the config has no API token.
    """

    def __init__(
        self,
        config: EffectiveConfig,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = config.require_token()
        self._config = config
        self._timeout = timeout
        self._base_transport = transport
        self._client: httpx.AsyncClient | None = None

        self.applications = ApplicationsClient(self)
        self.services = ServicesClient(self)
        self.databases = DatabasesClient(self)
        self.servers = ServersClient(self)
        self.projects = ProjectsClient(self)
        self.private_keys = PrivateKeysClient(self)
        self.teams = TeamsClient(self)
        self.system = SystemClient(self)
        self.resources = ResourcesClient(self)
        self.deployments = DeploymentsClient(self)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def __aenter__(self) -> PlatformClient:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            transport=AuthLoggingTransport(self._token, self._base_transport),
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        expected: int = 200,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        raw: bool = False,
    ) -> Any:
        """
        Make one HTTP request to the Platform.

        Args:
            method: HTTP method.
            path: Path relative to the base URL (e.g. "/applications").
            action: Short description used in error messages ("list servers").
            expected: The single status code that counts as success.
            params: Query parameters.
            json_data: JSON request body.
            raw: Return the response text instead of parsed JSON.

        Returns:
            Parsed JSON (None for an empty body), or text when ``raw``.

        Raises:
            RemoteError: Status differs from ``expected``.
            TransportError: The request produced no response.
            EmptyResponseError: Success status but the body is not valid JSON.
            RuntimeError: Client used outside ``async with``.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(method=method, path=path)
        try:
            response = await self._client.request(method, path, params=params, json=json_data)
        except httpx.TimeoutException as e:
            raise TransportError(f"failed to {action}: request timed out") from e
        except httpx.HTTPError as e:
            raise TransportError(f"failed to {action}: {e}") from e

        if response.status_code != expected:
            error = self._remote_error(response)
            log.warning("Platform API error", status=response.status_code, error=error.message)
            raise error

        if raw:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EmptyResponseError(f"failed to {action}: response is not valid JSON") from e

    @staticmethod
    def _remote_error(response: httpx.Response) -> RemoteError:
        """
        Build a RemoteError from a non-success response.

        The Platform's error format is ``{"message": ..., "errors"|"error": ...}``;
        anything else falls back to the reason phrase plus the raw body.
        """
        body = response.text
        message = response.reason_phrase or f"HTTP {response.status_code}"
        details: str | None = None
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            message = str(payload.get("message") or message)
            extra = payload.get("errors") or payload.get("error")
            if extra:
                details = str(extra)[:MAX_ERROR_DETAIL]
        elif body:
            details = body[:MAX_ERROR_DETAIL]

        return RemoteError(code=response.status_code, message=message, details=details)
