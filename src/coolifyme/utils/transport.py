# ABOUTME: httpx transport that injects bearer credentials and traces requests
# ABOUTME: Logs request/response pairs with the Authorization header redacted

"""
Authenticating, tracing HTTP transport.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

``AuthLoggingTransport`` wraps another ``httpx.AsyncBaseTransport`` (the real
network transport in production, ``httpx.MockTransport`` in tests). For every
outgoing request it:

1. Sets Authorization / Accept / Content-Type unless already present
2. Logs a ``request`` event (method, URL, redacted headers) and, when the
   body is already in memory, a ``request-body`` event
3. Calls the wrapped transport and measures elapsed time
4. Logs ``request-failed`` and re-raises on transport errors
5. Logs a ``response`` event and, for small bodies, a ``response-body`` event

Logged bodies go through ``redact_body`` first, so values of variables named
like a secret (DB_PASSWORD, GITHUB_TOKEN) never reach the log.

=============================================================================
WHY NO RETRIES HERE?
=============================================================================

A request body stream can only be read once. Retrying inside the transport
would replay a consumed stream, so retries live one level up in
``coolifyme.utils.retry`` and wrap whole logical operations that rebuild
their request from scratch.

=============================================================================
PRESERVING THE RESPONSE STREAM
=============================================================================

Reading a response body for logging consumes its stream. Small bodies are
read raw (still compressed, if the server compressed them) and a new
Response is built around a ``ByteStream`` of those same bytes, so the caller
decodes exactly what it would have without the logging step.
"""

from __future__ import annotations

import time

import httpx
import structlog

from coolifyme.utils.redact import redact_body, redact_headers

logger = structlog.get_logger(__name__)

# Bodies at or above this many bytes are not buffered for logging
MAX_LOGGED_BODY = 10_000


class AuthLoggingTransport(httpx.AsyncBaseTransport):
    """
    Transport adding bearer auth and debug-level request tracing.

    Args:
        token: Bearer token. Never logged.
        transport: The transport to delegate to; a fresh
                   ``httpx.AsyncHTTPTransport`` when omitted.
    """

    def __init__(
        self,
        token: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self._apply_headers(request)

        log = logger.bind(method=request.method, url=str(request.url))
        log.debug("request", headers=redact_headers(request.headers))

        body = self._request_body(request)
        if body:
            log.debug("request-body", body=redact_body(body))

        start = time.perf_counter()
        try:
            response = await self._transport.handle_async_request(request)
        except httpx.HTTPError as e:
            log.debug(
                "request-failed",
                error=str(e) or type(e).__name__,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 1),
            )
            raise

        elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
        log.debug(
            "response",
            status=response.status_code,
            headers=redact_headers(response.headers),
            elapsed_ms=elapsed_ms,
        )

        if self._should_buffer(response):
            response = await self._buffer_response(request, response)
            log.debug(
                "response-body",
                status=response.status_code,
                body=redact_body(_decode(response.content)),
            )

        return response

    async def aclose(self) -> None:
        await self._transport.aclose()

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def _apply_headers(self, request: httpx.Request) -> None:
        defaults = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        for name, value in defaults.items():
            if name not in request.headers:
                request.headers[name] = value

    @staticmethod
    def _request_body(request: httpx.Request) -> str | None:
        """Body text if the request is fully buffered and small, else None."""
        try:
            content = request.content
        except httpx.RequestNotRead:
            # Streaming body; reading it here would consume it
            return None
        if not content or len(content) >= MAX_LOGGED_BODY:
            return None
        return _decode(content)

    @staticmethod
    def _should_buffer(response: httpx.Response) -> bool:
        length = response.headers.get("content-length")
        if length is None:
            return True
        try:
            return int(length) < MAX_LOGGED_BODY
        except ValueError:
            return False

    @staticmethod
    async def _buffer_response(
        request: httpx.Request,
        response: httpx.Response,
    ) -> httpx.Response:
        if response.is_stream_consumed:
            # Responses built in memory are already read
            return response
        chunks: list[bytes] = []
        try:
            async for chunk in response.aiter_raw():
                chunks.append(chunk)
        finally:
            await response.aclose()
        buffered = httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=httpx.ByteStream(b"".join(chunks)),
            request=request,
            extensions=response.extensions,
        )
        await buffered.aread()
        return buffered


def _decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")
