"""httpx-backed implementation of :class:`~cdn_publish.core.protocols.Transport`.

This module is the **only** place in the codebase that talks to
``httpx``.  Every httpx exception is caught here and re-raised as a
:class:`~cdn_publish.exceptions.CdnPublishError`; nothing raw escapes
the infrastructure boundary.

Behaviour
---------
* URLs are resolved against the configured base URL.
* Default headers are merged under per-call headers.
* Request bodies must be ``bytes`` (or ``None``).
* Non-2xx responses fail with ``RESPONSE_NOT_OK`` and are never retried.
* Connection-level failures are retried a fixed number of times with a
  fixed delay, then fail with ``RESPONSE_NOT_OK``.
* Successful bodies are decoded as JSON for ``application/json`` and
  as text otherwise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import httpx

from cdn_publish.core.protocols import Logger
from cdn_publish.exceptions import CdnPublishError, ErrorKind


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Fixed-count, fixed-delay retry of connection failures."""

    retries: int = 3
    """Extra attempts after the first one."""

    delay_seconds: float = 1.0
    """Pause between two attempts."""


@dataclass(frozen=True, slots=True)
class HttpClientConfig:
    """Immutable configuration shared by every request of a client."""

    base_url: str
    """Absolute URL relative request URLs are resolved against."""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Default headers, overridden per call."""

    retry: RetryPolicy = field(default_factory=RetryPolicy)

    timeout_seconds: float = 60.0


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class HttpResponse:
    """A successful, decoded response."""

    status_code: int
    headers: httpx.Headers
    data: Any
    """Parsed JSON or text, depending on the content type."""

    content: bytes
    """Undecoded body."""

    raw: httpx.Response


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class HttpClient:
    """Thin async wrapper over one :class:`httpx.AsyncClient`.

    Usage::

        config = HttpClientConfig(base_url=cdn.base_url, headers={"AccessKey": key})
        async with HttpClient(config, logger) as client:
            response = await client.get("./folder/")

    *transport* lets tests plug an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: HttpClientConfig,
        logger: Logger,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config: HttpClientConfig = config
        self._logger: Logger = logger
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    @property
    def config(self) -> HttpClientConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(
        self, url: str, *, headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return await self.request("GET", url, headers=headers)

    async def delete(
        self, url: str, *, headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return await self.request("DELETE", url, headers=headers)

    async def put(
        self,
        url: str,
        data: bytes | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return await self.request("PUT", url, data=data, headers=headers)

    async def post(
        self,
        url: str,
        data: bytes | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return await self.request("POST", url, data=data, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: object = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """Send one request and return its decoded response.

        Raises
        ------
        CdnPublishError
            ``BODY_NOT_OK`` for an unsupported *data* type or an
            undecodable body; ``RESPONSE_NOT_OK`` for non-2xx responses
            and exhausted connection retries.
        """
        body = self._serialize(data)
        merged = {**self._config.headers, **(headers or {})}
        target = urljoin(self._config.base_url, url)

        response = await self._send(method, target, body, merged)
        if not response.is_success:
            raise CdnPublishError(
                ErrorKind.RESPONSE_NOT_OK,
                "response not ok",
                cause=response,
            )

        return HttpResponse(
            status_code=response.status_code,
            headers=response.headers,
            data=self._decode(response),
            content=response.content,
            raw=response,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
    ) -> httpx.Response:
        """Issue the request, retrying connection-level failures only."""
        policy = self._config.retry
        attempts = policy.retries + 1
        last_error: httpx.TransportError | None = None

        for attempt in range(1, attempts + 1):
            try:
                self._logger.debug(f"{method} {url} (attempt {attempt}/{attempts})")
                return await self._client.request(method, url, content=body, headers=headers)
            except httpx.TransportError as exc:
                last_error = exc
                self._logger.debug(f"{method} {url} failed: {exc!r}")
                if attempt < attempts:
                    await asyncio.sleep(policy.delay_seconds)
            except httpx.DecodingError as exc:
                raise CdnPublishError(
                    ErrorKind.BODY_NOT_OK,
                    "response body not ok",
                    cause=exc,
                ) from exc
            except httpx.HTTPError as exc:
                raise CdnPublishError(
                    ErrorKind.RESPONSE_NOT_OK,
                    "response not ok",
                    cause=exc,
                ) from exc

        raise CdnPublishError(
            ErrorKind.RESPONSE_NOT_OK,
            "response not ok",
            cause=last_error,
            hint="Check your network connection and the --base-url option.",
        ) from last_error

    @staticmethod
    def _serialize(data: object) -> bytes | None:
        if data is None:
            return None
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        raise CdnPublishError(
            ErrorKind.BODY_NOT_OK,
            "cannot parse this type of body",
            cause=type(data).__name__,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";")[0].strip().lower()
        if media_type != "application/json":
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise CdnPublishError(
                ErrorKind.BODY_NOT_OK,
                "response body not ok",
                cause=exc,
            ) from exc
