"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure and CLI adapters must
satisfy.  Core code depends ONLY on these protocols, never on concrete
implementations, so services can be exercised with in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class Logger(Protocol):
    """Logging capability injected into every service.

    Replaces a process-wide logger singleton: each component receives
    the sink it writes to, which keeps tests isolated from each other.
    """

    def debug(self, message: str) -> None: ...  # pragma: no cover

    def info(self, message: str) -> None: ...  # pragma: no cover

    def warning(self, message: str) -> None: ...  # pragma: no cover

    def error(self, message: str) -> None: ...  # pragma: no cover

    def table(self, rows: Sequence[Mapping[str, object]]) -> None:
        """Render *rows* as a table; keys of the first row are columns."""
        ...  # pragma: no cover


class Response(Protocol):
    """Decoded HTTP response returned by a :class:`Transport`."""

    @property
    def status_code(self) -> int: ...  # pragma: no cover

    @property
    def data(self) -> Any: ...  # pragma: no cover

    @property
    def content(self) -> bytes: ...  # pragma: no cover


class Transport(Protocol):
    """Contract for the HTTP backend.

    Implementations resolve *url* against their base URL, merge default
    headers under *headers*, and map every failure to
    :class:`~cdn_publish.exceptions.CdnPublishError`:

    * ``RESPONSE_NOT_OK``: non-2xx response (the response is the
      ``cause``) or connection failures once retries are exhausted.
    * ``BODY_NOT_OK``: undecodable response or unsupported request body.
    """

    async def get(
        self, url: str, *, headers: Mapping[str, str] | None = None,
    ) -> Response: ...  # pragma: no cover

    async def delete(
        self, url: str, *, headers: Mapping[str, str] | None = None,
    ) -> Response: ...  # pragma: no cover

    async def put(
        self,
        url: str,
        data: bytes | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Response: ...  # pragma: no cover

    async def post(
        self,
        url: str,
        data: bytes | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Response: ...  # pragma: no cover
