"""URL/scope builder for the edge storage API.

Maps an access key, a storage zone and relative ``./`` segments to
absolute resource URLs.  Everything here is pure: no I/O, no mutable
state.  Invalid server/zone composition fails at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

from cdn_publish.config import DEFAULT_STORAGE_URL
from cdn_publish.exceptions import CdnPublishError, ErrorKind


def ends_with_slash(value: str) -> str:
    """Return *value* with exactly one guaranteed trailing slash."""
    return value if value.endswith("/") else f"{value}/"


def _slash_wrap(value: str) -> str:
    """Force a leading and a trailing slash on a path segment."""
    wrapped = value if value.startswith("/") else f"/{value}"
    return ends_with_slash(wrapped)


@dataclass(frozen=True, slots=True)
class CdnContext:
    """Immutable addressing context for one command invocation."""

    access_key: str
    """Opaque credential sent as the ``AccessKey`` header."""

    base_url: str
    """Absolute, slash-terminated URL of the storage root."""

    server: str
    """Origin (``scheme://host[:port]``) of :attr:`base_url`."""

    storage_zone_name: str
    """Path component of :attr:`base_url` (``/zone/``)."""

    def build_url(self, scope: str, *segments: str) -> str:
        """Resolve *scope*, then each of *segments*, left to right.

        Every intermediate URL is slash-terminated before the next
        resolution so that ``./x`` appends instead of replacing the last
        path segment.

        >>> ctx = create_cdn_context("k", server="https://storage.example/", storage_zone_name="zone")
        >>> ctx.build_url("./a", "./b.txt")
        'https://storage.example/zone/a/b.txt'
        """
        url = urljoin(ends_with_slash(self.base_url), scope)
        for segment in segments:
            url = urljoin(ends_with_slash(url), segment)
        return url


def create_cdn_context(
    access_key: str,
    *,
    server: str | None = DEFAULT_STORAGE_URL,
    storage_zone_name: str | None = "",
) -> CdnContext:
    """Build a :class:`CdnContext` from CLI-supplied values.

    Raises
    ------
    CdnPublishError
        ``INVALID_URL`` when *server* and *storage_zone_name* do not
        compose into an absolute ``http(s)`` URL.
    """
    zone_path = _slash_wrap(storage_zone_name or "")
    candidate = urljoin(server or "", zone_path)

    try:
        parts = urlsplit(candidate)
        # Accessing .port validates the netloc.
        _ = parts.port
    except ValueError as exc:
        raise CdnPublishError(ErrorKind.INVALID_URL, "Invalid URL", cause=exc) from exc

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise CdnPublishError(
            ErrorKind.INVALID_URL,
            "Invalid URL",
            cause=candidate,
            hint="The base URL must be absolute, e.g. https://storage.bunnycdn.com",
        )

    return CdnContext(
        access_key=access_key,
        base_url=ends_with_slash(candidate),
        server=f"{parts.scheme}://{parts.netloc}",
        storage_zone_name=parts.path,
    )
