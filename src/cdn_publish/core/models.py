"""Domain models for cdn-publish.

Value objects are **frozen** dataclasses with no behaviour beyond data
access.  Remote payloads are parsed into them by the services; nothing
here performs I/O.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union


# ---------------------------------------------------------------------------
# Local file content
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ChecksummedContent:
    """File bytes paired with their SHA-256 digest."""

    buffer: bytes
    """Exact bytes read from disk."""

    checksum: str
    """Uppercase hex SHA-256 of :attr:`buffer`."""


FileContent = Union[bytes, ChecksummedContent]
"""What a loader yields: raw bytes, or bytes plus checksum."""

Loader = Callable[[], Awaitable[FileContent]]


@dataclass(frozen=True, slots=True)
class LoadingContext:
    """One local file scheduled for upload.

    The :attr:`loader` is only awaited when the file's upload actually
    runs, so files behind a failed batch are never read.
    """

    absolute_path: Path
    """Absolute local path, always inside the working directory."""

    pathname: str
    """Destination path relative to the upload scope (``./...``)."""

    loader: Loader
    """Zero-argument coroutine function producing the file content."""


# ---------------------------------------------------------------------------
# Remote metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FileMeta:
    """One entry of a remote directory listing."""

    object_name: str
    path: str
    is_directory: bool
    length: int
    checksum: str | None = None
    content_type: str = ""
    date_created: str = ""
    last_changed: str = ""
    guid: str = ""
    storage_zone_name: str = ""
    storage_zone_id: int = 0
    server_id: int = 0
    user_id: str = ""
    replicated_zones: str | None = None
    array_number: int = 0

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> FileMeta:
        """Build from the vendor's PascalCase JSON object."""
        return cls(
            object_name=str(raw.get("ObjectName") or ""),
            path=str(raw.get("Path") or ""),
            is_directory=bool(raw.get("IsDirectory", False)),
            length=_as_int(raw.get("Length")),
            checksum=raw.get("Checksum") if isinstance(raw.get("Checksum"), str) else None,
            content_type=str(raw.get("ContentType") or ""),
            date_created=str(raw.get("DateCreated") or ""),
            last_changed=str(raw.get("LastChanged") or ""),
            guid=str(raw.get("Guid") or ""),
            storage_zone_name=str(raw.get("StorageZoneName") or ""),
            storage_zone_id=_as_int(raw.get("StorageZoneId")),
            server_id=_as_int(raw.get("ServerId")),
            user_id=str(raw.get("UserId") or ""),
            replicated_zones=(
                raw.get("ReplicatedZones")
                if isinstance(raw.get("ReplicatedZones"), str)
                else None
            ),
            array_number=_as_int(raw.get("ArrayNumber")),
        )


@dataclass(frozen=True, slots=True)
class PullZoneMeta:
    """Identity of a vendor-side edge cache."""

    id: int
    name: str

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> PullZoneMeta:
        return cls(id=_as_int(raw.get("Id")), name=str(raw.get("Name") or ""))


@dataclass(frozen=True, slots=True)
class PurgeResult:
    """Outcome of purging one pull zone.

    ``status`` is the HTTP status returned by the API, or ``0`` when the
    request never produced a response.
    """

    id: int
    status: int

    @property
    def ok(self) -> bool:
        return self.status == 204


def _as_int(value: object) -> int:
    """Coerce *value* to ``int``, defaulting to ``0``."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0
