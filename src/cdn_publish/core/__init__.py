"""Core / service layer: addressing, upload pipeline and pull zones.

Rules
-----
* No ``print()`` calls.
* No direct filesystem or network I/O: HTTP goes through an injected
  ``Transport``, file bytes through the loaders of ``LoadingContext``.
* No imports from ``cli`` or ``infra``.
"""

from cdn_publish.core.bounded_queue import SettledTask, run_bounded
from cdn_publish.core.cdn import CdnContext, create_cdn_context, ends_with_slash
from cdn_publish.core.models import (
    ChecksummedContent,
    FileContent,
    FileMeta,
    LoadingContext,
    PullZoneMeta,
    PurgeResult,
)
from cdn_publish.core.protocols import Logger, Transport
from cdn_publish.core.pullzone_service import PullZoneService
from cdn_publish.core.storage_service import EdgeStorageService

__all__: list[str] = [
    "CdnContext",
    "ChecksummedContent",
    "EdgeStorageService",
    "FileContent",
    "FileMeta",
    "LoadingContext",
    "Logger",
    "PullZoneMeta",
    "PullZoneService",
    "PurgeResult",
    "SettledTask",
    "Transport",
    "create_cdn_context",
    "ends_with_slash",
    "run_bounded",
]
