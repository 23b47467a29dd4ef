"""Infrastructure layer: external system integration.

This layer wraps all interaction with httpx and the local filesystem.
Every raw third-party exception must be caught here and re-raised as a
:class:`~cdn_publish.exceptions.CdnPublishError`.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from cdn_publish.infra.file_resolver import build_loading_contexts, resolve_files, sha256_hex
from cdn_publish.infra.http_client import HttpClient, HttpClientConfig, HttpResponse, RetryPolicy
from cdn_publish.infra.package_manifest import (
    PackageManifest,
    load_package_manifest,
    manifest_matchers,
)

__all__: list[str] = [
    "HttpClient",
    "HttpClientConfig",
    "HttpResponse",
    "PackageManifest",
    "RetryPolicy",
    "build_loading_contexts",
    "load_package_manifest",
    "manifest_matchers",
    "resolve_files",
    "sha256_hex",
]
