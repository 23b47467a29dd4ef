"""Publish-target derivation: scope, version and destination prefix.

Pure functions over already-loaded package metadata.  Semantic
versions are detected the way ``semver-regex`` does it: an optional
leading ``v``, a full ``MAJOR.MINOR.PATCH`` triple, then optional
pre-release and build metadata.  Anything else (``latest``,
``stable``, ``1.2``) is a plain tag.
"""

from __future__ import annotations

import re

from cdn_publish.exceptions import CdnPublishError, ErrorKind

_SEMVER_RE = re.compile(
    r"^v?"
    r"(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
    r"(?:-[\da-z-]+(?:\.[\da-z-]+)*)?"
    r"(?:\+[\da-z-]+(?:\.[\da-z-]+)*)?"
    r"$",
    re.IGNORECASE,
)

_NAME_SCOPE_RE = re.compile(r"^@(?P<scope>[^/]+)/(?P<package>.+)")


def is_semver(value: str) -> bool:
    """Return ``True`` when *value* is a semantic version."""
    return _SEMVER_RE.match(value.strip()) is not None


def resolve_scope(explicit: str | None, package_name: str | None) -> str:
    """Return the destination scope (without the leading ``./``).

    An explicit scope is cleaned of empty, ``.`` and ``..`` segments.
    Otherwise ``@scope/name`` in the package name yields ``scope/name``.

    Raises
    ------
    CdnPublishError
        ``NO_PACKAGE_JSON_NAME_SCOPE`` when neither source provides one.
    """
    if explicit is not None:
        return "/".join(
            segment
            for segment in explicit.split("/")
            if segment and segment not in (".", "..")
        )

    match = _NAME_SCOPE_RE.match(package_name or "")
    if match is None:
        raise CdnPublishError(
            ErrorKind.NO_PACKAGE_JSON_NAME_SCOPE,
            "No scope was matched in package.json `name` field or in --scope",
            hint="Name the package '@scope/name' or pass --scope.",
        )
    return f"{match.group('scope')}/{match.group('package')}"


def resolve_version(
    override: str | None,
    manifest_version: str | None,
) -> tuple[str | None, bool]:
    """Return ``(version, is_semver)``; an explicit *override* wins."""
    version = override if override is not None else manifest_version
    if not version:
        return None, False
    return version, is_semver(version)


def build_prefix(scope: str, version: str | None) -> str:
    """Return ``./{scope}`` or ``./{scope}/{version}``."""
    if version is None:
        return f"./{scope}"
    cleaned = "/".join(segment for segment in version.split("/") if segment)
    return f"./{scope}/{cleaned}"
