"""Infrastructure: package manifest (``package.json``) loading.

Only the fields publishing needs are kept: ``name``, ``version`` and
``files``.  All I/O and JSON errors are mapped to
:class:`~cdn_publish.exceptions.CdnPublishError`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cdn_publish.exceptions import CdnPublishError, ErrorKind


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """The publish-relevant subset of a package descriptor."""

    name: str | None
    version: str | None
    files: tuple[str, ...]
    """File matchers declared by the package."""

    working_dir: Path
    """Directory the matchers are resolved against."""

    path: Path | None = None
    """Where the manifest was read from; ``None`` for the empty default."""

    @classmethod
    def empty(cls, working_dir: Path) -> PackageManifest:
        return cls(name=None, version=None, files=(), working_dir=working_dir)


def load_package_manifest(
    path: Path,
    *,
    working_dir: Path,
    required: bool = True,
) -> PackageManifest:
    """Read the manifest at *path* (relative paths resolve from *working_dir*).

    When the file is missing and not *required*, an empty manifest rooted
    at *working_dir* is returned so explicit file arguments still work.

    Raises
    ------
    CdnPublishError
        ``READ_FILE`` when the file cannot be read, ``JSON_PARSE_STRING``
        when it is not a JSON object.
    """
    absolute = Path(os.path.normpath(os.path.join(working_dir, path)))

    if not required and not absolute.exists():
        return PackageManifest.empty(working_dir)

    try:
        text = absolute.read_text(encoding="utf-8")
    except OSError as exc:
        raise CdnPublishError(
            ErrorKind.READ_FILE,
            f"Cannot read {absolute}",
            cause=exc,
            hint="Point --project at an existing package.json.",
        ) from exc

    try:
        content: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CdnPublishError(
            ErrorKind.JSON_PARSE_STRING,
            f"Something went wrong while JSON-parsing {absolute}",
            cause=exc,
        ) from exc

    if not isinstance(content, dict):
        raise CdnPublishError(
            ErrorKind.JSON_PARSE_STRING,
            f"Expected a JSON object in {absolute}",
        )

    raw_files = content.get("files")
    files = (
        tuple(entry for entry in raw_files if isinstance(entry, str))
        if isinstance(raw_files, list)
        else ()
    )

    return PackageManifest(
        name=_optional_str(content.get("name")),
        version=_optional_str(content.get("version")),
        files=files,
        working_dir=absolute.parent,
        path=absolute,
    )


def manifest_matchers(manifest: PackageManifest) -> tuple[str, ...]:
    """Return the manifest's file matchers.

    Raises
    ------
    CdnPublishError
        ``NO_PACKAGE_JSON_FILES`` when the manifest lists none.
    """
    if not manifest.files:
        raise CdnPublishError(
            ErrorKind.NO_PACKAGE_JSON_FILES,
            f"There are no files/matchers listed in the package.json file {manifest.working_dir}",
            hint="Add a `files` array to package.json or pass files as arguments.",
        )
    return manifest.files


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None
