"""Infrastructure: local file resolution and lazy loaders.

Turns CLI/manifest matchers into :class:`~cdn_publish.core.models.LoadingContext`
instances.

Rules
-----
* Every resolved path must stay inside the working directory; a
  matcher escaping it (``../``) fails the whole resolution.
* Directories are enumerated recursively, anything else is a glob.
* Files are only read when their loader is awaited.
"""

from __future__ import annotations

import asyncio
import glob
import hashlib
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from cdn_publish.core.models import ChecksummedContent, FileContent, LoadingContext, Loader
from cdn_publish.exceptions import CdnPublishError, ErrorKind


# ---------------------------------------------------------------------------
# Containment
# ---------------------------------------------------------------------------

def _absolute(working_dir: Path, relative: str) -> Path:
    """Join and normalise without touching the filesystem."""
    return Path(os.path.normpath(os.path.join(working_dir, relative)))


def is_within(working_dir: Path, candidate: Path) -> bool:
    """Return ``True`` when *candidate* is *working_dir* or below it."""
    try:
        return os.path.commonpath([working_dir, candidate]) == str(working_dir)
    except ValueError:
        # Different drives on Windows.
        return False


def _ensure_within(working_dir: Path, candidate: Path) -> Path:
    if not is_within(working_dir, candidate):
        raise CdnPublishError(
            ErrorKind.OUT_OF_SCOPE_FILE,
            f"file: {candidate} is not contained in the current working dir {working_dir}",
        )
    return candidate


# ---------------------------------------------------------------------------
# Matcher expansion
# ---------------------------------------------------------------------------

def _walk_directory(directory: Path) -> list[Path]:
    return sorted(path for path in directory.rglob("*") if path.is_file())


def _expand_glob(working_dir: Path, matcher: str) -> list[Path]:
    matches = glob.glob(matcher, root_dir=working_dir, recursive=True)
    files: list[Path] = []
    for match in sorted(matches):
        absolute = _ensure_within(working_dir, _absolute(working_dir, match))
        if absolute.is_file():
            files.append(absolute)
    return files


def resolve_files(working_dir: Path, matchers: Iterable[str]) -> list[Path]:
    """Expand *matchers* into absolute file paths under *working_dir*.

    The result keeps first-seen order and contains each file once, so
    overlapping matchers are harmless.

    Raises
    ------
    CdnPublishError
        ``OUT_OF_SCOPE_FILE`` when any matcher or match escapes
        *working_dir*.
    """
    root = Path(os.path.normpath(os.path.abspath(working_dir)))
    found: dict[Path, None] = {}

    for matcher in matchers:
        target = _ensure_within(root, _absolute(root, matcher))
        if target.is_dir() and not target.is_symlink():
            expanded = _walk_directory(target)
        else:
            expanded = _expand_glob(root, matcher)
        for path in expanded:
            found.setdefault(_ensure_within(root, path), None)

    return list(found)


# ---------------------------------------------------------------------------
# Loading contexts
# ---------------------------------------------------------------------------

def sha256_hex(buffer: bytes) -> str:
    """Uppercase hex SHA-256 digest, as the storage API expects it."""
    return hashlib.sha256(buffer).hexdigest().upper()


def make_loader(path: Path, *, checksum: bool = False) -> Loader:
    """Return a coroutine function reading *path* off the event loop."""

    async def load() -> FileContent:
        try:
            buffer = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise CdnPublishError(
                ErrorKind.READ_FILE,
                f"Cannot read {path}",
                cause=exc,
            ) from exc
        if checksum:
            return ChecksummedContent(buffer=buffer, checksum=sha256_hex(buffer))
        return buffer

    return load


def relative_pathname(working_dir: Path, path: Path) -> str:
    """Destination pathname of *path*: ``./`` plus its POSIX relative path."""
    return "./" + path.relative_to(working_dir).as_posix()


def build_loading_contexts(
    working_dir: Path,
    files: Sequence[Path],
    *,
    checksum: bool = False,
) -> list[LoadingContext]:
    """Pair every file with its destination pathname and lazy loader.

    Raises
    ------
    CdnPublishError
        ``NOTHING_TO_DO`` when *files* is empty.
    """
    if not files:
        raise CdnPublishError(
            ErrorKind.NOTHING_TO_DO,
            "No file selected to PUT",
            hint="Check that your file matchers point at existing files.",
        )

    root = Path(os.path.normpath(os.path.abspath(working_dir)))
    return [
        LoadingContext(
            absolute_path=path,
            pathname=relative_pathname(root, path),
            loader=make_loader(path, checksum=checksum),
        )
        for path in files
    ]
