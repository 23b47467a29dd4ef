"""Command handlers.

Each handler receives the parsed :class:`argparse.Namespace` (with
credentials already resolved against :class:`~cdn_publish.config.CdnSettings`)
and a :class:`CommandContext`, wires infra adapters into core services,
and reports through the injected logger.  Handlers raise
:class:`~cdn_publish.exceptions.CdnPublishError`; rendering it is the
job of :func:`cdn_publish.cli.app.cli`.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import json
import posixpath
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from pathlib import Path

import httpx

from cdn_publish.cli.paths import normalize_dir, normalize_file, split_dir_file
from cdn_publish.cli.progress import RichUploadProgress
from cdn_publish.config import CdnSettings
from cdn_publish.core.bounded_queue import run_bounded
from cdn_publish.core.cdn import CdnContext, create_cdn_context, ends_with_slash
from cdn_publish.core.protocols import Logger
from cdn_publish.core.pullzone_service import PullZoneService
from cdn_publish.core.storage_service import EdgeStorageService, ProgressCallback
from cdn_publish.core.versioning import build_prefix, resolve_scope, resolve_version
from cdn_publish.exceptions import CdnPublishError, ErrorKind
from cdn_publish.infra.file_resolver import build_loading_contexts, resolve_files
from cdn_publish.infra.http_client import HttpClient, HttpClientConfig, RetryPolicy
from cdn_publish.infra.package_manifest import load_package_manifest, manifest_matchers

DEFAULT_PROJECT = "package.json"


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Everything a handler needs besides its arguments."""

    settings: CdnSettings
    logger: Logger
    working_dir: Path
    transport: httpx.AsyncBaseTransport | None = None
    """Overrides the network transport (tests plug a mock here)."""

    show_progress: bool = True


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def _http_client(cdn: CdnContext, ctx: CommandContext) -> HttpClient:
    settings = ctx.settings
    config = HttpClientConfig(
        base_url=cdn.base_url,
        headers={"AccessKey": cdn.access_key},
        retry=RetryPolicy(
            retries=settings.retries,
            delay_seconds=settings.retry_delay_seconds,
        ),
        timeout_seconds=settings.http_timeout_seconds,
    )
    return HttpClient(config, ctx.logger, transport=ctx.transport)


def _storage_context(args: argparse.Namespace) -> CdnContext:
    return create_cdn_context(
        args.storage_access_key,
        server=args.base_url,
        storage_zone_name=args.storage_zone_name,
    )


@asynccontextmanager
async def _open_storage(
    args: argparse.Namespace,
    ctx: CommandContext,
) -> AsyncIterator[EdgeStorageService]:
    cdn = _storage_context(args)
    async with _http_client(cdn, ctx) as http:
        yield EdgeStorageService(
            cdn,
            http,
            ctx.logger,
            progress_interval=ctx.settings.progress_interval_seconds,
        )


@asynccontextmanager
async def _open_pullzones(
    args: argparse.Namespace,
    ctx: CommandContext,
) -> AsyncIterator[PullZoneService]:
    cdn = create_cdn_context(args.access_key, server=args.base_url, storage_zone_name="")
    async with _http_client(cdn, ctx) as http:
        yield PullZoneService(http, ctx.logger)


@contextmanager
def _upload_progress(ctx: CommandContext) -> Iterator[ProgressCallback | None]:
    if not ctx.show_progress:
        yield None
        return
    with RichUploadProgress("Uploading") as progress:
        yield progress


# ---------------------------------------------------------------------------
# Upload commands
# ---------------------------------------------------------------------------

async def run_publish(args: argparse.Namespace, ctx: CommandContext) -> None:
    """Publish a package under ``./<scope>[/<version>]``."""
    project = Path(args.project or DEFAULT_PROJECT)
    manifest = load_package_manifest(
        project,
        working_dir=ctx.working_dir,
        required=args.project is not None,
    )

    matchers = tuple(args.files) if args.files else manifest_matchers(manifest)
    files = resolve_files(manifest.working_dir, matchers)
    contexts = build_loading_contexts(manifest.working_dir, files, checksum=args.checksum)

    scope = resolve_scope(args.scope, manifest.name)
    override = args.override_version if isinstance(args.override_version, str) else None
    version, is_semver = resolve_version(override, manifest.version)
    prefix = build_prefix(scope, version)

    async with _open_storage(args, ctx) as storage:
        if args.override_version is not None:
            ctx.logger.debug(f"Clearing {prefix} before publishing")
            await storage.delete(prefix, avoid_throwing=True)

        with _upload_progress(ctx) as progress:
            await storage.put(
                prefix, contexts, is_semver, args.batch_size, progress_callback=progress,
            )

        ctx.logger.info(f"Package: {manifest.name or scope}:{version or ''}")
        ctx.logger.info(f"Storage: {storage.cdn.base_url}")
        ctx.logger.info(f"Path: {prefix}")


async def run_upload(args: argparse.Namespace, ctx: CommandContext) -> None:
    """Upload files under an arbitrary destination, never semver-guarded."""
    if not args.files:
        raise CdnPublishError(
            ErrorKind.NO_FILES,
            "No file was selected for upload",
            hint="Pass at least one file, directory or glob.",
        )

    destination = normalize_dir(args.dest)
    files = resolve_files(ctx.working_dir, args.files)
    contexts = build_loading_contexts(ctx.working_dir, files, checksum=args.checksum)

    async with _open_storage(args, ctx) as storage:
        with _upload_progress(ctx) as progress:
            await storage.put(
                destination, contexts, False, args.batch_size, progress_callback=progress,
            )

        ctx.logger.info(f"Storage: {storage.cdn.base_url}")
        ctx.logger.info(f"Path: {destination}")


# ---------------------------------------------------------------------------
# Read / delete commands
# ---------------------------------------------------------------------------

async def run_list(args: argparse.Namespace, ctx: CommandContext) -> None:
    async with _open_storage(args, ctx) as storage:
        entries = await storage.list(normalize_dir(args.dir))

    ctx.logger.table([
        {"dir": entry.path, "file": entry.object_name, "type": "d" if entry.is_directory else "f"}
        for entry in entries
    ])


async def run_get(args: argparse.Namespace, ctx: CommandContext) -> None:
    async with _open_storage(args, ctx) as storage:
        content = await storage.get(normalize_file(args.file))
    if isinstance(content, str):
        ctx.logger.info(content)
    else:
        ctx.logger.info(json.dumps(content, indent=2, default=str))


async def run_delete(args: argparse.Namespace, ctx: CommandContext) -> None:
    directory, filename = split_dir_file(args.dir)

    async with _open_storage(args, ctx) as storage:
        await storage.delete(directory, filename or "./", args.avoid_throwing)
        target = posixpath.normpath(posixpath.join(directory, filename or "./*"))
        ctx.logger.info(f"Deleted: ./{target}")
        ctx.logger.info(f"Storage: {storage.cdn.base_url}")


async def run_download(args: argparse.Namespace, ctx: CommandContext) -> None:
    """Download a remote file, or every file of a remote directory.

    *path* is listed as a directory first; an empty listing means it
    names a single file.
    """
    output = Path(args.output)
    if not output.is_absolute():
        output = ctx.working_dir / output
    if output.exists() and not output.is_dir():
        raise CdnPublishError(
            ErrorKind.WRITE_FILE,
            f"selected output '{output}' is a file",
            hint="Pass a directory to -o/--output.",
        )

    remote = normalize_file(args.path)
    directory = ends_with_slash(remote)

    async with _open_storage(args, ctx) as storage:
        entries = await storage.list(directory)
        if entries:
            targets = [
                (f"{directory}{entry.object_name}", output / entry.object_name)
                for entry in entries
                if not entry.is_directory
            ]
        else:
            name = posixpath.basename(remote)
            if name in ("", ".", ".."):
                raise CdnPublishError(
                    ErrorKind.UNABLE_TO_GET_FILE,
                    f"remote resource is a file but input path '{args.path}' does not represent a file",
                )
            targets = [(remote, output / name)]

        await asyncio.to_thread(_make_dirs, output)

        async def fetch(scope: str, destination: Path) -> None:
            content = await storage.download(scope)
            await asyncio.to_thread(_write_file, destination, content)
            ctx.logger.debug(f"Downloaded {scope} -> {destination}")

        settled = await run_bounded(
            [functools.partial(fetch, scope, destination) for scope, destination in targets],
            ctx.settings.batch_size,
        )

    failures = [outcome.error for outcome in settled if outcome.error is not None]
    if failures:
        raise CdnPublishError(
            ErrorKind.UNABLE_TO_GET_FILE,
            f"{len(failures)}/{len(targets)} files failed to download",
            cause=failures[0],
            errors=failures,
        ) from failures[0]

    ctx.logger.info(f"Downloaded {len(targets)} file(s) into {output}")


def _make_dirs(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CdnPublishError(
            ErrorKind.WRITE_FILE, f"Cannot create {directory}", cause=exc,
        ) from exc


def _write_file(destination: Path, content: bytes) -> None:
    try:
        destination.write_bytes(content)
    except OSError as exc:
        raise CdnPublishError(
            ErrorKind.WRITE_FILE, f"Cannot write {destination}", cause=exc,
        ) from exc


# ---------------------------------------------------------------------------
# Pull-zone commands
# ---------------------------------------------------------------------------

async def run_pullzone_list(args: argparse.Namespace, ctx: CommandContext) -> None:
    async with _open_pullzones(args, ctx) as pullzones:
        zones = await pullzones.list(args.search)
    ctx.logger.table([{"id": zone.id, "name": zone.name} for zone in zones])


async def run_pullzone_purge(args: argparse.Namespace, ctx: CommandContext) -> None:
    """Purge one zone (``--zone``) or every zone of the account."""
    async with _open_pullzones(args, ctx) as pullzones:
        if args.zone is not None:
            zone_ids = [args.zone]
        else:
            zone_ids = [zone.id for zone in await pullzones.list()]
        results = await pullzones.purge_all(zone_ids)

    ctx.logger.table([
        {"idZone": result.id, "purged": f"{'Ok' if result.ok else 'Error'} ({result.status})"}
        for result in results
    ])

    failed = [result.id for result in results if not result.ok]
    if failed:
        suffix = "s" if len(failed) > 1 else ""
        raise CdnPublishError(
            ErrorKind.RESPONSE_NOT_OK,
            f"something went wrong while attempting to purge zones with id{suffix} "
            + ", ".join(f"'{zone_id}'" for zone_id in failed),
        )
