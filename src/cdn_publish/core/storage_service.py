"""Edge storage service: the upload/publish pipeline.

The service talks to the vendor API only through a
:class:`~cdn_publish.core.protocols.Transport` injected at construction
time and reports through an injected
:class:`~cdn_publish.core.protocols.Logger`.  It is responsible for:

* The empty-destination guard on semver scopes.
* Bounded-concurrency, settle-all uploads of lazily loaded files.
* Aggregating upload failures into a single error.
* Best-effort rollback of semver scopes after a partial failure.

Read paths (``list``, ``get``, ``download``) and ``delete`` live here
too, since the pipeline itself is built on them.

Guarantees
----------
* Only :class:`~cdn_publish.exceptions.CdnPublishError` escapes, except
  the ``ValueError`` raised by :meth:`EdgeStorageService.put` for a
  non-positive *batch_size*.
* No ``print()`` and no filesystem access; file bytes come from the
  loaders carried by each :class:`LoadingContext`.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Sequence
from typing import Any

from cdn_publish.core.bounded_queue import SettledTask, run_bounded
from cdn_publish.core.cdn import CdnContext, ends_with_slash
from cdn_publish.core.models import ChecksummedContent, FileMeta, LoadingContext
from cdn_publish.core.protocols import Logger, Response, Transport
from cdn_publish.exceptions import CdnPublishError, ErrorKind

DEFAULT_BATCH_SIZE = 40

ProgressCallback = Callable[[int, int], None]
"""Called with ``(completed, total)`` each time an upload settles."""


class EdgeStorageService:
    """Client for one storage zone.

    Parameters
    ----------
    cdn:
        Addressing context (base URL, access key).
    transport:
        Any object satisfying the :class:`Transport` protocol, configured
        with the ``AccessKey`` header.
    logger:
        Sink for progress and diagnostics.
    progress_interval:
        Seconds between periodic ``Put files: n/total`` log lines.
    """

    def __init__(
        self,
        cdn: CdnContext,
        transport: Transport,
        logger: Logger,
        *,
        progress_interval: float = 2.0,
    ) -> None:
        self._cdn: CdnContext = cdn
        self._transport: Transport = transport
        self._logger: Logger = logger
        self._progress_interval: float = progress_interval

    @property
    def cdn(self) -> CdnContext:
        return self._cdn

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    async def list(self, scope: str) -> list[FileMeta]:
        """Return the metadata of every entry under the directory *scope*.

        A trailing slash is forced.  A missing directory yields ``[]``
        instead of an error.
        """
        url = self._cdn.build_url(ends_with_slash(scope))
        try:
            response = await self._transport.get(url, headers={"Accept": "*/*"})
        except CdnPublishError as exc:
            if exc.status_code == 404:
                return []
            raise

        if not isinstance(response.data, list):
            return []
        return [FileMeta.from_api(entry) for entry in response.data if isinstance(entry, dict)]

    async def get(self, scope: str) -> Any:
        """Return the decoded content of the remote file *scope*.

        A trailing slash makes this a :meth:`list` call.

        Raises
        ------
        CdnPublishError
            ``UNABLE_TO_GET_FILE`` on any failure, including 404.
        """
        if scope.endswith("/"):
            return await self.list(scope)
        response = await self._fetch_file(scope)
        return response.data

    async def download(self, scope: str) -> bytes:
        """Return the raw bytes of the remote file *scope*."""
        response = await self._fetch_file(scope)
        return response.content

    async def _fetch_file(self, scope: str) -> Response:
        url = self._cdn.build_url(scope)
        try:
            return await self._transport.get(url, headers={"Accept": "*/*"})
        except CdnPublishError as exc:
            raise CdnPublishError(
                ErrorKind.UNABLE_TO_GET_FILE,
                "unable to retrieve file",
                cause=exc,
            ) from exc

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(
        self,
        scope: str,
        pathname: str = "./",
        avoid_throwing: bool = False,
    ) -> None:
        """Delete ``scope/pathname``; the default removes the whole scope.

        With *avoid_throwing* every failure is swallowed, which makes
        this usable for best-effort cleanup.
        """
        url = self._cdn.build_url(scope, pathname)
        try:
            await self._transport.delete(url)
        except CdnPublishError as exc:
            if not avoid_throwing:
                raise
            self._logger.debug(f"Ignored failed delete of {url}: {exc}")

    # ------------------------------------------------------------------
    # Upload pipeline
    # ------------------------------------------------------------------

    async def put(
        self,
        scope: str,
        contexts: Sequence[LoadingContext],
        is_semver: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Upload every loading context under *scope*.

        Parameters
        ----------
        scope:
            Destination directory (``./...``).
        contexts:
            Files to upload, admitted to the queue in this order.
        is_semver:
            When ``True`` the scope must be empty beforehand and is
            deleted again if any upload fails.
        batch_size:
            Maximum number of concurrent uploads.
        progress_callback:
            Optional ``(completed, total)`` hook, e.g. a progress bar.

        Raises
        ------
        CdnPublishError
            ``NOTHING_TO_DO`` for an empty batch,
            ``PUT_ON_NON_EMPTY_FOLDER`` when the semver guard trips,
            ``UNABLE_TO_UPLOAD_FILE`` when any upload failed (its
            ``errors`` hold each per-file failure), or
            ``UNABLE_TO_DELETE_FILE`` when the rollback itself failed.
        ValueError
            When *batch_size* is lower than 1; nothing is sent.
        """
        if not contexts:
            raise CdnPublishError(ErrorKind.NOTHING_TO_DO, "No file selected to PUT")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        if is_semver and not await self._is_empty_folder(scope):
            raise CdnPublishError(
                ErrorKind.PUT_ON_NON_EMPTY_FOLDER,
                f"Folder {scope} is not empty and scoped with semver versioning",
                hint="Publish a new version or pass --override-version.",
            )

        total = len(contexts)
        completed = 0

        def on_settled(_outcome: SettledTask[None]) -> None:
            nonlocal completed
            completed += 1
            if progress_callback is not None:
                progress_callback(completed, total)

        async def report() -> None:
            while True:
                await asyncio.sleep(self._progress_interval)
                self._logger.info(
                    f"Put files: {completed}/{total} ({completed * 100 / total:.2f}%)"
                )

        reporter = asyncio.create_task(report())
        try:
            outcomes = await run_bounded(
                [self._upload_task(scope, ctx) for ctx in contexts],
                batch_size,
                on_settled=on_settled,
            )
        finally:
            reporter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reporter

        failures = [outcome.error for outcome in outcomes if outcome.error is not None]
        if not failures:
            return

        failure = CdnPublishError(
            ErrorKind.UNABLE_TO_UPLOAD_FILE,
            f"{len(failures)}/{total} files failed to upload",
            cause=failures[0],
            errors=failures,
        )
        if is_semver:
            await self._rollback(scope, failure)
        raise failure from failures[0]

    def _upload_task(self, scope: str, ctx: LoadingContext) -> Callable[[], Any]:
        """Return the deferred upload of one file."""
        url = self._cdn.build_url(scope, ctx.pathname)

        async def upload() -> None:
            try:
                content = await ctx.loader()
                await self._put_content(url, content)
            except Exception as exc:
                raise CdnPublishError(
                    ErrorKind.UNABLE_TO_UPLOAD_FILE,
                    ctx.pathname,
                    cause=exc,
                ) from exc

        return upload

    async def _put_content(self, url: str, content: bytes | ChecksummedContent) -> None:
        headers = {"Content-Type": "application/octet-stream"}
        if isinstance(content, ChecksummedContent):
            data = content.buffer
            headers["Checksum"] = content.checksum.upper()
        else:
            data = content
        await self._transport.put(url, data, headers=headers)

    async def _is_empty_folder(self, scope: str) -> bool:
        return len(await self.list(scope)) == 0

    async def _rollback(self, scope: str, failure: CdnPublishError) -> None:
        """Delete *scope* after a failed semver upload.

        A failed rollback replaces *failure*, which stays reachable as
        its ``cause``.
        """
        self._logger.warning(f"Rolling back {scope} after failed upload")
        try:
            await self.delete(scope)
        except CdnPublishError as exc:
            raise CdnPublishError(
                ErrorKind.UNABLE_TO_DELETE_FILE,
                scope,
                cause=failure,
                errors=(exc,),
                hint="The destination may be partially populated; delete it manually.",
            ) from failure
