"""Rich progress bar driven by the upload pipeline's progress callback.

:class:`RichUploadProgress` is passed as ``progress_callback`` to
:meth:`~cdn_publish.core.storage_service.EdgeStorageService.put`, which
calls it with ``(completed, total)`` every time an upload settles.

* Calls made while the bar is stopped are ignored.
* While running, CLI log lines print through the bar's console so they
  stay above the live display.
* Without Rich the object still works as a callback and draws nothing.
"""

from __future__ import annotations

from typing import Any

from cdn_publish.cli.console import console, get_rich_console


class RichUploadProgress:
    """Callable ``(completed, total)`` adapter for a Rich ``Progress``.

    Usage::

        with RichUploadProgress("Uploading") as progress:
            await storage.put(scope, contexts, progress_callback=progress)
    """

    def __init__(self, description: str = "Uploading") -> None:
        self._description: str = description
        self._progress: Any = _create_progress()
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichUploadProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Start the progress display."""
        if self._started:
            return
        if self._progress is not None:
            self._progress.start()
            console.attach(self._progress.console)
        self._started = True

    def stop(self) -> None:
        """Stop the progress display (idempotent)."""
        if not self._started:
            return
        if self._progress is not None:
            self._progress.stop()
            console.detach()
        self._started = False

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def __call__(self, completed: int, total: int) -> None:
        if not self._started or self._progress is None:
            return

        if self._task_id is None:
            self._task_id = self._progress.add_task(self._description, total=total)
        self._progress.update(self._task_id, total=total, completed=completed)


def _create_progress() -> Any | None:
    try:
        from rich.progress import (
            BarColumn,
            MofNCompleteColumn,
            Progress,
            SpinnerColumn,
            TextColumn,
            TimeElapsedColumn,
        )
    except ModuleNotFoundError:
        return None

    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=get_rich_console(),
        transient=False,
    )
