"""CLI console helpers with optional Rich support.

This module avoids module-level imports of Rich so bootstrap paths
(``--help``, ``--version``) keep working even when Rich is not
installed.  Everything renders on stderr.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from typing import Any


def _load_rich_console_class() -> type[Any] | None:
    """Return ``rich.console.Console``, or ``None`` when Rich is missing."""
    try:
        from rich.console import Console
    except ModuleNotFoundError:
        return None
    return Console


def get_rich_console() -> Any | None:
    """Create a Rich console targeting stderr, if Rich is available."""
    console_class = _load_rich_console_class()
    if console_class is None:
        return None
    return console_class(stderr=True)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with plain-stderr fallback.

    While a live display (e.g. the upload progress bar) is running it
    registers its own Rich console through :meth:`attach`, so messages
    print above the display instead of through it.
    """

    def __init__(self) -> None:
        self._attached: Any | None = None

    def attach(self, rich_console: Any) -> None:
        self._attached = rich_console

    def detach(self) -> None:
        self._attached = None

    def print(self, *objects: object, **options: Any) -> None:
        """Render with Rich when available, else plain stderr print.

        *options* are Rich ``Console.print`` keywords (``style``,
        ``markup``...); the fallback ignores them.
        """
        rich_console = self._attached if self._attached is not None else get_rich_console()
        if rich_console is None:
            print(*objects, file=sys.stderr)
            return
        rich_console.print(*objects, **options)


console = _ConsoleProxy()


# ---------------------------------------------------------------------------
# Logger implementation
# ---------------------------------------------------------------------------

class RichLogger:
    """:class:`~cdn_publish.core.protocols.Logger` backed by :data:`console`.

    Messages are printed verbatim (no Rich markup parsing), so remote
    file names and bodies containing brackets render as-is.
    """

    def __init__(self, *, verbose: bool = False) -> None:
        self.verbose: bool = verbose

    def debug(self, message: str) -> None:
        if self.verbose:
            console.print(message, style="dim", markup=False, highlight=False)

    def info(self, message: str) -> None:
        console.print(message, markup=False, highlight=False)

    def warning(self, message: str) -> None:
        console.print(f"Warning: {message}", style="yellow", markup=False, highlight=False)

    def error(self, message: str) -> None:
        console.print(f"Error: {message}", style="bold red", markup=False, highlight=False)

    def table(self, rows: Sequence[Mapping[str, object]]) -> None:
        """Render *rows* with the first row's keys as columns."""
        if not rows:
            self.info("(no entries)")
            return

        columns = [str(key) for key in rows[0]]
        table = _build_rich_table(columns, rows)
        if table is None:
            console.print("\t".join(columns))
            for row in rows:
                console.print("\t".join(str(row.get(column, "")) for column in columns))
            return
        console.print(table)


def _build_rich_table(
    columns: Sequence[str],
    rows: Sequence[Mapping[str, object]],
) -> Any | None:
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        return None

    table = Table(show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(row.get(column, "")) for column in columns))
    return table
