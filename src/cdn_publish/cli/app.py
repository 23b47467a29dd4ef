"""CLI application entry point and command routing for cdn-publish.

This module is the **sole error boundary** for the entire application.
It catches :class:`~cdn_publish.exceptions.CdnPublishError`,
``KeyboardInterrupt`` and any unexpected ``Exception``, renders a
user-friendly message and turns it into an exit code.

Architecture notes
------------------
* No business logic lives here; handlers in
  :mod:`cdn_publish.cli.commands` wire the core and infra layers.
* Credentials and endpoints come from CLI flags first, then from
  ``CDN_*`` settings.
* Every failure, usage errors included, exits with
  :data:`~cdn_publish.cli.exit_codes.GENERAL_ERROR`.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import NoReturn

import httpx
from pydantic import ValidationError

from cdn_publish.cli import commands, exit_codes
from cdn_publish.cli.console import RichLogger, console
from cdn_publish.config import CdnSettings
from cdn_publish.core.protocols import Logger
from cdn_publish.exceptions import CdnPublishError
from cdn_publish.version import __version__

UNAUTHORIZED_MESSAGE = (
    "HTTP response returned UNAUTHORIZED. Either missing or wrong access key "
    "in option -k or --storage-access-key|--access-key"
)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class _Parser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with ``GENERAL_ERROR``."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(exit_codes.GENERAL_ERROR, f"{self.prog}: error: {message}\n")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _add_storage_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-k",
        "--storage-access-key",
        default=None,
        help="Edge storage access key (env: CDN_STORAGE_ACCESS_KEY).",
    )
    parser.add_argument(
        "-s",
        "--storage-zone-name",
        default=None,
        help="Storage zone name (env: CDN_STORAGE_ZONE_NAME).",
    )
    parser.add_argument(
        "-u",
        "--base-url",
        default=None,
        help="Edge storage endpoint (env: CDN_STORAGE_BASE_URL).",
    )


def _add_upload_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--checksum",
        action="store_true",
        help="Send a SHA-256 checksum with every file.",
    )
    parser.add_argument(
        "-b",
        "--batch-size",
        type=_positive_int,
        default=None,
        help="Files uploaded concurrently (env: CDN_BATCH_SIZE, default 40).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser with one sub-command per operation."""
    parser = _Parser(
        prog="cdn-publish",
        description="Publish packages and manage files on a CDN edge storage.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output.",
    )
    subcommands = parser.add_subparsers(dest="command", metavar="<command>")

    publish = subcommands.add_parser(
        "publish",
        help="Publish a package under ./<scope>[/<version>].",
    )
    publish.add_argument("files", nargs="*", help="Files, directories or globs (default: package.json `files`).")
    _add_storage_options(publish)
    publish.add_argument("-p", "--project", default=None, help="Path to package.json.")
    publish.add_argument("--scope", default=None, help="Destination scope (default: package name).")
    publish.add_argument(
        "--override-version",
        nargs="?",
        const=True,
        default=None,
        metavar="VERSION",
        help="Replace an existing version; optionally publish under VERSION.",
    )
    _add_upload_options(publish)
    publish.set_defaults(handler=commands.run_publish)

    upload = subcommands.add_parser("upload", help="Upload files under a destination directory.")
    upload.add_argument("files", nargs="*", help="Files, directories or globs.")
    _add_storage_options(upload)
    upload.add_argument("-d", "--dest", required=True, help="Remote destination directory.")
    _add_upload_options(upload)
    upload.set_defaults(handler=commands.run_upload)

    list_ = subcommands.add_parser("list", help="List a remote directory.")
    list_.add_argument("dir", help="Remote directory.")
    _add_storage_options(list_)
    list_.set_defaults(handler=commands.run_list)

    get = subcommands.add_parser("get", help="Print a remote file.")
    get.add_argument("file", help="Remote file.")
    _add_storage_options(get)
    get.set_defaults(handler=commands.run_get)

    delete = subcommands.add_parser("delete", help="Delete a remote file or directory.")
    delete.add_argument("dir", help="Remote file, or directory when it ends with '/'.")
    _add_storage_options(delete)
    delete.add_argument(
        "--avoid-throwing",
        action="store_true",
        help="Ignore failures.",
    )
    delete.set_defaults(handler=commands.run_delete)

    download = subcommands.add_parser("download", help="Download a remote file or directory.")
    download.add_argument("path", help="Remote file or directory.")
    _add_storage_options(download)
    download.add_argument("-o", "--output", default=".", help="Local directory (default: current).")
    download.set_defaults(handler=commands.run_download)

    pullzone = subcommands.add_parser("pullzone", help="Pull-zone operations.")
    pullzone_commands = pullzone.add_subparsers(dest="pullzone_command", metavar="<action>")

    for name, help_text, handler in (
        ("list", "List pull zones.", commands.run_pullzone_list),
        ("purge", "Purge pull-zone caches.", commands.run_pullzone_purge),
    ):
        action = pullzone_commands.add_parser(name, help=help_text)
        action.add_argument(
            "-k",
            "--access-key",
            default=None,
            help="Account API key (env: CDN_ACCESS_KEY).",
        )
        action.add_argument(
            "-u",
            "--base-url",
            default=None,
            help="Account API endpoint (env: CDN_API_BASE_URL).",
        )
        action.set_defaults(handler=handler)

    pullzone_commands.choices["list"].add_argument(
        "-s", "--search", default=None, help="Only zones whose name matches.",
    )
    pullzone_commands.choices["purge"].add_argument(
        "-z", "--zone", type=int, default=None, help="Zone id (default: every zone).",
    )
    pullzone.set_defaults(pullzone_parser=pullzone)

    return parser


# ---------------------------------------------------------------------------
# Option resolution
# ---------------------------------------------------------------------------

def _load_settings(parser: argparse.ArgumentParser) -> CdnSettings:
    try:
        return CdnSettings()
    except ValidationError as exc:
        parser.error(f"invalid CDN_* configuration:\n{exc}")


def _require(parser: argparse.ArgumentParser, value: str | None, flags: str) -> str:
    if not value:
        parser.error(f"the following arguments are required: {flags}")
    return value


def _resolve_options(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    settings: CdnSettings,
) -> None:
    """Fill unset flags from *settings*, failing on missing credentials."""
    if args.command == "pullzone":
        args.access_key = _require(
            parser, args.access_key or settings.access_key, "-k/--access-key",
        )
        args.base_url = args.base_url or settings.api_base_url
        return

    args.storage_access_key = _require(
        parser,
        args.storage_access_key or settings.storage_access_key,
        "-k/--storage-access-key",
    )
    args.storage_zone_name = _require(
        parser,
        args.storage_zone_name or settings.storage_zone_name,
        "-s/--storage-zone-name",
    )
    args.base_url = args.base_url or settings.storage_base_url
    if hasattr(args, "batch_size") and args.batch_size is None:
        args.batch_size = settings.batch_size


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: list[str] | None = None,
    *,
    logger: Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run the cdn-publish CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.
    logger:
        Output sink; defaults to a :class:`RichLogger` honouring
        ``--verbose``.
    transport:
        httpx transport override, used by tests to avoid the network.

    Returns
    -------
    int
        OS process exit code.

    Raises
    ------
    CdnPublishError
        Whatever the command raises; :func:`cli` renders it.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS
    if args.command == "pullzone" and args.pullzone_command is None:
        args.pullzone_parser.print_help()
        return exit_codes.SUCCESS

    settings = _load_settings(parser)
    _resolve_options(parser, args, settings)

    sink: Logger = logger if logger is not None else RichLogger(verbose=args.verbose)
    context = commands.CommandContext(
        settings=settings,
        logger=sink,
        working_dir=Path.cwd(),
        transport=transport,
        show_progress=logger is None,
    )

    asyncio.run(args.handler(args, context))
    sink.info("All good!")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def format_error(exc: CdnPublishError) -> list[str]:
    """Return the lines shown to the user for *exc* (without markup)."""
    if exc.status_code == 401:
        return [UNAUTHORIZED_MESSAGE]

    lines = [str(exc)]
    for error in exc.errors:
        lines.append(f"  - {error}")

    response = exc.response
    if response is not None:
        body = response.text.strip()
        if body:
            lines.append(f"Response ({response.status_code}): {body}")
    return lines


def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except CdnPublishError as exc:
        first, *rest = format_error(exc)
        console.print(f"Error: {first}", style="bold red", markup=False, highlight=False)
        for line in rest:
            console.print(line, markup=False, highlight=False)
        if exc.hint:
            console.print(f"Hint: {exc.hint}", style="yellow", markup=False, highlight=False)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.GENERAL_ERROR)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.GENERAL_ERROR)
