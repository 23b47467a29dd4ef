"""Normalisation of remote paths typed on the command line.

Users may write ``/assets``, ``assets`` or ``./assets``; the storage
service expects ``./``-prefixed scopes, with a trailing slash for
directories.
"""

from __future__ import annotations

import re

_DIR_AND_FILE = re.compile(r"^(?P<dir>.*/)(?P<filename>[^/]+)?$")


def _dot_prefixed(value: str) -> str:
    if value.startswith("/"):
        return f".{value}"
    if not value.startswith("./"):
        return f"./{value}"
    return value


def normalize_dir(value: str) -> str:
    """``assets`` -> ``./assets/``."""
    output = _dot_prefixed(value)
    return output if output.endswith("/") else f"{output}/"


def normalize_file(value: str) -> str:
    """``/assets/app.js/`` -> ``./assets/app.js``."""
    output = _dot_prefixed(value)
    return output[:-1] if output.endswith("/") else output


def split_dir_file(value: str) -> tuple[str, str | None]:
    """Split a delete target into its directory and optional file name.

    >>> split_dir_file("assets/app.js")
    ('./assets/', './app.js')
    >>> split_dir_file("/assets/")
    ('./assets/', None)
    """
    output = _dot_prefixed(value)
    match = _DIR_AND_FILE.match(output)
    # Every dot-prefixed value contains a slash, so the pattern always matches.
    assert match is not None
    filename = match.group("filename")
    return match.group("dir"), f"./{filename}" if filename else None
