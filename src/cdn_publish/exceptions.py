"""Error type shared by every layer of cdn-publish.

All failures that cross layer boundaries are raised as
:class:`CdnPublishError`.  Instead of one subclass per failure, each
error carries an :class:`ErrorKind` discriminant so callers can branch
on ``exc.kind`` and the CLI boundary can render every failure the same
way.  Raw third-party exceptions (httpx, OSError, JSON decoding) must
NEVER propagate beyond the infrastructure layer; they are wrapped and
chained as ``cause``.

Kinds
-----
INVALID_URL, RESPONSE_NOT_OK, BODY_NOT_OK, READ_FILE,
WRITE_FILE, JSON_PARSE_STRING, NO_FILES, NO_PACKAGE_JSON_FILES, NOTHING_TO_DO,
NO_PACKAGE_JSON_NAME_SCOPE, OUT_OF_SCOPE_FILE, PUT_ON_NON_EMPTY_FOLDER,
UNABLE_TO_UPLOAD_FILE, UNABLE_TO_DELETE_FILE, UNABLE_TO_GET_FILE
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Any

import httpx


class ErrorKind(enum.Enum):
    """Discriminant of a :class:`CdnPublishError`."""

    # --- configuration -----------------------------------------------------
    INVALID_URL = "InvalidURL"

    # --- transport ---------------------------------------------------------
    RESPONSE_NOT_OK = "ResponseNotOk"
    BODY_NOT_OK = "BodyNotOk"

    # --- local package / files ---------------------------------------------
    READ_FILE = "ReadFile"
    WRITE_FILE = "WriteFile"
    JSON_PARSE_STRING = "JSONParseString"
    NO_FILES = "NoFiles"
    NO_PACKAGE_JSON_FILES = "NoPackageJsonFiles"
    NOTHING_TO_DO = "NothingToDo"
    NO_PACKAGE_JSON_NAME_SCOPE = "NoPackageJsonNameScope"
    OUT_OF_SCOPE_FILE = "OutOfScopeFile"

    # --- remote storage operations -----------------------------------------
    PUT_ON_NON_EMPTY_FOLDER = "PutOnNonEmptyFolder"
    UNABLE_TO_UPLOAD_FILE = "UnableToUploadFile"
    UNABLE_TO_DELETE_FILE = "UnableToDeleteFile"
    UNABLE_TO_GET_FILE = "UnableToGetFile"


class CdnPublishError(Exception):
    """Base (and only) exception type for cdn-publish.

    Parameters
    ----------
    kind:
        What went wrong, as an :class:`ErrorKind`.
    message:
        Human-readable description.  For per-file upload failures this
        is the offending file's pathname.
    cause:
        The underlying error or HTTP response, if any.
    hint:
        Optional actionable guidance shown below the error message.
    errors:
        Individual failures folded into this one (batch uploads,
        rollbacks).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: Any = None,
        hint: str | None = None,
        errors: Sequence[BaseException] = (),
    ) -> None:
        super().__init__(message)
        self.kind: ErrorKind = kind
        self.message: str = message
        self.cause: Any = cause
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""
        self.errors: tuple[BaseException, ...] = tuple(errors)

    def __repr__(self) -> str:
        return f"CdnPublishError({self.kind.value}, {self.message!r})"

    @property
    def response(self) -> Any:
        """Return the first HTTP response found along the ``cause`` chain.

        ``None`` when the failure did not originate from an HTTP
        response (e.g. a local file error or a connection failure).
        """
        seen: set[int] = set()
        current: Any = self
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            if isinstance(current, httpx.Response):
                return current
            current = getattr(current, "cause", None)
        return None

    @property
    def status_code(self) -> int | None:
        """HTTP status of :attr:`response`, or ``None``."""
        response = self.response
        return None if response is None else int(response.status_code)
