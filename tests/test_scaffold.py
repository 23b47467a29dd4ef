"""Smoke tests: scaffold wiring.

These tests prove that:
* Version is accessible.
* Every error kind is constructible and carries a hint.
* Exit codes are defined.
* ``python -m cdn_publish`` resolves to the CLI boundary.
"""

from __future__ import annotations

import httpx
import pytest

from cdn_publish import __version__
from cdn_publish.cli import exit_codes
from cdn_publish.exceptions import CdnPublishError, ErrorKind


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Error type
# ---------------------------------------------------------------------------

class TestCdnPublishError:
    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_every_kind_is_constructible(self, kind: ErrorKind) -> None:
        exc = CdnPublishError(kind, "boom")
        assert exc.kind is kind
        assert str(exc) == "boom"
        assert exc.hint is None
        assert exc.errors == ()

    def test_kind_values_are_unique(self) -> None:
        values = [kind.value for kind in ErrorKind]
        assert len(values) == len(set(values))

    def test_hint_is_stored(self) -> None:
        exc = CdnPublishError(ErrorKind.NO_FILES, "none", hint="pass a file")
        assert exc.hint == "pass a file"

    def test_errors_become_a_tuple(self) -> None:
        inner = CdnPublishError(ErrorKind.UNABLE_TO_UPLOAD_FILE, "./a.txt")
        exc = CdnPublishError(ErrorKind.UNABLE_TO_UPLOAD_FILE, "1/1", errors=[inner])
        assert exc.errors == (inner,)

    def test_response_found_along_cause_chain(self) -> None:
        response = httpx.Response(404, text="missing")
        inner = CdnPublishError(ErrorKind.RESPONSE_NOT_OK, "response not ok", cause=response)
        outer = CdnPublishError(ErrorKind.UNABLE_TO_GET_FILE, "unable", cause=inner)

        assert outer.response is response
        assert outer.status_code == 404

    def test_no_response_without_http_cause(self) -> None:
        exc = CdnPublishError(ErrorKind.READ_FILE, "cannot read", cause=OSError("nope"))
        assert exc.response is None
        assert exc.status_code is None

    def test_cyclic_cause_chain_terminates(self) -> None:
        first = CdnPublishError(ErrorKind.RESPONSE_NOT_OK, "a")
        second = CdnPublishError(ErrorKind.RESPONSE_NOT_OK, "b", cause=first)
        first.cause = second
        assert first.response is None

    def test_repr_names_the_kind(self) -> None:
        exc = CdnPublishError(ErrorKind.INVALID_URL, "Invalid URL")
        assert "InvalidURL" in repr(exc)


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_success_is_zero(self) -> None:
        assert exit_codes.SUCCESS == 0

    def test_general_error_is_one(self) -> None:
        assert exit_codes.GENERAL_ERROR == 1


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

class TestModuleEntryPoint:
    def test_main_module_imports_cli(self) -> None:
        import cdn_publish.__main__ as entry
        from cdn_publish.cli.app import cli

        assert entry.cli is cli
