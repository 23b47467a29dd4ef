"""Tests for package.json loading and publish-target derivation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cdn_publish.core.versioning import build_prefix, is_semver, resolve_scope, resolve_version
from cdn_publish.exceptions import CdnPublishError, ErrorKind
from cdn_publish.infra.package_manifest import (
    PackageManifest,
    load_package_manifest,
    manifest_matchers,
)


def _write_manifest(directory: Path, **fields: object) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(fields))
    return path


# ---------------------------------------------------------------------------
# load_package_manifest
# ---------------------------------------------------------------------------

class TestLoadPackageManifest:
    def test_reads_name_version_files(self, tmp_path: Path) -> None:
        _write_manifest(tmp_path, name="@ns/pkg", version="1.0.0", files=["dist"], private=True)

        manifest = load_package_manifest(Path("package.json"), working_dir=tmp_path)

        assert manifest.name == "@ns/pkg"
        assert manifest.version == "1.0.0"
        assert manifest.files == ("dist",)
        assert manifest.working_dir == tmp_path
        assert manifest.path == tmp_path / "package.json"

    def test_working_dir_follows_manifest_location(self, tmp_path: Path) -> None:
        _write_manifest(tmp_path / "packages" / "ui", name="@ns/ui")

        manifest = load_package_manifest(
            Path("packages/ui/package.json"), working_dir=tmp_path,
        )

        assert manifest.working_dir == tmp_path / "packages" / "ui"

    def test_non_string_files_are_ignored(self, tmp_path: Path) -> None:
        _write_manifest(tmp_path, name="@ns/pkg", files=["dist", 3, None])
        manifest = load_package_manifest(Path("package.json"), working_dir=tmp_path)
        assert manifest.files == ("dist",)

    def test_files_not_a_list_is_empty(self, tmp_path: Path) -> None:
        _write_manifest(tmp_path, name="@ns/pkg", files="dist")
        manifest = load_package_manifest(Path("package.json"), working_dir=tmp_path)
        assert manifest.files == ()

    def test_missing_optional_manifest_is_empty(self, tmp_path: Path) -> None:
        manifest = load_package_manifest(
            Path("package.json"), working_dir=tmp_path, required=False,
        )
        assert manifest == PackageManifest.empty(tmp_path)

    def test_missing_required_manifest_raises_read_file(self, tmp_path: Path) -> None:
        with pytest.raises(CdnPublishError) as exc_info:
            load_package_manifest(Path("nope.json"), working_dir=tmp_path)
        assert exc_info.value.kind is ErrorKind.READ_FILE

    def test_invalid_json_raises_json_parse_string(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{ not json")
        with pytest.raises(CdnPublishError) as exc_info:
            load_package_manifest(Path("package.json"), working_dir=tmp_path)
        assert exc_info.value.kind is ErrorKind.JSON_PARSE_STRING

    def test_json_array_raises_json_parse_string(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("[]")
        with pytest.raises(CdnPublishError) as exc_info:
            load_package_manifest(Path("package.json"), working_dir=tmp_path)
        assert exc_info.value.kind is ErrorKind.JSON_PARSE_STRING


class TestManifestMatchers:
    def test_returns_files(self, tmp_path: Path) -> None:
        manifest = PackageManifest(name=None, version=None, files=("a", "b"), working_dir=tmp_path)
        assert manifest_matchers(manifest) == ("a", "b")

    def test_no_files_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CdnPublishError) as exc_info:
            manifest_matchers(PackageManifest.empty(tmp_path))
        assert exc_info.value.kind is ErrorKind.NO_PACKAGE_JSON_FILES


# ---------------------------------------------------------------------------
# Versioning
# ---------------------------------------------------------------------------

class TestIsSemver:
    @pytest.mark.parametrize(
        "value",
        ["1.0.0", "v2.10.3", "0.0.1-alpha.1", "1.2.3+build.5", "1.2.3-rc.1+sha.abc"],
    )
    def test_semver(self, value: str) -> None:
        assert is_semver(value)

    @pytest.mark.parametrize("value", ["latest", "1.2", "01.2.3", "1.2.3.4", ""])
    def test_not_semver(self, value: str) -> None:
        assert not is_semver(value)


class TestResolveScope:
    def test_explicit_scope_is_cleaned(self) -> None:
        assert resolve_scope("/a/./b/../c/", "@ns/pkg") == "a/b/c"

    def test_scope_from_package_name(self) -> None:
        assert resolve_scope(None, "@ns/pkg") == "ns/pkg"

    @pytest.mark.parametrize("name", [None, "", "pkg", "ns/pkg"])
    def test_missing_scope_raises(self, name: str | None) -> None:
        with pytest.raises(CdnPublishError) as exc_info:
            resolve_scope(None, name)
        assert exc_info.value.kind is ErrorKind.NO_PACKAGE_JSON_NAME_SCOPE


class TestResolveVersion:
    def test_manifest_version(self) -> None:
        assert resolve_version(None, "1.0.0") == ("1.0.0", True)

    def test_override_wins(self) -> None:
        assert resolve_version("latest", "1.0.0") == ("latest", False)

    def test_no_version(self) -> None:
        assert resolve_version(None, None) == (None, False)


class TestBuildPrefix:
    def test_with_version(self) -> None:
        assert build_prefix("ns/pkg", "1.0.0") == "./ns/pkg/1.0.0"

    def test_without_version(self) -> None:
        assert build_prefix("ns/pkg", None) == "./ns/pkg"
