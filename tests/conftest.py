"""Shared pytest fixtures and configuration for the cdn-publish test suite.

Guidelines
----------
* No internet access in any test: HTTP goes through pytest-httpx or the
  in-memory :class:`FakeEdgeStorage` mounted on ``httpx.MockTransport``.
* ``CDN_*`` variables of the developer's shell never leak into a test.
* Retries never sleep.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import pytest

from cdn_publish.core.cdn import CdnContext, create_cdn_context
from cdn_publish.core.storage_service import EdgeStorageService
from cdn_publish.infra.http_client import HttpClient, HttpClientConfig, RetryPolicy

ACCESS_KEY = "secret-key"
ZONE = "zone"
SERVER = "https://storage.test"


# ---------------------------------------------------------------------------
# Logger double
# ---------------------------------------------------------------------------

class RecordingLogger:
    """Logger that keeps every call for later assertions."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []
        self.tables: list[list[dict[str, object]]] = []

    def debug(self, message: str) -> None:
        self.records.append(("debug", message))

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def table(self, rows: Sequence[Mapping[str, object]]) -> None:
        self.tables.append([dict(row) for row in rows])

    def messages(self, level: str) -> list[str]:
        return [message for record_level, message in self.records if record_level == level]


# ---------------------------------------------------------------------------
# Fake edge storage
# ---------------------------------------------------------------------------

class FakeEdgeStorage:
    """In-memory storage zone speaking the edge storage HTTP dialect.

    Keys of :attr:`files` are paths relative to the zone root, e.g.
    ``"ns/pkg/1.0.0/index.html"``.
    """

    def __init__(self, zone: str = ZONE, access_key: str = ACCESS_KEY) -> None:
        self.zone = zone
        self.access_key = access_key
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.put_headers: dict[str, httpx.Headers] = {}
        self.fail_uploads: set[str] = set()
        self.fail_deletes: bool = False

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def methods(self) -> list[str]:
        return [request.method for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("AccessKey") != self.access_key:
            return httpx.Response(401, json={"HttpCode": 401, "Message": "Unauthorized"})

        prefix = f"/{self.zone}/"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"HttpCode": 404, "Message": "Unknown zone"})
        key = path[len(prefix):]
        is_dir = key == "" or key.endswith("/")

        if request.method == "PUT":
            return self._put(key, request)
        if request.method == "GET":
            return self._list(key) if is_dir else self._get(key)
        if request.method == "DELETE":
            return self._delete_dir(key) if is_dir else self._delete_file(key)
        return httpx.Response(405)

    # ------------------------------------------------------------------

    def _put(self, key: str, request: httpx.Request) -> httpx.Response:
        if key in self.fail_uploads:
            return httpx.Response(400, json={"HttpCode": 400, "Message": "Upload refused"})
        self.files[key] = request.content
        self.put_headers[key] = request.headers
        return httpx.Response(201, json={"HttpCode": 201, "Message": "File uploaded."})

    def _list(self, key: str) -> httpx.Response:
        children: dict[str, bool] = {}
        for name in sorted(self.files):
            if not name.startswith(key):
                continue
            head, separator, _ = name[len(key):].partition("/")
            children.setdefault(head, bool(separator))

        entries: list[dict[str, Any]] = [
            {
                "ObjectName": name,
                "Path": f"/{self.zone}/{key}",
                "IsDirectory": is_directory,
                "Length": 0 if is_directory else len(self.files[f"{key}{name}"]),
                "StorageZoneName": self.zone,
            }
            for name, is_directory in children.items()
        ]
        return httpx.Response(200, json=entries)

    def _get(self, key: str) -> httpx.Response:
        if key not in self.files:
            return httpx.Response(404, json={"HttpCode": 404, "Message": "Object Not Found"})
        return httpx.Response(
            200,
            content=self.files[key],
            headers={"content-type": "application/octet-stream"},
        )

    def _delete_dir(self, key: str) -> httpx.Response:
        if self.fail_deletes:
            return httpx.Response(500, text="delete failed")
        doomed = [name for name in self.files if name.startswith(key)]
        if not doomed:
            return httpx.Response(404, json={"HttpCode": 404, "Message": "Object Not Found"})
        for name in doomed:
            del self.files[name]
        return httpx.Response(200, json={"HttpCode": 200, "Message": "File deleted successfuly."})

    def _delete_file(self, key: str) -> httpx.Response:
        if self.fail_deletes:
            return httpx.Response(500, text="delete failed")
        if self.files.pop(key, None) is None:
            return httpx.Response(404, json={"HttpCode": 404, "Message": "Object Not Found"})
        return httpx.Response(200, json={"HttpCode": 200, "Message": "File deleted successfuly."})


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_cdn(**overrides: Any) -> CdnContext:
    defaults: dict[str, Any] = {
        "server": SERVER,
        "storage_zone_name": ZONE,
    }
    defaults.update(overrides)
    return create_cdn_context(ACCESS_KEY, **defaults)


def make_http_client(
    cdn: CdnContext,
    logger: RecordingLogger,
    transport: httpx.AsyncBaseTransport | None = None,
    *,
    retries: int = 0,
) -> HttpClient:
    config = HttpClientConfig(
        base_url=cdn.base_url,
        headers={"AccessKey": cdn.access_key},
        retry=RetryPolicy(retries=retries, delay_seconds=0),
        timeout_seconds=5,
    )
    return HttpClient(config, logger, transport=transport)


def make_storage(
    fake: FakeEdgeStorage,
    logger: RecordingLogger,
    *,
    progress_interval: float = 60,
) -> tuple[EdgeStorageService, HttpClient]:
    """Return a service wired to *fake* and the client to close afterwards."""
    cdn = make_cdn()
    http = make_http_client(cdn, logger, fake.transport)
    return EdgeStorageService(cdn, http, logger, progress_interval=progress_interval), http


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.upper().startswith("CDN_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture()
def fake_storage() -> FakeEdgeStorage:
    return FakeEdgeStorage()
