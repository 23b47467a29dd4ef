"""Tests for pull-zone listing and cache purging (pytest-httpx)."""

from __future__ import annotations

import httpx
import pytest
from pytest_httpx import HTTPXMock

from cdn_publish.core.cdn import create_cdn_context
from cdn_publish.core.pullzone_service import PullZoneService
from cdn_publish.exceptions import CdnPublishError, ErrorKind
from cdn_publish.infra.http_client import HttpClient

from conftest import RecordingLogger, make_http_client

API = "https://api.test"


def _client(logger: RecordingLogger) -> HttpClient:
    cdn = create_cdn_context("account-key", server=API, storage_zone_name="")
    return make_http_client(cdn, logger)


class TestList:
    @pytest.mark.asyncio
    async def test_list_maps_zones(self, httpx_mock: HTTPXMock, logger: RecordingLogger) -> None:
        httpx_mock.add_response(
            url=f"{API}/pullzone",
            match_headers={"AccessKey": "account-key", "Accept": "application/json"},
            json=[{"Id": 1, "Name": "docs"}, {"Id": 2, "Name": "assets", "Enabled": True}],
        )

        async with _client(logger) as http:
            zones = await PullZoneService(http, logger).list()

        assert [(zone.id, zone.name) for zone in zones] == [(1, "docs"), (2, "assets")]

    @pytest.mark.asyncio
    async def test_search_is_sent_as_query(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_response(url=f"{API}/pullzone?search=my+zone", json=[])

        async with _client(logger) as http:
            assert await PullZoneService(http, logger).list("my zone") == []

    @pytest.mark.asyncio
    async def test_non_list_body_is_empty(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_response(url=f"{API}/pullzone", json={"unexpected": True})

        async with _client(logger) as http:
            assert await PullZoneService(http, logger).list() == []


class TestPurge:
    @pytest.mark.asyncio
    async def test_purge_cache_reports_status(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_response(url=f"{API}/pullzone/7/purgeCache", method="POST", status_code=204)

        async with _client(logger) as http:
            result = await PullZoneService(http, logger).purge_cache(7)

        assert result.id == 7
        assert result.status == 204
        assert result.ok

    @pytest.mark.asyncio
    async def test_purge_all_settles_every_zone(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_response(url=f"{API}/pullzone/1/purgeCache", method="POST", status_code=204)
        httpx_mock.add_response(url=f"{API}/pullzone/2/purgeCache", method="POST", status_code=401)
        httpx_mock.add_response(url=f"{API}/pullzone/3/purgeCache", method="POST", status_code=204)

        async with _client(logger) as http:
            results = await PullZoneService(http, logger).purge_all([1, 2, 3])

        assert [(result.id, result.status, result.ok) for result in results] == [
            (1, 204, True),
            (2, 401, False),
            (3, 204, True),
        ]

    @pytest.mark.asyncio
    async def test_purge_without_response_reports_zero(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_exception(
            httpx.ConnectError("down"), url=f"{API}/pullzone/4/purgeCache", method="POST",
        )

        async with _client(logger) as http:
            results = await PullZoneService(http, logger).purge_all([4])

        assert results[0].status == 0
        assert not results[0].ok

    @pytest.mark.asyncio
    async def test_purge_cache_failure_raises(
        self, httpx_mock: HTTPXMock, logger: RecordingLogger,
    ) -> None:
        httpx_mock.add_response(url=f"{API}/pullzone/9/purgeCache", method="POST", status_code=404)

        async with _client(logger) as http:
            with pytest.raises(CdnPublishError) as exc_info:
                await PullZoneService(http, logger).purge_cache(9)

        assert exc_info.value.kind is ErrorKind.RESPONSE_NOT_OK
        assert exc_info.value.status_code == 404
