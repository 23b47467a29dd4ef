"""Pull-zone (edge cache) service.

Lists the account's pull zones and purges their caches through an
injected :class:`~cdn_publish.core.protocols.Transport` whose base URL
is the account API root.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from urllib.parse import urlencode

from cdn_publish.core.models import PullZoneMeta, PurgeResult
from cdn_publish.core.protocols import Logger, Transport
from cdn_publish.exceptions import CdnPublishError, ErrorKind


class PullZoneService:
    """Account-level pull-zone operations."""

    def __init__(self, transport: Transport, logger: Logger) -> None:
        self._transport: Transport = transport
        self._logger: Logger = logger

    async def list(self, search: str | None = None) -> list[PullZoneMeta]:
        """Return every pull zone, optionally filtered by *search*.

        An account without pull zones yields ``[]``.
        """
        url = "/pullzone"
        if search:
            url = f"{url}?{urlencode({'search': search})}"
        response = await self._transport.get(
            url,
            headers={"Accept": "application/json"},
        )
        if not isinstance(response.data, list):
            return []
        return [PullZoneMeta.from_api(raw) for raw in response.data if isinstance(raw, dict)]

    async def purge_cache(self, zone_id: int) -> PurgeResult:
        """Purge one zone.

        Raises
        ------
        CdnPublishError
            ``RESPONSE_NOT_OK`` when the API refuses; its
            ``status_code`` carries the HTTP status.
        """
        response = await self._transport.post(
            f"/pullzone/{zone_id}/purgeCache",
            None,
            headers={"Accept": "application/json"},
        )
        return PurgeResult(id=zone_id, status=response.status_code)

    async def purge_all(self, zone_ids: Sequence[int]) -> list[PurgeResult]:
        """Purge every zone in *zone_ids* concurrently.

        Failures do not stop the other purges; they are reported with
        the HTTP status they got, or ``0`` when no response arrived.
        """
        outcomes = await asyncio.gather(
            *(self.purge_cache(zone_id) for zone_id in zone_ids),
            return_exceptions=True,
        )

        results: list[PurgeResult] = []
        for zone_id, outcome in zip(zone_ids, outcomes):
            if isinstance(outcome, PurgeResult):
                results.append(outcome)
            elif isinstance(outcome, CdnPublishError):
                self._logger.debug(f"Purge of zone {zone_id} failed: {outcome}")
                results.append(PurgeResult(id=zone_id, status=outcome.status_code or 0))
            else:
                raise CdnPublishError(
                    ErrorKind.RESPONSE_NOT_OK,
                    f"Unexpected error while purging zone {zone_id}: {outcome}",
                    cause=outcome,
                ) from outcome
        return results
