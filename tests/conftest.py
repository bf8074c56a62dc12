"""Shared test fixtures and helpers."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from firedamage.cache.store import AssessmentCache
from firedamage.core.config import ArcGISConfig, CacheConfig
from firedamage.gis.arcgis import ArcGISService
from firedamage.assessment.pipeline import AssessmentPipeline

GEOCODE_URL = "https://geocode.test/GeocodeServer/findAddressCandidates"
ZONES_URL = "https://zones.test/Zones/FeatureServer/0/query"
PALISADES_PARCELS_URL = "https://parcels.test/Palisades/FeatureServer/0/query"
EATON_PARCELS_URL = "https://parcels.test/Eaton/FeatureServer/0/query"
PALISADES_DAMAGE_URL = "https://dins.test/Palisades/FeatureServer/0/query"
EATON_DAMAGE_URL = "https://dins.test/Eaton/FeatureServer/0/query"

PARCEL_GEOMETRY = {
    "type": "Polygon",
    "coordinates": [[
        [-118.1400, 34.1900],
        [-118.1395, 34.1900],
        [-118.1395, 34.1905],
        [-118.1400, 34.1905],
        [-118.1400, 34.1900],
    ]],
}


class FakeTransport:
    """In-memory Transport that answers by URL and records every call.

    Routes map a URL to a JSON body, an exception instance to raise, or a
    callable ``(params) -> body`` that may itself raise.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[tuple[str, dict[str, Any] | None, float | None]] = []
        self.closed = False

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        self.calls.append((url, params, timeout))
        if url not in self.routes:
            raise AssertionError(f"Unexpected request to {url}")
        route = self.routes[url]
        if isinstance(route, BaseException):
            raise route
        if callable(route):
            return route(params)
        return route

    async def aclose(self) -> None:
        self.closed = True

    def urls(self) -> list[str]:
        return [url for url, _, _ in self.calls]

    def calls_to(self, url: str) -> list[tuple[str, dict[str, Any] | None, float | None]]:
        return [call for call in self.calls if call[0] == url]


def arcgis_config(**overrides: Any) -> ArcGISConfig:
    defaults: dict[str, Any] = {
        "geocode_url": GEOCODE_URL,
        "evacuation_zones_url": ZONES_URL,
        "palisades_parcels_url": PALISADES_PARCELS_URL,
        "eaton_parcels_url": EATON_PARCELS_URL,
        "palisades_damage_url": PALISADES_DAMAGE_URL,
        "eaton_damage_url": EATON_DAMAGE_URL,
    }
    defaults.update(overrides)
    return ArcGISConfig(**defaults)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def geocode_body(x: float = -118.13975, y: float = 34.19025, address: str = "2271 Lake Ave, Altadena, California, 91001") -> dict:
    return {"candidates": [{"address": address, "location": {"x": x, "y": y}, "score": 100}]}


def zone_body(incident: str = "EATON", zone_id: str = "LAC-E123") -> dict:
    return {
        "type": "FeatureCollection",
        "features": [{
            "type": "Feature",
            "geometry": None,
            "properties": {
                "incident_name": incident,
                "zoneId": zone_id,
                "most_extreme_status": "Evacuation Order",
                "Shape__Area": 1520.5,
                "Shape__Length": 180.25,
            },
        }],
    }


def parcel_body(apn: str = "5841-012-034", geometry: dict | None = PARCEL_GEOMETRY) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [{
            "type": "Feature",
            "geometry": geometry,
            "properties": {"APN": apn, "Shape__Area": 2450.0, "Shape__Length": 210.0},
        }],
    }


def damage_body(*records: tuple[int, str, str]) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [-118.1398, 34.1902]},
                "properties": {"OBJECTID": oid, "DAMAGE": damage, "STRUCTURETYPE": structure},
            }
            for oid, damage, structure in records
        ],
    }


def attachments_body(object_id: int, count: int = 1) -> dict:
    return {
        "attachmentInfos": [
            {
                "id": object_id * 10 + i,
                "name": f"photo_{object_id}_{i}.jpg",
                "contentType": "image/jpeg",
                "size": 204800 + i,
            }
            for i in range(count)
        ]
    }


def attachments_url(damage_url: str, object_id: int) -> str:
    return f"{damage_url.removesuffix('/query')}/{object_id}/attachments"


def happy_routes(
    *records: tuple[int, str, str],
    damage_url: str = EATON_DAMAGE_URL,
) -> dict[str, Any]:
    routes: dict[str, Any] = {
        GEOCODE_URL: geocode_body(),
        ZONES_URL: zone_body(),
        EATON_PARCELS_URL: parcel_body(),
        PALISADES_PARCELS_URL: parcel_body(),
        damage_url: damage_body(*records),
    }
    for oid, _, _ in records:
        routes[attachments_url(damage_url, oid)] = attachments_body(oid)
    return routes


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> AssessmentCache:
    return AssessmentCache(CacheConfig(), clock=clock)


@pytest.fixture
def make_pipeline(cache: AssessmentCache) -> Callable[..., tuple[AssessmentPipeline, FakeTransport]]:
    def _make(routes: dict[str, Any], **config_overrides: Any) -> tuple[AssessmentPipeline, FakeTransport]:
        transport = FakeTransport(routes)
        service = ArcGISService(arcgis_config(**config_overrides), transport)
        return AssessmentPipeline(service, cache), transport

    return _make
