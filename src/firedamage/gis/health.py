"""Health check for the ArcGIS geocoding service."""

from __future__ import annotations

import time

from firedamage.core.types import HealthStatus
from firedamage.gis.arcgis import ArcGISService


async def check_arcgis_health(service: ArcGISService) -> HealthStatus:
    """Probe the geocoder and return a HealthStatus."""
    start = time.monotonic()
    try:
        available = await service.is_available()
    except Exception as exc:
        return HealthStatus(
            service="arcgis:geocoder",
            healthy=False,
            details={"error": str(exc)},
        )
    latency_ms = (time.monotonic() - start) * 1000
    return HealthStatus(
        service="arcgis:geocoder",
        healthy=available,
        latency_ms=round(latency_ms, 2),
        details={"geocode_url": service.config.geocode_url},
    )
