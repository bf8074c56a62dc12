"""High-level fire damage assessment pipeline.

Chains geocode -> evacuation zone -> parcel -> damage records into one
Assessment, memoised per rounded coordinate in an AssessmentCache.
"""

from __future__ import annotations

import logging

from firedamage.assessment.progress import ProgressNotifier, ProgressSink
from firedamage.cache.store import AssessmentCache
from firedamage.core.config import Settings
from firedamage.gis.arcgis import ArcGISService
from firedamage.gis.models import Address, Assessment, Coordinates, format_single_line
from firedamage.gis.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)


def cache_key(coordinates: Coordinates, precision: int = 5) -> str:
    """Fingerprint a point by rounding both axes (5 places is ~1.1 m).

    Near-identical geocoding results for one address share a key while
    neighbouring parcels stay distinct.
    """
    lat = round(coordinates.latitude, precision) + 0.0
    lng = round(coordinates.longitude, precision) + 0.0
    return f"assessment_{lat:.{precision}f}_{lng:.{precision}f}"


class AssessmentPipeline:
    """Resolve an address into a complete, cached Assessment.

    Args:
        service: Stage implementations against ArcGIS.
        cache: Shared cache; its lifetime is owned by the caller.
        key_precision: Decimal places used for the cache fingerprint.
    """

    def __init__(
        self,
        service: ArcGISService,
        cache: AssessmentCache,
        key_precision: int = 5,
    ) -> None:
        self.service = service
        self.cache = cache
        self.key_precision = key_precision

    async def assess(
        self,
        address: Address,
        progress: ProgressSink | None = None,
    ) -> Assessment:
        """Run every stage for *address*, or return the cached result.

        Stages run strictly in order and the first hard failure aborts the
        run; nothing is cached unless every stage succeeded.

        Raises:
            AssessmentError: One of the kinds in ``firedamage.gis.errors``.
        """
        notifier = ProgressNotifier(progress)
        logger.info("Starting fire damage assessment for %r", format_single_line(address))
        await notifier.notify(0, "Starting fire damage assessment...")

        geocoded = await self.service.geocode_address(address)
        await notifier.notify(25, "Address geocoding completed...")

        key = cache_key(geocoded.coordinates, self.key_precision)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            await notifier.notify(100, "Returning fire damage assessment...")
            return cached

        zone = await self.service.find_evacuation_zone(geocoded.coordinates)
        await notifier.notify(50, "Evacuation zone identified...")

        parcel = await self.service.find_parcel(geocoded.coordinates, zone.incident_name)
        await notifier.notify(75, "Parcel information retrieved...")

        damage = await self.service.find_damage_assessments(parcel, zone.incident_name)

        assessment = Assessment(
            coordinates=geocoded.coordinates,
            address=geocoded.address,
            evacuation_zone=zone,
            parcel=parcel,
            damage_assessments=tuple(damage),
        )
        self.cache.set(key, assessment)
        logger.info(
            "Assessment complete for %r: %s zone %s, APN %s, %d damage records",
            geocoded.address, zone.incident_name, zone.zone_id, parcel.apn, len(damage),
        )
        await notifier.notify(100, "Assessment complete...")
        return assessment

    async def close(self) -> None:
        """Release the underlying HTTP connections."""
        await self.service.close()


def create_pipeline(
    settings: Settings,
    transport: Transport | None = None,
    cache: AssessmentCache | None = None,
) -> AssessmentPipeline:
    """Factory function to build a fully-wired AssessmentPipeline from settings.

    Args:
        settings: Application settings.
        transport: Optional pre-built Transport. Defaults to an
            HttpxTransport using ``settings.arcgis.timeout_seconds``.
        cache: Optional shared cache. A new one is created otherwise.

    Returns:
        A ready-to-use AssessmentPipeline instance.
    """
    if transport is None:
        transport = HttpxTransport(timeout_seconds=settings.arcgis.timeout_seconds)
    if cache is None:
        cache = AssessmentCache(settings.cache)

    service = ArcGISService(settings.arcgis, transport)
    return AssessmentPipeline(service, cache, key_precision=settings.cache.key_precision)
