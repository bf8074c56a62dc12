"""ArcGIS REST lookups for the assessment stages.

Each public coroutine is one stage: geocode, evacuation zone, parcel and
damage records. Stages raise the kinds in ``firedamage.gis.errors`` and
never retry.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from firedamage.core.config import ArcGISConfig
from firedamage.gis.errors import (
    DamageQueryError,
    GeocodingError,
    InvalidAddress,
    NoEvacuationZone,
    NoParcel,
    ParcelQueryError,
    RequestTimedOut,
    ZoneQueryError,
)
from firedamage.gis.geometry import GeometryError, esri_point, prepare_query_geometry, to_polygon
from firedamage.gis.models import (
    Address,
    Attachment,
    Coordinates,
    DamageAssessment,
    DamageLevel,
    EvacuationZone,
    GeocodeResult,
    Parcel,
    format_single_line,
)
from firedamage.gis.transport import (
    Transport,
    TransportError,
    TransportStatusError,
    TransportTimeout,
)

logger = logging.getLogger(__name__)

_ZONE_FIELDS = "incident_name,zoneId,most_extreme_status,Shape__Area,Shape__Length"
_PARCEL_FIELDS = "APN,Shape__Area,Shape__Length"
_DAMAGE_FIELDS = "OBJECTID,DAMAGE,STRUCTURETYPE"


class MalformedResponse(ValueError):
    """A response body did not have the expected shape."""


@dataclass(frozen=True)
class IncidentDatasets:
    """Parcel and damage feature layers for one fire incident."""

    incident: str
    parcels_url: str
    damage_url: str


def layer_base_url(query_url: str) -> str:
    """Strip the trailing ``/query`` operation from a feature layer URL."""
    return query_url.rstrip("/").removesuffix("/query")


def _features(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        raise MalformedResponse("Response body is not a JSON object")
    if "error" in data:
        raise MalformedResponse(f"Service error: {data['error']}")
    features = data.get("features")
    if features is None:
        return []
    if not isinstance(features, list):
        raise MalformedResponse("'features' is not a list")
    if not all(isinstance(feature, dict) for feature in features):
        raise MalformedResponse("'features' holds a non-object entry")
    return features


def _properties(feature: dict[str, Any]) -> dict[str, Any]:
    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        raise TypeError(f"feature properties is {type(props).__name__}, not an object")
    return props


def _object_id(value: Any) -> int | None:
    """Coerce an OBJECTID to int; JSON may carry it as a float or string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _damage_record(feature: dict[str, Any]) -> DamageAssessment:
    props = _properties(feature)
    return DamageAssessment(
        object_id=_object_id(props.get("OBJECTID")),
        damage_level=DamageLevel.parse(props.get("DAMAGE")),
        structure_type=props.get("STRUCTURETYPE"),
    )


def _service_error_code(data: Any) -> int | None:
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("code")
    return None


def _point_query(coordinates: Coordinates, out_fields: str) -> dict[str, str]:
    return {
        "where": "1=1",
        "outFields": out_fields,
        "f": "geojson",
        "geometry": json.dumps(esri_point(coordinates)),
        "geometryType": "esriGeometryPoint",
        "inSR": "4326",
        "spatialRel": "esriSpatialRelIntersects",
    }


class ArcGISService:
    """Runs the geocode, zone, parcel and damage lookups against ArcGIS.

    Args:
        config: Endpoint URLs, timeouts and fan-out limits.
        transport: Transport used for every request.
    """

    def __init__(self, config: ArcGISConfig, transport: Transport) -> None:
        self.config = config
        self._transport = transport

    # -- incident routing ----------------------------------------------------

    def datasets_for(self, incident_name: str) -> IncidentDatasets:
        """Select the parcel/damage layers for an incident.

        Only two incidents exist: a name matching ``primary_incident``
        selects Palisades, everything else selects Eaton.
        """
        if (incident_name or "").strip().upper() == self.config.primary_incident.upper():
            return IncidentDatasets(
                incident=self.config.primary_incident,
                parcels_url=self.config.palisades_parcels_url,
                damage_url=self.config.palisades_damage_url,
            )
        return IncidentDatasets(
            incident="EATON",
            parcels_url=self.config.eaton_parcels_url,
            damage_url=self.config.eaton_damage_url,
        )

    # -- stage A: geocode ----------------------------------------------------

    async def geocode_address(self, address: Address) -> GeocodeResult:
        single_line = format_single_line(address)
        params = {
            "SingleLine": single_line,
            "f": "json",
            "outFields": "location,address",
        }
        try:
            data = await self._transport.get_json(self.config.geocode_url, params)
        except TransportError as exc:
            logger.error("Geocoding request failed for %r: %s", single_line, exc)
            raise GeocodingError(f"Geocoding failed: {exc}", address=single_line) from exc

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            if isinstance(data, dict) and "error" not in data:
                logger.info("No geocoding candidates for %r", single_line)
                raise InvalidAddress(single_line)
            logger.error("Malformed geocoder response for %r: %r", single_line, data)
            raise GeocodingError("Malformed geocoder response", address=single_line)

        candidate = candidates[0]
        try:
            location = candidate["location"]
            coordinates = Coordinates(latitude=float(location["y"]), longitude=float(location["x"]))
            normalized = str(candidate.get("address") or single_line)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Geocoder candidate missing location for %r: %r", single_line, candidate)
            raise GeocodingError("Malformed geocoder candidate", address=single_line) from exc

        logger.debug("Geocoded %r to %s", single_line, coordinates)
        return GeocodeResult(coordinates=coordinates, address=normalized)

    # -- stage B: evacuation zone --------------------------------------------

    async def find_evacuation_zone(self, coordinates: Coordinates) -> EvacuationZone:
        """Return the first zone polygon that contains the point.

        Overlapping zones are resolved by the service's response order.
        """
        params = _point_query(coordinates, _ZONE_FIELDS)
        try:
            data = await self._transport.get_json(self.config.evacuation_zones_url, params)
            features = _features(data)
        except (TransportError, MalformedResponse) as exc:
            logger.error("Error querying evacuation zones at %s: %s", coordinates, exc)
            raise ZoneQueryError(f"Error querying evacuation zones: {exc}") from exc

        if not features:
            raise NoEvacuationZone(coordinates.latitude, coordinates.longitude)
        if len(features) > 1:
            logger.debug("%d overlapping zones at %s, using the first", len(features), coordinates)

        props = features[0].get("properties")
        try:
            props = _properties(features[0])
            return EvacuationZone(
                incident_name=str(props["incident_name"]),
                zone_id=str(props["zoneId"]),
                most_extreme_status=str(props["most_extreme_status"]),
                shape_area=props.get("Shape__Area"),
                shape_length=props.get("Shape__Length"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Evacuation zone feature missing attributes: %r", props)
            raise ZoneQueryError("Malformed evacuation zone feature") from exc

    # -- stage C: parcel -----------------------------------------------------

    async def find_parcel(self, coordinates: Coordinates, incident_name: str) -> Parcel:
        datasets = self.datasets_for(incident_name)
        params = _point_query(coordinates, _PARCEL_FIELDS)
        logger.debug("Finding %s parcel at %s", datasets.incident, coordinates)
        try:
            data = await self._transport.get_json(datasets.parcels_url, params)
            features = _features(data)
        except (TransportError, MalformedResponse) as exc:
            logger.error("Error querying parcels at %s: %s", coordinates, exc)
            raise ParcelQueryError(f"Error querying parcel information: {exc}") from exc

        if not features:
            raise NoParcel(coordinates.latitude, coordinates.longitude, datasets.incident)

        feature = features[0]
        props = feature.get("properties")
        try:
            props = _properties(feature)
            polygon = to_polygon(feature.get("geometry"))
            rings = (polygon.exterior, *polygon.interiors)
            return Parcel(
                apn=str(props["APN"]),
                shape_area=props.get("Shape__Area"),
                shape_length=props.get("Shape__Length"),
                geometry={
                    "type": "Polygon",
                    "coordinates": [[list(pt) for pt in ring.coords] for ring in rings],
                },
            )
        except GeometryError as exc:
            logger.error("Parcel feature has unusable geometry: %s", exc)
            raise ParcelQueryError(str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Parcel feature missing attributes: %r", props)
            raise ParcelQueryError("Malformed parcel feature") from exc

    # -- stage D: damage records ---------------------------------------------

    async def find_damage_assessments(
        self,
        parcel: Parcel,
        incident_name: str,
    ) -> list[DamageAssessment]:
        """Find the DINS records intersecting a parcel, with their photos.

        A 404 from the query means no records. Attachment failures only
        empty that record's attachment list.
        """
        datasets = self.datasets_for(incident_name)
        try:
            query_geometry = prepare_query_geometry(parcel.geometry, self.config.simplify_tolerance)
        except GeometryError as exc:
            logger.error("Cannot query damage assessments for parcel %s: %s", parcel.apn, exc)
            raise DamageQueryError(f"Error querying damage assessments: {exc}") from exc

        params = {
            "where": "1=1",
            "outFields": _DAMAGE_FIELDS,
            "f": "geojson",
            "geometry": json.dumps(query_geometry.polygon),
            "geometryType": "esriGeometryPolygon",
            "inSR": "4326",
            "spatialRel": "esriSpatialRelIntersects",
            "resultRecordCount": str(self.config.max_damage_records),
            "geometryPrecision": str(self.config.geometry_precision),
            "returnGeometry": "true",
            "spatialFilter": json.dumps(query_geometry.envelope),
        }
        timeout = self.config.damage_query_timeout_seconds
        try:
            data = await self._transport.get_json(datasets.damage_url, params, timeout=timeout)
        except TransportTimeout as exc:
            logger.error("Damage assessment request timed out after %ss", timeout)
            raise RequestTimedOut(f"Damage assessment request timed out after {timeout}s") from exc
        except TransportStatusError as exc:
            if exc.status_code == 404:
                logger.info("No damage assessments found (404) for parcel %s", parcel.apn)
                return []
            logger.error("Damage assessment query failed: %s", exc)
            raise DamageQueryError(f"Error querying damage assessments: {exc}") from exc
        except TransportError as exc:
            logger.error("Damage assessment query failed: %s", exc)
            raise DamageQueryError(f"Error querying damage assessments: {exc}") from exc

        if _service_error_code(data) == 404:
            logger.info("No damage assessments found (404) for parcel %s", parcel.apn)
            return []
        try:
            features = _features(data)
        except MalformedResponse as exc:
            logger.error("Malformed damage assessment response: %s", exc)
            raise DamageQueryError(f"Error querying damage assessments: {exc}") from exc

        try:
            records = [_damage_record(feature) for feature in features[: self.config.max_damage_records]]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Malformed damage assessment record: %s", exc)
            raise DamageQueryError(f"Error querying damage assessments: {exc}") from exc

        logger.debug("Found %d damage records for parcel %s", len(records), parcel.apn)
        return await self._with_attachments(records, datasets.damage_url)

    async def _with_attachments(
        self,
        records: list[DamageAssessment],
        damage_url: str,
    ) -> list[DamageAssessment]:
        # All batches start together; the semaphore is the only real limit.
        limit = self.config.attachment_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None
        size = max(1, self.config.attachment_batch_size)
        batches = [records[i:i + size] for i in range(0, len(records), size)]

        results = await asyncio.gather(
            *(self._resolve_batch(batch, damage_url, semaphore) for batch in batches)
        )
        return [record for batch in results for record in batch]

    async def _resolve_batch(
        self,
        batch: list[DamageAssessment],
        damage_url: str,
        semaphore: asyncio.Semaphore | None,
    ) -> list[DamageAssessment]:
        return list(
            await asyncio.gather(
                *(self._resolve_record(record, damage_url, semaphore) for record in batch)
            )
        )

    async def _resolve_record(
        self,
        record: DamageAssessment,
        damage_url: str,
        semaphore: asyncio.Semaphore | None,
    ) -> DamageAssessment:
        if record.object_id is None:
            logger.warning("Damage record has no usable OBJECTID, skipping attachments")
            return record

        if semaphore is None:
            attachments = await self.get_attachments(damage_url, record.object_id)
        else:
            async with semaphore:
                attachments = await self.get_attachments(damage_url, record.object_id)

        return record.model_copy(update={"attachments": tuple(attachments)})

    async def get_attachments(self, damage_url: str, object_id: int) -> list[Attachment]:
        """List a record's photographs. Never raises; failures yield ``[]``."""
        attachments_url = f"{layer_base_url(damage_url)}/{object_id}/attachments"
        timeout = self.config.attachment_timeout_seconds
        try:
            data = await self._transport.get_json(attachments_url, {"f": "json"}, timeout=timeout)
        except TransportTimeout:
            logger.warning("Attachment info request timed out after %ss (OBJECTID %s)", timeout, object_id)
            return []
        except TransportError as exc:
            logger.warning("Error fetching attachments for OBJECTID %s: %s", object_id, exc)
            return []

        infos = data.get("attachmentInfos") if isinstance(data, dict) else None
        if not infos:
            return []
        try:
            return [
                Attachment(
                    url=f"{attachments_url}/{info['id']}",
                    name=info["name"],
                    content_type=info["contentType"],
                    size=info["size"],
                )
                for info in infos
            ]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed attachment info for OBJECTID %s: %s", object_id, exc)
            return []

    # -- health --------------------------------------------------------------

    async def is_available(self) -> bool:
        """Return True if the geocoding service answers."""
        base = self.config.geocode_url.rsplit("/", 1)[0]
        try:
            await self._transport.get_json(base, {"f": "json"}, timeout=self.config.health_timeout_seconds)
            return True
        except TransportError:
            return False

    async def close(self) -> None:
        await self._transport.aclose()
