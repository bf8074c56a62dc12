"""Geometry preparation for ArcGIS spatial queries.

Converts GeoJSON parcel boundaries into the Esri JSON shapes the feature
service query endpoint accepts, simplifying them first so the request
carries fewer vertices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, Polygon, shape

from firedamage.gis.models import Coordinates

WGS84 = {"wkid": 4326}


class GeometryError(ValueError):
    """A geometry could not be interpreted as a parcel polygon."""


@dataclass(frozen=True)
class QueryGeometry:
    """Esri JSON shapes for a polygon-intersects query."""

    polygon: dict[str, Any]
    envelope: dict[str, Any]


def esri_point(coordinates: Coordinates) -> dict[str, Any]:
    return {
        "x": coordinates.longitude,
        "y": coordinates.latitude,
        "spatialReference": WGS84,
    }


def to_polygon(geometry: dict[str, Any] | None) -> Polygon:
    """Build a shapely Polygon from a GeoJSON mapping.

    A MultiPolygon contributes its first member polygon.
    """
    if not geometry:
        raise GeometryError("Parcel geometry is missing")
    try:
        geom = shape(geometry)
    except (ShapelyError, KeyError, TypeError, ValueError, AttributeError) as exc:
        raise GeometryError(f"Invalid parcel geometry: {exc}") from exc

    if isinstance(geom, MultiPolygon):
        if geom.is_empty:
            raise GeometryError("Parcel geometry is empty")
        geom = geom.geoms[0]
    if not isinstance(geom, Polygon):
        raise GeometryError(f"Expected a Polygon, got {geom.geom_type}")
    if geom.is_empty:
        raise GeometryError("Parcel geometry is empty")
    return geom


def simplify(polygon: Polygon, tolerance: float) -> Polygon:
    """Simplify the exterior ring; ~0.00001 degrees is about 1 m at LA latitude."""
    simplified = Polygon(polygon.exterior).simplify(tolerance, preserve_topology=True)
    if not isinstance(simplified, Polygon) or simplified.is_empty:
        return Polygon(polygon.exterior)
    return simplified


def esri_polygon(polygon: Polygon) -> dict[str, Any]:
    ring = [[x, y] for x, y, *_ in polygon.exterior.coords]
    return {"rings": [ring], "spatialReference": WGS84}


def esri_envelope(polygon: Polygon) -> dict[str, Any]:
    xmin, ymin, xmax, ymax = polygon.bounds
    return {
        "xmin": xmin,
        "ymin": ymin,
        "xmax": xmax,
        "ymax": ymax,
        "spatialReference": WGS84,
    }


def prepare_query_geometry(geometry: dict[str, Any] | None, tolerance: float) -> QueryGeometry:
    """Simplify a parcel boundary and derive its bounding box.

    Raises:
        GeometryError: If the geometry is missing or not polygonal.
    """
    simplified = simplify(to_polygon(geometry), tolerance)
    return QueryGeometry(polygon=esri_polygon(simplified), envelope=esri_envelope(simplified))
