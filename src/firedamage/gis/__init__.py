"""ArcGIS lookups, geometry preparation and the assessment data model."""

from firedamage.gis.arcgis import ArcGISService, IncidentDatasets
from firedamage.gis.errors import (
    AssessmentError,
    DamageQueryError,
    GeocodingError,
    InvalidAddress,
    NoEvacuationZone,
    NoParcel,
    ParcelQueryError,
    RequestTimedOut,
    ZoneQueryError,
)
from firedamage.gis.models import (
    Address,
    Assessment,
    Attachment,
    Coordinates,
    DamageAssessment,
    DamageLevel,
    EvacuationZone,
    Parcel,
    StructuredAddress,
)
from firedamage.gis.transport import HttpxTransport, Transport

__all__ = [
    "Address",
    "ArcGISService",
    "Assessment",
    "AssessmentError",
    "Attachment",
    "Coordinates",
    "DamageAssessment",
    "DamageLevel",
    "DamageQueryError",
    "EvacuationZone",
    "GeocodingError",
    "HttpxTransport",
    "IncidentDatasets",
    "InvalidAddress",
    "NoEvacuationZone",
    "NoParcel",
    "Parcel",
    "ParcelQueryError",
    "RequestTimedOut",
    "StructuredAddress",
    "Transport",
    "ZoneQueryError",
]
