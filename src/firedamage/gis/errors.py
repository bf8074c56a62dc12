"""Failure kinds raised by the assessment stages.

Every kind carries a stable numeric ``code`` so callers can tell them apart
without parsing messages.
"""

from __future__ import annotations

from typing import Any


class AssessmentError(Exception):
    """Base exception for all assessment failures."""

    code: int = 1000
    kind: str = "AssessmentError"
    http_status: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "kind": self.kind, "message": self.message}


class InvalidAddress(AssessmentError):
    """The geocoder returned no candidates."""

    code = 1001
    kind = "InvalidAddress"
    http_status = 422

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No geocoding candidates found for '{address}'", address=address)


class GeocodingError(AssessmentError):
    code = 1002
    kind = "GeocodingError"
    http_status = 502


class NoEvacuationZone(AssessmentError):
    """The point lies outside every tracked incident zone."""

    code = 1003
    kind = "NoEvacuationZone"
    http_status = 404

    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"No evacuation zone contains ({latitude}, {longitude})",
            latitude=latitude,
            longitude=longitude,
        )


class ZoneQueryError(AssessmentError):
    code = 1004
    kind = "ZoneQueryError"
    http_status = 502


class NoParcel(AssessmentError):
    """The point lies outside every parcel of the selected incident."""

    code = 1005
    kind = "NoParcel"
    http_status = 404

    def __init__(self, latitude: float, longitude: float, incident_name: str) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.incident_name = incident_name
        super().__init__(
            f"No {incident_name} parcel contains ({latitude}, {longitude})",
            latitude=latitude,
            longitude=longitude,
            incident_name=incident_name,
        )


class ParcelQueryError(AssessmentError):
    code = 1006
    kind = "ParcelQueryError"
    http_status = 502


class RequestTimedOut(AssessmentError):
    """The damage assessment spatial query exceeded its deadline."""

    code = 1007
    kind = "RequestTimedOut"
    http_status = 504


class DamageQueryError(AssessmentError):
    code = 1008
    kind = "DamageQueryError"
    http_status = 502


ERROR_KINDS: tuple[type[AssessmentError], ...] = (
    InvalidAddress,
    GeocodingError,
    NoEvacuationZone,
    ZoneQueryError,
    NoParcel,
    ParcelQueryError,
    RequestTimedOut,
    DamageQueryError,
)
