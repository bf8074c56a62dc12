"""GIS data models for fire damage assessments.

Field aliases follow the ArcGIS attribute names (``APN``, ``Shape__Area``,
``OBJECTID`` ...) so serialised assessments keep the upstream vocabulary.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Coordinates(_Frozen):
    """WGS84 point in decimal degrees."""

    latitude: float
    longitude: float


class StructuredAddress(_Frozen):
    """Address split into optional parts."""

    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


Address = Union[str, StructuredAddress]


def format_single_line(address: Address) -> str:
    """Render an address the way the geocoder's ``SingleLine`` parameter expects."""
    if isinstance(address, str):
        return address
    return (
        f"{address.street or ''}, {address.city or ''}, "
        f"{address.state or ''} {address.zip or ''}"
    ).strip()


class GeocodeResult(_Frozen):
    coordinates: Coordinates
    address: str


class EvacuationZone(_Frozen):
    """Most severe evacuation designation a zone reached during an incident."""

    incident_name: str
    zone_id: str = Field(alias="zoneId")
    most_extreme_status: str
    shape_area: float | None = Field(default=None, alias="Shape__Area")
    shape_length: float | None = Field(default=None, alias="Shape__Length")


class Parcel(_Frozen):
    """Tax parcel with its boundary as a GeoJSON Polygon mapping."""

    apn: str = Field(alias="APN")
    shape_area: float | None = Field(default=None, alias="Shape__Area")
    shape_length: float | None = Field(default=None, alias="Shape__Length")
    geometry: dict[str, Any]


class DamageLevel(StrEnum):
    """CAL FIRE DINS damage categories."""

    DESTROYED = "Destroyed (>50%)"
    MAJOR = "Major (26-50%)"
    MINOR = "Minor (10-25%)"
    AFFECTED = "Affected (1-9%)"
    INACCESSIBLE = "Inaccessible"
    NO_DAMAGE = "No Damage"

    @classmethod
    def parse(cls, raw: Any) -> DamageLevel | str:
        """Map an upstream DAMAGE value onto the enum.

        Matches the exact label first, then the leading keyword
        (``"Destroyed"`` for ``"Destroyed (>50%)"``). Unrecognised values
        are returned unchanged as strings.
        """
        text = "" if raw is None else str(raw).strip()
        for level in cls:
            if text.lower() == level.value.lower():
                return level
        keyword = text.split("(")[0].strip().lower()
        for level in cls:
            if keyword and level.value.split("(")[0].strip().lower() == keyword:
                return level
        return text


class Attachment(_Frozen):
    """Publicly fetchable inspection photograph."""

    url: str
    name: str
    content_type: str = Field(alias="contentType")
    size: int


class DamageAssessment(_Frozen):
    """One DINS inspection record for one structure."""

    object_id: int | None = Field(default=None, alias="OBJECTID")
    damage_level: DamageLevel | str
    structure_type: str | None = None
    attachments: tuple[Attachment, ...] = ()


class Assessment(_Frozen):
    """Aggregate fire damage report for one address.

    ``parcel`` is None when the point fell outside every parcel dataset.
    An empty ``damage_assessments`` means either no damage was reported or
    the property was not inspected; the upstream data does not distinguish.
    """

    coordinates: Coordinates
    address: str
    evacuation_zone: EvacuationZone = Field(alias="evacuationZone")
    parcel: Parcel | None = None
    damage_assessments: tuple[DamageAssessment, ...] = Field(
        default=(), alias="damageAssessments"
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict using upstream attribute names."""
        return self.model_dump(mode="json", by_alias=True)
