"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

_ARCGIS_HOST = "https://services.arcgis.com/RmCCgQtiZLDCtblq/arcgis/rest/services"
_DINS_HOST = "https://services1.arcgis.com/jUJYIo9tSA7EHvfZ/arcgis/rest/services"


class ArcGISConfig(BaseSettings):
    """ArcGIS feature service endpoints and request budgets."""

    model_config = {"env_prefix": "FIREDAMAGE_ARCGIS_"}

    geocode_url: str = (
        "https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer/findAddressCandidates"
    )
    evacuation_zones_url: str = f"{_ARCGIS_HOST}/Maximum_Extent_Evacuation_Zones/FeatureServer/0/query"
    palisades_parcels_url: str = f"{_ARCGIS_HOST}/Parcels_PalisadeFire/FeatureServer/0/query"
    eaton_parcels_url: str = f"{_ARCGIS_HOST}/Parcels_EatonFire/FeatureServer/0/query"
    palisades_damage_url: str = f"{_DINS_HOST}/DINS_2025_Palisades_Public_View/FeatureServer/0/query"
    eaton_damage_url: str = f"{_DINS_HOST}/DINS_2025_Eaton_Public_View/FeatureServer/0/query"

    primary_incident: str = "PALISADES"

    timeout_seconds: float = 30.0
    damage_query_timeout_seconds: float = 10.0
    attachment_timeout_seconds: float = 5.0
    health_timeout_seconds: float = 5.0

    max_damage_records: int = 10
    attachment_batch_size: int = 5
    attachment_concurrency: int | None = None

    simplify_tolerance: float = 0.00001
    geometry_precision: int = 5


class CacheConfig(BaseSettings):
    """Assessment cache configuration."""

    model_config = {"env_prefix": "FIREDAMAGE_CACHE_"}

    ttl_seconds: float = 24 * 60 * 60
    key_precision: int = 5


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "FIREDAMAGE_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    service_name: str = "fire-damage-assessment"
    version: str = "0.1.0"

    arcgis: ArcGISConfig = Field(default_factory=ArcGISConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
