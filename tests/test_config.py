"""Tests for settings loading."""

from __future__ import annotations

from firedamage.core.config import ArcGISConfig, CacheConfig, Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.arcgis.primary_incident == "PALISADES"
        assert settings.arcgis.damage_query_timeout_seconds == 10.0
        assert settings.arcgis.attachment_timeout_seconds == 5.0
        assert settings.arcgis.health_timeout_seconds == 5.0
        assert settings.arcgis.max_damage_records == 10
        assert settings.arcgis.attachment_batch_size == 5
        assert settings.arcgis.attachment_concurrency is None
        assert settings.cache.ttl_seconds == 24 * 60 * 60
        assert settings.cache.key_precision == 5

    def test_production_endpoints(self):
        config = ArcGISConfig()
        assert config.geocode_url.endswith("/GeocodeServer/findAddressCandidates")
        assert "DINS_2025_Palisades_Public_View" in config.palisades_damage_url
        assert "DINS_2025_Eaton_Public_View" in config.eaton_damage_url
        assert config.eaton_parcels_url.endswith("/query")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FIREDAMAGE_ARCGIS_ATTACHMENT_CONCURRENCY", "4")
        monkeypatch.setenv("FIREDAMAGE_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("FIREDAMAGE_LOG_LEVEL", "DEBUG")

        assert ArcGISConfig().attachment_concurrency == 4
        assert CacheConfig().ttl_seconds == 60
        assert Settings().log_level == "DEBUG"
