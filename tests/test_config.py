"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from clinicslots.config import AppConfig, DefaultsConfig, SupabaseConfig, load_config
from clinicslots.factory import build_service


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig.default()

        assert config.timezone == "America/Tegucigalpa"
        assert config.defaults.granularity_minutes == 30
        assert config.defaults.slot_duration_minutes == 60
        assert config.cancelled_statuses == ["cancelled", "canceled", "cancelada"]
        assert config.supabase is None

    def test_load_from_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "timezone: America/New_York\n"
            "log_level: debug\n"
            "defaults:\n"
            "  granularity_minutes: 15\n"
            "cancelled_statuses: [' Anulada ', 'anulada', 'CANCELLED']\n"
            "supabase:\n"
            "  url: https://clinic.supabase.co/\n",
            encoding="utf-8",
        )

        config = load_config(config_file)

        assert config.timezone == "America/New_York"
        assert config.log_level == "DEBUG"
        assert config.defaults.granularity_minutes == 15
        assert config.cancelled_statuses == ["anulada", "cancelled"]
        assert config.supabase.url == "https://clinic.supabase.co"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_file)

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("timezone: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_file)

    @pytest.mark.parametrize(
        "data",
        [
            {"timezone": "Nowhere/City"},
            {"log_level": "chatty"},
            {"cancelled_statuses": ["  "]},
            {"defaults": {"granularity_minutes": 3}},
            {"defaults": {"slot_duration_minutes": 10}},
            {"defaults": {"month_duration_minutes": 500}},
            {"supabase": {"url": "clinic.supabase.co"}},
            {"supabase": {"url": "https://clinic.supabase.co", "timeout_seconds": 0}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ValidationError):
            AppConfig(**data)


class TestSupabaseConfig:
    """Tests for SupabaseConfig."""

    def test_service_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("CLINIC_KEY", "secret")
        config = SupabaseConfig(url="https://clinic.supabase.co", service_key_env="CLINIC_KEY")

        assert config.get_service_key() == "secret"

    def test_missing_service_key(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        config = SupabaseConfig(url="https://clinic.supabase.co")

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
            config.get_service_key()


class TestBuildService:
    """Tests for service wiring."""

    def test_mock_service(self):
        config = AppConfig(defaults=DefaultsConfig(granularity_minutes=15))

        service = build_service(config, mock=True)

        assert service.granularity_minutes == 15
        assert service.clinic_timezone == "America/Tegucigalpa"

    def test_supabase_required_without_mock(self):
        with pytest.raises(ValueError, match="supabase"):
            build_service(AppConfig.default())
