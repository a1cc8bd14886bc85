"""Unit tests for configuration validation."""

import pytest
from pydantic import ValidationError
from asthmacare.app.core.config import Settings


class TestSettingsValidation:
    """Test cases for Settings validation."""

    def test_default_settings(self):
        """Test that default settings are valid."""
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.aqi_scale == "india"
        assert settings.max_upload_size == 10 * 1024 * 1024
        assert 2 <= settings.forecast_days <= 3

    def test_log_level_validation_valid(self):
        """Test log level accepts valid values."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        for level in valid_levels:
            settings = Settings(log_level=level)
            assert settings.log_level == level.upper()

    def test_log_level_validation_case_insensitive(self):
        """Test log level is case-insensitive."""
        settings = Settings(log_level="info")
        assert settings.log_level == "INFO"

        settings = Settings(log_level="DeBuG")
        assert settings.log_level == "DEBUG"

    def test_log_level_validation_invalid(self):
        """Test log level rejects invalid values."""
        with pytest.raises(ValidationError, match="log_level must be one of"):
            Settings(log_level="INVALID")

    def test_aqi_scale_validation(self):
        """Test AQI scale accepts known tables only."""
        assert Settings(aqi_scale="US_EPA").aqi_scale == "us_epa"

        with pytest.raises(ValidationError, match="aqi_scale must be one of"):
            Settings(aqi_scale="metric")

    def test_max_upload_size_positive(self):
        """Test max_upload_size must be positive."""
        with pytest.raises(ValidationError, match="Value must be positive"):
            Settings(max_upload_size=0)

        with pytest.raises(ValidationError, match="Value must be positive"):
            Settings(max_upload_size=-5)

    def test_delays_not_negative(self):
        """Test simulated delays reject negative values but accept zero."""
        assert Settings(analysis_delay_seconds=0).analysis_delay_seconds == 0

        with pytest.raises(ValidationError, match="must not be negative"):
            Settings(air_quality_delay_seconds=-1)

    def test_forecast_days_range(self):
        """Test forecast_days is limited to 2 or 3 days."""
        assert Settings(forecast_days=2).forecast_days == 2

        with pytest.raises(ValidationError, match="forecast_days must be between 2 and 3"):
            Settings(forecast_days=7)

    def test_upload_types_parsing(self):
        """Test upload types are parsed from a comma-separated string."""
        settings = Settings(allowed_upload_types="application/pdf, IMAGE/PNG")
        assert settings.allowed_upload_types_list == ["application/pdf", "image/png"]

    def test_upload_types_required(self):
        """Test at least one upload type must be configured."""
        with pytest.raises(ValidationError, match="at least one MIME type"):
            Settings(allowed_upload_types=" , ")

    def test_cors_origins_parsing(self):
        """Test CORS origins are split and stripped."""
        settings = Settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
