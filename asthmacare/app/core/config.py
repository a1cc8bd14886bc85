"""Application configuration."""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./asthmacare.db",
        description="Database connection URL"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:5174,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Security
    secret_key: str = Field(
        default="change-this-to-a-random-secret-key-in-production",
        description="Secret key for JWT token generation"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=12, description="JWT token expiration in hours")

    # Object storage
    storage_dir: str = Field(
        default="./storage",
        description="Root directory of the local bucket store"
    )
    storage_public_url: str = Field(
        default="/storage",
        description="URL prefix under which stored objects are publicly served"
    )
    reports_bucket: str = Field(default="reports", description="Bucket for uploaded reports")

    # Uploads
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum size of a single uploaded report in bytes (10MB)"
    )
    allowed_upload_types: str = Field(
        default="application/pdf,image/jpeg,image/jpg,image/png",
        description="Comma-separated list of accepted report MIME types"
    )

    @property
    def allowed_upload_types_list(self) -> list[str]:
        """Parse accepted MIME types from comma-separated string."""
        return [t.strip().lower() for t in self.allowed_upload_types.split(",") if t.strip()]

    # Simulated latencies
    analysis_delay_seconds: float = Field(
        default=2.0,
        description="Simulated processing time of the report analyzer"
    )
    air_quality_delay_seconds: float = Field(
        default=1.2,
        description="Simulated latency of an air quality lookup"
    )
    chatbot_delay_seconds: float = Field(
        default=0.8,
        description="Simulated latency of the chatbot action on the remote entry point"
    )

    # Air quality
    aqi_scale: str = Field(default="india", description="AQI band table: india or us_epa")
    forecast_days: int = Field(default=3, description="Number of future days in the AQI forecast")

    # Client hints
    notification_timeout_seconds: float = Field(
        default=5.0,
        description="Seconds after which clients auto-dismiss a notification"
    )
    max_chat_message_length: int = Field(default=500, description="Maximum chat message length")

    # Development Settings
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("aqi_scale")
    @classmethod
    def validate_aqi_scale(cls, v: str) -> str:
        """Validate the AQI scale name."""
        v_lower = v.lower()
        if v_lower not in ("india", "us_epa"):
            raise ValueError("aqi_scale must be one of ['india', 'us_epa']")
        return v_lower

    @field_validator("max_upload_size", "jwt_expiration_hours", "max_chat_message_length")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("analysis_delay_seconds", "air_quality_delay_seconds", "chatbot_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        """Validate simulated delays are not negative."""
        if v < 0:
            raise ValueError("Simulated delays must not be negative")
        return v

    @field_validator("forecast_days")
    @classmethod
    def validate_forecast_days(cls, v: int) -> int:
        """Validate forecast length."""
        if not 2 <= v <= 3:
            raise ValueError("forecast_days must be between 2 and 3")
        return v

    @model_validator(mode="after")
    def validate_upload_types(self) -> "Settings":
        """Validate at least one upload type is accepted."""
        if not self.allowed_upload_types_list:
            raise ValueError("allowed_upload_types must list at least one MIME type")
        return self


# Global settings instance
settings = Settings()
