"""Application configuration."""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Clinic Appointments API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # JWT
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Admin back office
    admin_email: str = Field(..., alias="ADMIN_EMAIL")
    admin_password_hash: str = Field(..., alias="ADMIN_PASSWORD_HASH")
    admin_name: str = Field(default="Admin", alias="ADMIN_NAME")
    admin_session_expire_minutes: int = Field(
        default=480,
        gt=0,
        alias="ADMIN_SESSION_EXPIRE_MINUTES",
    )

    # Scheduling
    clinic_timezone: str = Field(
        default="Europe/Istanbul",
        alias="CLINIC_TIMEZONE",
        description="IANA timezone used to decide what 'today' is for bookings",
    )
    upcoming_horizon_days: int = Field(default=7, gt=0, alias="UPCOMING_HORIZON_DAYS")
    upcoming_limit: int = Field(default=5, gt=0, alias="UPCOMING_LIMIT")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @field_validator("clinic_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Fail fast on an unknown IANA timezone name."""
        try:
            ZoneInfo(v)
        except ZoneInfoNotFoundError:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
