"""Application configuration using Pydantic Settings."""

from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Wellness Dashboard API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database (read-only reporting source)
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_schema: str | None = Field(default="him_ttdi", alias="DB_SCHEMA")
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")
    db_pool_timeout_seconds: int = Field(default=10, alias="DB_POOL_TIMEOUT_SECONDS")
    db_pool_recycle_seconds: int = Field(default=300, alias="DB_POOL_RECYCLE_SECONDS")
    db_statement_timeout_seconds: int = Field(default=30, alias="DB_STATEMENT_TIMEOUT_SECONDS")

    # Calendar handling
    report_timezone: str = Field(default="Asia/Kuala_Lumpur", alias="REPORT_TIMEZONE")
    store_timezone: str = Field(default="Asia/Kuala_Lumpur", alias="STORE_TIMEZONE")

    # Business rules
    registration_fee: float = Field(default=50.0, alias="REGISTRATION_FEE")
    closing_excluded_term: str = Field(default="trial", alias="CLOSING_EXCLUDED_TERM")
    consultation_capacity: int = Field(default=16, gt=0, alias="CONSULTATION_CAPACITY")
    treatment_capacity: int = Field(default=32, gt=0, alias="TREATMENT_CAPACITY")
    sales_window_days: int = Field(default=30, gt=0, alias="SALES_WINDOW_DAYS")
    occupancy_window_days: int = Field(default=14, gt=0, alias="OCCUPANCY_WINDOW_DAYS")

    # Monitoring
    prometheus_enabled: bool = Field(default=False, alias="PROMETHEUS_ENABLED")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env.lower() in ("prod", "production")

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env.lower() in ("dev", "development")

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.env.lower() in ("test", "testing")

    @property
    def report_tz(self) -> ZoneInfo:
        return ZoneInfo(self.report_timezone)

    @property
    def store_tz(self) -> ZoneInfo:
        return ZoneInfo(self.store_timezone)


# Global settings instance
settings = Settings()
