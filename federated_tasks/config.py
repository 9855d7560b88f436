"""
Federation configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the federated task layer."""

    main_database_url: str = Field(
        default="postgresql+psycopg://postgres@localhost:5432/checklist",
        description="SQLAlchemy URL of the primary task store (binding 'main').",
    )
    housekeeping_database_url: str = Field(
        default="postgresql+psycopg://postgres@localhost:5432/housekeeping",
        description="SQLAlchemy URL of the facility task store (binding 'housekeeping').",
    )
    maintenance_database_url: str = Field(
        default="postgresql+psycopg://postgres@localhost:5432/maintenance",
        description="SQLAlchemy URL of the equipment maintenance store (binding 'maintenance').",
    )

    # Pool sizing, applied to every engine
    pool_size: int = Field(default=10, description="Persistent connections kept per pool.")
    max_overflow: int = Field(default=5, description="Extra connections allowed above pool_size.")
    pool_timeout: float = Field(default=30.0, description="Seconds to wait for a pooled connection.")
    pool_recycle: int = Field(default=1800, description="Seconds after which idle connections are recycled.")

    timezone: str = Field(default="Asia/Kolkata", description="Timezone that defines 'today'.")
    default_page_limit: int = Field(default=50, description="Page size used when the caller gives none.")
    max_page_limit: int = Field(default=500, description="Largest page size a caller may request.")
    slow_query_seconds: float = Field(
        default=0.5, description="Per-source queries slower than this are logged as warnings."
    )
    attendance_min_gap_seconds: float = Field(
        default=55.0, description="Minimum gap between two attendance reconciliation runs."
    )
    log_level: str = Field(default="INFO", description="Root log level.")

    model_config = SettingsConfigDict(
        env_prefix="TASKFED_",
        extra="ignore",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
    )

    def database_urls(self) -> Dict[str, str]:
        """Map each pool binding to its database URL."""

        return {
            "main": self.main_database_url,
            "housekeeping": self.housekeeping_database_url,
            "maintenance": self.maintenance_database_url,
        }


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
