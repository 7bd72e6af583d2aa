"""
Menu engine settings.

Read once from the environment (or a .env file) and validated by
pydantic-settings. Bulk limits are enforced by the routes, defaults by
the services.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Environment-backed configuration for the menu engine."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # DOCUMENT STORE
    # ===================
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: str = Field(..., description="Supabase anon key")
    supabase_service_key: Optional[str] = Field(
        None,
        description="Service role key; preferred for bulk writes when set"
    )

    # ===================
    # MENU DEFAULTS
    # ===================
    default_tax_percentage: float = Field(
        default=5.0,
        ge=0,
        le=100,
        description="Tax percentage for imported items that omit one"
    )

    # ===================
    # BULK LIMITS
    # ===================
    import_max_records: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Records accepted by one import request"
    )
    sync_max_targets: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Target outlets accepted by one sync request"
    )

    # ===================
    # SERVER
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$"
    )
    debug: bool = True
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1000, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the API from a browser"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def store_key(self) -> str:
        """Key used to open the document store client."""
        return self.supabase_service_key or self.supabase_key


@lru_cache()
def get_settings() -> Settings:
    """
    Load settings once per process.

    Call get_settings.cache_clear() to reload.

    Raises:
        ValidationError: If SUPABASE_URL or SUPABASE_KEY is missing
    """
    return Settings()


settings = get_settings()
