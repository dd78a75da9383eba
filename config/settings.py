"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    assets_table: str = Field(
        default="assets",
        description="Table holding serialized equipment records"
    )
    service_orders_table: str = Field(
        default="service_orders",
        description="Table holding service orders and their event names"
    )

    # ===================
    # STORE LIMITS
    # ===================
    serial_batch_size: int = Field(
        default=30,
        ge=1,
        le=30,
        description="Max values in one serial in-list lookup (store limit)"
    )
    reconciliation_page_size: int = Field(
        default=500,
        ge=1,
        le=1000,
        description="Page size used to materialize a target scope"
    )

    # ===================
    # INVENTORY BROWSER
    # ===================
    browse_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Rows loaded on the first page of a browsing session"
    )
    browse_load_more_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Rows loaded on each 'load more'"
    )
    filter_options_sample_size: int = Field(
        default=1000,
        ge=1,
        le=5000,
        description="Records sampled to build filter facets"
    )

    # ===================
    # SERVICE ORDERS
    # ===================
    service_order_pattern: str = Field(
        default=r"^OS(?![A-Za-z])",
        description="Regex marking an allocation scope as a service order (Python and Postgres syntax)"
    )
    service_order_cache_size: int = Field(
        default=256,
        ge=1,
        le=100000,
        description="Max service orders kept in the event-name cache"
    )
    service_order_cache_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Seconds before a cached event name is looked up again"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Auto-reload when run with python main.py"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
