"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Pricing defaults below are only used
to seed the GlobalSettings record the first time it is read; after that the
stored record is authoritative.
"""

from functools import lru_cache
from typing import List, Literal, Optional, Tuple

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./havens.db"

    # Security
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 240  # 4 hours

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Bootstrap super admin (skipped when either value is empty)
    super_admin_email: Optional[str] = None
    super_admin_password: Optional[str] = None
    super_admin_name: str = "Super Admin"

    # Read-through cache for public listings
    cache_ttl_seconds: int = 300

    # Cart sessions
    cart_ttl_seconds: int = 6 * 60 * 60

    # ==========================================================================
    # Pricing defaults (seed values for the GlobalSettings record)
    # ==========================================================================
    default_gst_percentage: float = 5.0
    default_delivery_base_charge: float = 40.0
    default_delivery_charge_per_km: float = 10.0
    default_free_delivery_threshold: float = 500.0
    default_free_delivery_distance_limit: float = 5.0
    default_delivery_tiers: List[Tuple[float, float]] = [(3, 30), (5, 50), (10, 100)]

    default_brand_name: str = "HAVENS KITCHEN"
    default_brand_tagline: str = "ESTABLISHED 1984 • CULINARY SANCTUARY"
    default_brand_address: str = "HQ - South Delhi, India"
    default_brand_contact: str = "9899466466"
    default_brand_color: str = "#C0392B"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if v == "change-me-in-production" or len(v) < 32:
            import warnings
            warnings.warn(
                "SECRET_KEY is the default or shorter than 32 characters. "
                "Set a secure SECRET_KEY environment variable.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse to start in production mode with an insecure secret key."""
        if not self.debug:
            if self.secret_key == "change-me-in-production":
                raise ValueError(
                    "FATAL: Cannot start in production mode with default SECRET_KEY. "
                    "Set a secure SECRET_KEY environment variable (minimum 32 characters)."
                )
            if len(self.secret_key) < 32:
                raise ValueError(
                    f"FATAL: SECRET_KEY must be at least 32 characters in production mode "
                    f"(current length: {len(self.secret_key)})."
                )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
