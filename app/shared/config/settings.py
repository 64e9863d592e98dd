# 📄 File: app/shared/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The main configuration center that reads all settings from environment variables
# and tells the diagnosis pipeline which AI services to call, how often, and how many
# free analyses each user gets.
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings management with environment variable loading,
# validation, and type safety for provider credentials, throttle quotas,
# cache TTLs, free-tier policy and upload constraints.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - typing for type hints
#
# 🔄 Connected Modules / Calls From:
# - app.main (application startup)
# - Provider adapters and the throttled client
# - Usage ledger, catalog enricher, upload validation

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety. Settings are loaded
    from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================

    APP_NAME: str = Field(default="Plant Diagnosis API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    APP_DESCRIPTION: str = Field(
        default="Plant photo identification, health assessment and care planning",
        description="Application description"
    )
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    DEBUG: bool = Field(default=False, description="Debug mode flag")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format: json or text")
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")

    HOST: str = Field(default="0.0.0.0", description="Server bind host")
    PORT: int = Field(default=8000, description="Server bind port")
    CORS_ORIGINS: str = Field(default="*", description="Comma-separated allowed CORS origins")

    # =========================================================================
    # SHARED STATE (quota counters, response cache, usage ledger)
    # =========================================================================

    STATE_BACKEND: str = Field(default="memory", description="memory or redis")
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    REDIS_MAX_CONNECTIONS: int = Field(default=20, description="Redis connection pool size")

    CACHE_CATALOG_TTL: int = Field(default=86400, description="Catalog lookup cache TTL (seconds)")

    # =========================================================================
    # PLANT IDENTIFICATION / HEALTH (Plant.id)
    # =========================================================================

    PLANT_ID_API_KEY: Optional[str] = Field(None, description="Plant.id API key")
    PLANT_ID_API_URL: str = Field(
        default="https://api.plant.id/v3",
        description="Plant.id API base URL"
    )
    PLANT_ID_DAILY_LIMIT: int = Field(default=100, description="Plant.id calls per caller per day")
    PLANT_ID_MIN_INTERVAL: float = Field(default=1.0, description="Seconds between Plant.id calls")

    # =========================================================================
    # GENERATIVE AI (Google Gemini)
    # =========================================================================

    GOOGLE_GEMINI_API_KEY: Optional[str] = Field(None, description="Google Gemini API key")
    GOOGLE_GEMINI_API_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API base URL"
    )
    GOOGLE_GEMINI_FAST_MODEL: str = Field(default="gemini-1.5-flash", description="Model for quality checks")
    GOOGLE_GEMINI_MODEL: str = Field(default="gemini-1.5-pro", description="Model for care plans and advice")
    GEMINI_DAILY_LIMIT: int = Field(default=45, description="Gemini calls per caller per day")
    GEMINI_MIN_INTERVAL: float = Field(default=2.0, description="Seconds between Gemini calls")

    # =========================================================================
    # PLANT CATALOGS
    # =========================================================================

    PERENUAL_API_KEY: Optional[str] = Field(None, description="Perenual API key")
    PERENUAL_API_URL: str = Field(default="https://perenual.com/api", description="Perenual API URL")
    PERENUAL_DAILY_LIMIT: int = Field(default=100, description="Perenual calls per caller per day")
    PERENUAL_MIN_INTERVAL: float = Field(default=1.0, description="Seconds between Perenual calls")

    TREFLE_API_KEY: Optional[str] = Field(None, description="Trefle API key")
    TREFLE_API_URL: str = Field(default="https://trefle.io/api/v1", description="Trefle API URL")
    TREFLE_DAILY_LIMIT: int = Field(default=120, description="Trefle calls per caller per day")
    TREFLE_MIN_INTERVAL: float = Field(default=0.5, description="Seconds between Trefle calls")

    PROVIDER_TIMEOUT: int = Field(default=30, description="Provider request timeout (seconds)")
    PROVIDER_MAX_RETRIES: int = Field(default=3, description="Retries on transport errors")
    QUOTA_TIMEZONE: str = Field(default="UTC", description="Timezone defining the quota day")

    # =========================================================================
    # ANALYSIS POLICY
    # =========================================================================

    IDENTIFICATION_CONFIDENCE_THRESHOLD: float = Field(
        default=0.1,
        description="Minimum species confidence accepted by the pipeline"
    )
    HEALTH_FINDING_MIN_PROBABILITY: float = Field(
        default=0.1,
        description="Health suggestions below this probability are dropped"
    )
    MIN_IMAGE_DIMENSION: int = Field(default=64, description="Smallest accepted image side in pixels")

    FREE_TIER_ALLOWANCE: int = Field(default=3, description="Free analyses per window")
    FREE_TIER_WINDOW_DAYS: int = Field(default=7, description="Free tier window length in days")

    # =========================================================================
    # UPLOAD CONSTRAINTS
    # =========================================================================

    MAX_IMAGES_PER_REQUEST: int = Field(default=3, description="Max images per analysis")
    MAX_IMAGE_SIZE: int = Field(default=102400, description="Max image size (100KB)")
    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/jpeg,image/png",
        description="Comma separated accepted MIME types"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed_environments = ["development", "staging", "production", "test"]
        if v.lower() not in allowed_environments:
            raise ValueError(f"Environment must be one of {allowed_environments}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("STATE_BACKEND")
    @classmethod
    def validate_state_backend(cls, v: str) -> str:
        """Validate shared state backend."""
        if v.lower() not in ("memory", "redis"):
            raise ValueError("State backend must be 'memory' or 'redis'")
        return v.lower()

    @field_validator("IDENTIFICATION_CONFIDENCE_THRESHOLD", "HEALTH_FINDING_MIN_PROBABILITY")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        """Probabilities must lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Value must be between 0 and 1")
        return v

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @property
    def allowed_image_types_list(self) -> List[str]:
        """Get accepted MIME types as a list."""
        return [t.strip() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.ENVIRONMENT == "test"

    # =========================================================================
    # API PROVIDER CONFIGURATIONS
    # =========================================================================

    def get_provider_config(self) -> dict:
        """Get external provider configuration keyed by provider name."""
        return {
            "plant_id": {
                "api_key": self.PLANT_ID_API_KEY,
                "api_url": self.PLANT_ID_API_URL,
                "daily_limit": self.PLANT_ID_DAILY_LIMIT,
                "min_interval": self.PLANT_ID_MIN_INTERVAL,
            },
            "gemini": {
                "api_key": self.GOOGLE_GEMINI_API_KEY,
                "api_url": self.GOOGLE_GEMINI_API_URL,
                "daily_limit": self.GEMINI_DAILY_LIMIT,
                "min_interval": self.GEMINI_MIN_INTERVAL,
            },
            "perenual": {
                "api_key": self.PERENUAL_API_KEY,
                "api_url": self.PERENUAL_API_URL,
                "daily_limit": self.PERENUAL_DAILY_LIMIT,
                "min_interval": self.PERENUAL_MIN_INTERVAL,
                "priority": 1,
            },
            "trefle": {
                "api_key": self.TREFLE_API_KEY,
                "api_url": self.TREFLE_API_URL,
                "daily_limit": self.TREFLE_DAILY_LIMIT,
                "min_interval": self.TREFLE_MIN_INTERVAL,
                "priority": 2,
            },
        }


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Uses lru_cache to ensure settings are loaded only once
    and reused throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
