"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    APP_NAME: str = "Reputation Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    PUBLIC_API_PREFIX: str = "/api/public/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, testing, staging, production

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./reputation.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Security Settings
    # SECRET_KEY is shared with the external auth provider (HS256) and also
    # signs the client-held routing sessions.
    SECRET_KEY: str = ""
    # 32-byte master key as 64 hex characters
    API_KEY_ENCRYPTION_KEY: str = ""
    API_KEY_PREFIX: str = "tlv"
    API_KEY_DISPLAY_LENGTH: int = 10

    # Magic links
    APP_URL: str = "http://localhost:3003"
    MAGIC_LINK_TOKEN_BYTES: int = 16
    ROUTING_SESSION_TTL_MINUTES: int = 120

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:3003"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def validate_secrets(self) -> None:
        """Validate that the secrets the service cannot run without are present.

        Raises:
            ConfigurationError: If the master key is missing or malformed, or
                SECRET_KEY is empty in production
        """
        from core.crypto import load_master_key
        from core.exceptions import ConfigurationError

        load_master_key(self.API_KEY_ENCRYPTION_KEY)

        if self.is_production and not self.SECRET_KEY:
            raise ConfigurationError(
                "CRITICAL: SECRET_KEY environment variable must be set in production. "
                "Do not use default values."
            )

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses caching to ensure settings are loaded only once.

    Returns:
        Settings object with all configuration values
    """
    return Settings()
