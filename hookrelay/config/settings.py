from typing import Any

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (and `.env`).

    Missing required values (JWT_SECRET_KEY) fail at load time, which
    stops the process before it serves any traffic.
    """

    # API Configuration
    PROJECT_NAME: str = "hookrelay"
    PROJECT_DESCRIPTION: str = "Capture, inspect and forward inbound webhooks"
    VERSION: str = "0.1.0"

    # Server
    PORT: int = Field(8080, description="Port the HTTP server listens on")
    BASE_URL: str | None = Field(
        None, description="Public base URL used to build webhook/inspect URLs (defaults to localhost:PORT)"
    )
    CORS_ORIGINS: str = Field("*", description="Comma-separated allowed CORS origins")

    # Database Settings
    DATABASE_URL: str | None = Field(None, description="Full database URL, takes precedence over DB_*")
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("hookrelay", description="Database name")
    DB_USER: str = Field("postgres", description="Database user")
    DB_PASSWORD: str | None = Field(None, description="Database password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(10, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(20, description="Pool overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every N seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Timeout to acquire a pooled connection")

    # Startup
    DB_CONNECT_RETRIES: int = Field(5, description="Database ping attempts before giving up at startup")
    DB_CONNECT_RETRY_DELAY: float = Field(2.0, description="Seconds between database ping attempts")
    DB_CREATE_TABLES: bool = Field(True, description="Create missing tables at startup")

    # JWT Settings
    JWT_SECRET_KEY: str = Field(..., description="Shared HMAC secret used to sign and verify tokens")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(24 * 60, description="Access token lifetime in minutes")
    AUTH_LOGIN_ENABLED: bool = Field(False, description="Expose POST /auth/login (no identity proofing, local use)")

    # Webhooks
    WEBHOOK_ID_LENGTH: int = Field(12, description="Length of generated webhook identifiers")
    WEBHOOK_ID_MAX_ATTEMPTS: int = Field(3, description="Id generation attempts when an id is already taken")
    FORWARD_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout for forwarding a captured request")
    INSPECT_DEFAULT_LIMIT: int = Field(100, description="Captured requests returned by default on inspect")
    INSPECT_MAX_LIMIT: int = Field(1000, description="Upper bound for the inspect limit parameter")

    # Application Settings
    DEBUG: bool = Field(False, description="Debug mode")
    ENVIRONMENT: str = Field("production", description="Runtime environment")

    # Sentry Configuration
    SENTRY_DSN: str | None = Field(None, description="Sentry DSN for error tracking")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("JWT_SECRET_KEY")
    @classmethod
    def validate_jwt_secret(cls, v):
        if not v or not v.strip():
            raise ValueError("JWT_SECRET_KEY must not be empty")
        return v

    @field_validator("FORWARD_TIMEOUT_SECONDS")
    @classmethod
    def validate_forward_timeout(cls, v):
        if v < 1 or v > 30:
            raise ValueError("FORWARD_TIMEOUT_SECONDS must be between 1 and 30")
        return v

    @field_validator("WEBHOOK_ID_LENGTH")
    @classmethod
    def validate_id_length(cls, v):
        if v < 8 or v > 64:
            raise ValueError("WEBHOOK_ID_LENGTH must be between 8 and 64")
        return v

    @field_validator("DB_CONNECT_RETRIES", "WEBHOOK_ID_MAX_ATTEMPTS")
    @classmethod
    def validate_attempts(cls, v):
        if v < 1:
            raise ValueError("attempt counts must be at least 1")
        return v

    @computed_field
    @property
    def cors_origin_list(self) -> list[str]:
        """Parsed CORS_ORIGINS."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @computed_field
    @property
    def public_base_url(self) -> str:
        """Base URL without trailing slash."""
        base = self.BASE_URL or f"http://localhost:{self.PORT}"
        return base.rstrip("/")

    @computed_field
    @property
    def async_database_url(self) -> str:
        """Async SQLAlchemy URL (asyncpg driver for PostgreSQL)."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://") :]
            if url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://") :]
            return url

        from urllib.parse import quote_plus

        user = quote_plus(self.DB_USER)
        if self.DB_PASSWORD:
            return (
                f"postgresql+asyncpg://{user}:{quote_plus(self.DB_PASSWORD)}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return f"postgresql+asyncpg://{user}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @computed_field
    @property
    def is_development(self) -> bool:
        """True for debug or local environments."""
        return self.DEBUG or self.ENVIRONMENT.lower() in ["development", "dev", "local"]


# Settings singleton
_settings_instance = None


def get_settings() -> Settings:
    """
    Return the cached settings instance.

    Avoids re-reading the environment on every call.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
