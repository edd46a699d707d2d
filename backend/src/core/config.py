"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# HS256 keys shorter than this are rejected at startup
MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    db_pool_timeout: float = Field(default=10.0, validation_alias="DB_POOL_TIMEOUT")
    db_command_timeout: float = Field(default=10.0, validation_alias="DB_COMMAND_TIMEOUT")

    # Redis - backs sessions, the profile cache and auth rate limiting
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")
    redis_socket_timeout: float = Field(default=2.0, validation_alias="REDIS_SOCKET_TIMEOUT")

    # Credentials and sessions
    jwt_secret: str = Field(validation_alias="JWT_SECRET")
    jwt_expire_seconds: int = Field(default=86_400, validation_alias="JWT_EXPIRE_SECONDS")
    bcrypt_rounds: int = Field(default=12, validation_alias="BCRYPT_ROUNDS")

    # Profile cache
    profile_cache_ttl: int = Field(default=3600, validation_alias="PROFILE_CACHE_TTL")

    # Signup/login throttling: AUTH_RATE_LIMIT attempts per AUTH_RATE_WINDOW seconds
    auth_rate_limit: int = Field(default=5, validation_alias="AUTH_RATE_LIMIT")
    auth_rate_window: int = Field(default=900, validation_alias="AUTH_RATE_WINDOW")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """
        Refuse to start with a weak signing key.

        Every credential's integrity rests on this key, so a short or empty value
        is a configuration error rather than something to warn about.
        """
        if len(self.jwt_secret) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters long.",
            )
        if self.jwt_expire_seconds <= 0:
            raise ValueError("JWT_EXPIRE_SECONDS must be positive.")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        """Whether the database URL points at SQLite (local tooling and tests)."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
