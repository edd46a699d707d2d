"""Tests for application configuration."""
import pytest
from pydantic import ValidationError

from core.config import Settings

VALID_SECRET = "x" * 32


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            JWT_SECRET=VALID_SECRET,
            CORS_ORIGINS="http://localhost:5173",
        )
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_origins_with_whitespace(self) -> None:
        """Whitespace around origins is stripped."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            JWT_SECRET=VALID_SECRET,
            CORS_ORIGINS="  http://localhost:5173 , https://example.com  ",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            JWT_SECRET=VALID_SECRET,
            CORS_ORIGINS="",
        )
        assert settings.cors_origins == []

    def test_parse_trailing_comma(self) -> None:
        """Trailing comma is handled (empty entries filtered)."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            JWT_SECRET=VALID_SECRET,
            CORS_ORIGINS="http://localhost:5173,",
        )
        assert settings.cors_origins == ["http://localhost:5173"]


class TestJwtSecretValidation:
    """Tests for the signing key checks."""

    def test__settings__rejects_short_secret(self) -> None:
        """A secret under 32 characters is a configuration error."""
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(_env_file=None, database_url="postgresql://test", JWT_SECRET="short")

    def test__settings__requires_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Startup fails when JWT_SECRET is not configured at all."""
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_url="postgresql://test")

    def test__settings__rejects_non_positive_expiry(self) -> None:
        """Credential lifetime must be positive."""
        with pytest.raises(ValidationError, match="JWT_EXPIRE_SECONDS"):
            Settings(
                _env_file=None,
                database_url="postgresql://test",
                JWT_SECRET=VALID_SECRET,
                JWT_EXPIRE_SECONDS=0,
            )


class TestDefaults:
    """Tests for default values."""

    def test__settings__defaults(self) -> None:
        """Session lifetime, cache TTL and auth throttle have documented defaults."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            JWT_SECRET=VALID_SECRET,
            BCRYPT_ROUNDS=12,
        )
        assert settings.jwt_expire_seconds == 86_400
        assert settings.profile_cache_ttl == 3600
        assert settings.auth_rate_limit == 5
        assert settings.auth_rate_window == 900
        assert settings.bcrypt_rounds == 12

    def test__is_sqlite__detects_sqlite_urls(self) -> None:
        """SQLite URLs are recognized so pool options are skipped."""
        sqlite = Settings(
            _env_file=None, database_url="sqlite+aiosqlite://", JWT_SECRET=VALID_SECRET,
        )
        postgres = Settings(
            _env_file=None,
            database_url="postgresql+asyncpg://localhost/app",
            JWT_SECRET=VALID_SECRET,
        )
        assert sqlite.is_sqlite is True
        assert postgres.is_sqlite is False
