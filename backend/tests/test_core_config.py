"""
Tests for hrportal/core/config.py - Settings defaults and production checks.
"""
import pytest

from hrportal.core.config import Settings

SECURE_KEY = "a-very-secure-secret-key-that-is-long-enough-32chars"


class TestSettings:
    def test_database_url_built_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_USER", "hr")
        monkeypatch.setenv("POSTGRES_PASSWORD", "pw")
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_DB", "portal")

        config = Settings(_env_file=None)

        assert config.DATABASE_URL == "postgresql+asyncpg://hr:pw@db:5432/portal"

    def test_jwt_secret_alias(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", SECURE_KEY)

        assert Settings(_env_file=None).SECRET_KEY == SECURE_KEY

    def test_cookie_lifetime(self):
        config = Settings(_env_file=None)

        assert config.AUTH_COOKIE_NAME == "auth-token"
        assert config.AUTH_TOKEN_MAX_AGE == 7 * 24 * 60 * 60
        assert config.COOKIE_SECURE is False

    def test_comma_separated_origins(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com")

        assert Settings(_env_file=None).ALLOWED_ORIGINS == ["https://a.example.com", "https://b.example.com"]


class TestProductionChecks:
    def test_rejects_default_secret_key(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "false")
        monkeypatch.setenv("GOVERNMENT_SANDBOX", "false")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "SECRET_KEY is insecure" in str(exc_info.value)

    def test_rejects_debug(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("SECRET_KEY", SECURE_KEY)
        monkeypatch.setenv("GOVERNMENT_SANDBOX", "false")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "DEBUG must be False" in str(exc_info.value)

    def test_accepts_secure_configuration(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "false")
        monkeypatch.setenv("SECRET_KEY", SECURE_KEY)
        monkeypatch.setenv("GOVERNMENT_SANDBOX", "false")

        config = Settings(_env_file=None)

        assert config.COOKIE_SECURE is True
