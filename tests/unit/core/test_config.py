"""Unit tests for settings."""

import pytest
from pydantic import ValidationError

from whocan.core.config import LogLevel, OutputFormat, Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in [
        "WHOCAN_REDIS_URL",
        "WHOCAN_REDIS_HOST",
        "WHOCAN_REDIS_PASSWORD",
        "WHOCAN_LOG_LEVEL",
        "WHOCAN_OUTPUT",
        "WHOCAN_FETCH_WORKERS",
        "WHOCAN_SNAPSHOT_CACHE_TTL",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        """Test default settings."""
        settings = Settings()

        assert settings.fetch_workers == 8
        assert settings.log_level == LogLevel.WARNING
        assert settings.output == OutputFormat.TABLE
        assert settings.redis_url == "redis://localhost:6379/0"
        assert not settings.cache_enabled

    def test_environment(self, monkeypatch):
        """Test settings are read from WHOCAN_ variables."""
        monkeypatch.setenv("WHOCAN_FETCH_WORKERS", "16")
        monkeypatch.setenv("WHOCAN_SNAPSHOT_CACHE_TTL", "120")
        monkeypatch.setenv("WHOCAN_OUTPUT", "json")

        settings = Settings()

        assert settings.fetch_workers == 16
        assert settings.snapshot_cache_ttl == 120
        assert settings.cache_enabled
        assert settings.output == OutputFormat.JSON

    def test_dotenv_file(self, tmp_path):
        """Test settings are read from a .env file."""
        (tmp_path / ".env").write_text("WHOCAN_CONTEXT=staging\n")

        assert Settings().context == "staging"

    def test_redis_url_from_parts(self):
        """Test the Redis URL is built from host, port and db."""
        settings = Settings(redis_host="cache", redis_port=6380, redis_db=2)

        assert settings.redis_url == "redis://cache:6380/2"

    def test_redis_url_with_password(self):
        """Test the password is added to the Redis URL."""
        settings = Settings(redis_host="cache", redis_password="s3cret")

        assert settings.redis_url == "redis://:s3cret@cache:6379/0"

    def test_explicit_redis_url(self, monkeypatch):
        """Test WHOCAN_REDIS_URL overrides the parts."""
        monkeypatch.setenv("WHOCAN_REDIS_URL", "redis://elsewhere:1234/5")

        assert Settings().redis_url == "redis://elsewhere:1234/5"

    def test_log_level_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("WHOCAN_LOG_LEVEL", "debug")

        assert Settings().log_level == LogLevel.DEBUG

    @pytest.mark.parametrize("workers", ["0", "65"])
    def test_fetch_workers_bounds(self, monkeypatch, workers):
        """Test worker counts outside 1 to 64 are rejected."""
        monkeypatch.setenv("WHOCAN_FETCH_WORKERS", workers)

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_cached(self):
        """Test settings are created once."""
        assert get_settings() is get_settings()
