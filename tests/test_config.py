"""Tests for configuration loading."""

import os
import tempfile

import pytest
import yaml

from skillmatch.config import AppConfig, load_config, normalize_database_url, validate_config


@pytest.fixture
def config_file():
    """Create a temporary config file."""
    config_data = {
        "database": {"url": "postgresql://db.internal/skillmatch"},
        "storage": {
            "backend": "local",
            "upload_dir": "/srv/uploads",
            "limits": {"max_file_bytes": 1024},
        },
        "session_secret": "s3cret",
        "log_level": "debug",
    }

    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config_data, f)
        path = f.name

    yield path
    os.unlink(path)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "UPLOAD_DIR", "SESSION_SECRET"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    def test_loads_valid_config(self, config_file):
        config = load_config(config_file)
        assert config.database.url == "postgresql://db.internal/skillmatch"
        assert config.storage.upload_dir == "/srv/uploads"
        assert config.storage.limits.max_file_bytes == 1024
        assert config.session_secret == "s3cret"
        assert config.log_level == "DEBUG"

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent.yaml")

    def test_defaults_applied(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump({}, f)
            path = f.name

        try:
            config = load_config(path)
            assert config.database.url == "sqlite:///data/skillmatch.db"
            assert config.storage.backend == "local"
            assert config.storage.limits.max_file_bytes == 5 * 1024 * 1024
            assert "application/pdf" in config.storage.limits.document_types
        finally:
            os.unlink(path)

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://heroku/db")
        monkeypatch.setenv("UPLOAD_DIR", "/tmp/up")
        monkeypatch.setenv("SESSION_SECRET", "from-env")
        config = load_config(config_file)
        assert config.database.url == "postgresql://heroku/db"
        assert config.storage.upload_dir == "/tmp/up"
        assert config.session_secret == "from-env"


class TestNormalizeDatabaseUrl:
    def test_postgres_scheme_rewritten(self):
        assert normalize_database_url("postgres://h/db") == "postgresql://h/db"

    def test_other_urls_untouched(self):
        assert normalize_database_url("sqlite:///x.db") == "sqlite:///x.db"


class TestValidateConfig:
    def test_default_secret_warns(self):
        warnings = validate_config(AppConfig())
        assert any("session secret" in w.lower() for w in warnings)

    def test_memory_backend_warns(self):
        config = AppConfig()
        config.storage.backend = "memory"
        assert any("lost on restart" in w for w in validate_config(config))

    def test_unknown_backend_warns(self):
        config = AppConfig()
        config.storage.backend = "s3"
        assert any("unknown storage backend" in w.lower() for w in validate_config(config))

    def test_bad_limits_warn(self):
        config = AppConfig()
        config.storage.limits.max_file_bytes = 0
        config.storage.limits.document_types = {}
        warnings = validate_config(config)
        assert any("size limit" in w.lower() for w in warnings)
        assert any("no document types" in w.lower() for w in warnings)

    def test_production_config_is_quiet(self):
        config = AppConfig()
        config.database.url = "postgresql://db/skillmatch"
        config.session_secret = "long-random-secret"
        assert validate_config(config) == []
