"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


DEFAULT_DOCUMENT_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}

DEFAULT_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass
class DatabaseConfig:
    url: str = "sqlite:///data/skillmatch.db"
    echo: bool = False


@dataclass
class UploadLimits:
    max_file_bytes: int = 5 * 1024 * 1024
    document_types: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DOCUMENT_TYPES))
    image_types: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_IMAGE_TYPES))


@dataclass
class StorageConfig:
    backend: str = "local"  # local, memory
    upload_dir: str = "uploads"
    url_prefix: str = "/uploads"
    limits: UploadLimits = field(default_factory=UploadLimits)


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    session_secret: str = "dev-secret-change-me-in-production"
    log_dir: str = "logs"
    log_level: str = "INFO"


def normalize_database_url(url: str) -> str:
    # Heroku-style hosts hand out postgres:// but SQLAlchemy 2.x requires postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Copy config.example.yaml to config.yaml and fill in your settings."
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig()

    # Database (env var takes precedence)
    db_raw = raw.get("database", {})
    config.database = DatabaseConfig(
        url=normalize_database_url(
            os.environ.get("DATABASE_URL", db_raw.get("url", "sqlite:///data/skillmatch.db"))
        ),
        echo=db_raw.get("echo", False),
    )

    # Storage
    storage_raw = raw.get("storage", {})
    limits_raw = storage_raw.get("limits", {})
    config.storage = StorageConfig(
        backend=storage_raw.get("backend", "local"),
        upload_dir=os.environ.get("UPLOAD_DIR", storage_raw.get("upload_dir", "uploads")),
        url_prefix=storage_raw.get("url_prefix", "/uploads"),
        limits=UploadLimits(
            max_file_bytes=limits_raw.get("max_file_bytes", 5 * 1024 * 1024),
            document_types=limits_raw.get("document_types", dict(DEFAULT_DOCUMENT_TYPES)),
            image_types=limits_raw.get("image_types", dict(DEFAULT_IMAGE_TYPES)),
        ),
    )

    config.session_secret = os.environ.get(
        "SESSION_SECRET", raw.get("session_secret", "dev-secret-change-me-in-production")
    )
    config.log_dir = raw.get("log_dir", "logs")
    config.log_level = str(raw.get("log_level", "INFO")).upper()

    return config


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if config.storage.backend not in ("local", "memory"):
        warnings.append(f"Unknown storage backend '{config.storage.backend}' - falling back to local")

    if config.storage.backend == "memory":
        warnings.append("Memory storage backend configured - uploaded files are lost on restart")

    if config.storage.limits.max_file_bytes <= 0:
        warnings.append("Upload size limit must be positive - every upload will be rejected")

    if not config.storage.limits.document_types:
        warnings.append("No document types allowed - resume uploads will be rejected")

    if config.session_secret == "dev-secret-change-me-in-production":
        warnings.append("Default session secret in use - set SESSION_SECRET in production")

    if config.database.url.startswith("sqlite"):
        warnings.append("SQLite database configured - concurrent uploads are serialized by file locking")

    return warnings
