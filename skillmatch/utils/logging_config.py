"""Logging setup shared by the API process and the maintenance CLI."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty libraries that only matter when debugging
NOISY_LOGGERS = ("sqlalchemy.engine", "multipart")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def setup_logging(
    log_dir: str = "logs",
    level: int | str = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Send skillmatch.* records to logs/skillmatch.log (5MB x 3 backups) and stdout."""
    level = _resolve_level(level)
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("skillmatch")
    logger.setLevel(level)

    # Re-running setup replaces handlers instead of stacking them
    for old in list(logger.handlers):
        old.close()
        logger.removeHandler(old)

    logger.addHandler(_handler(
        RotatingFileHandler(
            log_path / "skillmatch.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        ),
        level,
    ))
    if console:
        logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level))

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger
