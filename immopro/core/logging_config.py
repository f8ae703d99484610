"""
Logging Configuration Module.

Console logging for every ImmoPro process, plus an optional rotating
``immopro.log`` file. Levels are tuned per package: the API and service
layers log at DEBUG, third-party clients (SQLAlchemy, httpx, Stripe) only
from WARNING.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


def _read_settings() -> Dict[str, Any]:
    """Logging options from the server settings, or the raw environment.

    Settings are imported lazily so that importing this module never triggers
    a circular import with ``immopro.server.core.config``.
    """
    try:
        from immopro.server.core.config import settings

        return {
            "level": settings.log_level,
            "format": settings.log_format,
            "dir": settings.log_file_dir,
            "file": settings.enable_file_logging,
            "max_mb": settings.log_file_max_mb,
            "backups": settings.log_file_backups,
        }
    except Exception:
        return {
            "level": os.getenv("IMMOPRO_LOG_LEVEL", "INFO"),
            "format": os.getenv("LOG_FORMAT", "detailed"),
            "dir": os.getenv("LOG_FILE_DIR", "logs"),
            "file": os.getenv("ENABLE_FILE_LOGGING", "true").lower() in ("true", "1", "yes"),
            "max_mb": int(os.getenv("LOG_FILE_MAX_MB", "10")),
            "backups": int(os.getenv("LOG_FILE_BACKUPS", "5")),
        }


_options = _read_settings()
LOG_LEVEL: str = _options["level"].upper()
LOG_FORMAT: str = _options["format"]
LOG_FILE_DIR: str = _options["dir"]
ENABLE_FILE_LOGGING: bool = _options["file"]
LOG_FILE_MAX_BYTES: int = _options["max_mb"] * 1024 * 1024
LOG_FILE_BACKUPS: int = _options["backups"]

LOG_FILE_NAME = "immopro.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}

MODULE_LOG_LEVELS = {
    "immopro.core": "INFO",
    "immopro.core.database": "INFO",
    "immopro.core.matching": "DEBUG",
    "immopro.server": "INFO",
    "immopro.server.api": "DEBUG",
    "immopro.server.services": "DEBUG",
    "immopro.server.core": "INFO",
    # Third-party libraries
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "stripe": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler:
    log_dir = Path(LOG_FILE_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    (Re)configure the root logger.

    Previous handlers are removed, so calling this twice never duplicates
    lines. The file handler is only added when both ``enable_file`` and the
    ``ENABLE_FILE_LOGGING`` setting allow it.

    Args:
        log_level: Console level, defaults to ``IMMOPRO_LOG_LEVEL``
        log_format: ``simple``, ``detailed`` or ``json``; unknown names fall back to ``detailed``
        enable_file: Whether to also write to the rotating log file
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filtering happens at handler level
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_logging = enable_file and ENABLE_FILE_LOGGING
    if file_logging:
        root_logger.addHandler(_file_handler(formatter))

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """Logger of a module, usually ``get_logger(__name__)``."""
    return logging.getLogger(name)


setup_logging()
