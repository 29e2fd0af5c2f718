"""
Logging setup for the Muktsar NGO client.

One call to ``setup_logging`` wires the root logger for the whole process:

- a console handler at the configured level
- an optional DEBUG file handler under ``log_file_dir`` (off unless settings enable it)
- per-package levels from ``MODULE_LOG_LEVELS``; ``muktsar_ngo.api`` is where
  every HTTP request and response is logged
"""

import logging
from pathlib import Path
from typing import Optional


def _get_logging_config():
    """Read the logging fields from settings.

    Imported lazily so that importing this module never fails on a bad environment.
    """
    from muktsar_ngo.core.config import get_settings

    settings = get_settings()
    return {
        "log_level": settings.log_level.upper(),
        "log_format": settings.log_format,
        "log_file_dir": settings.log_file_dir,
        "enable_file_logging": settings.enable_file_logging,
    }


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

LOG_FILE_NAME = "muktsar_ngo.log"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MODULE_LOG_LEVELS = {
    "muktsar_ngo": "INFO",
    "muktsar_ngo.api": "DEBUG",
    "muktsar_ngo.auth": "DEBUG",
    "muktsar_ngo.alerts": "DEBUG",
    "muktsar_ngo.donors": "INFO",
    "muktsar_ngo.cli": "INFO",
    # httpx logs every request at INFO
    "httpx": "WARNING",
    "httpcore": "WARNING",
}

_FORMATS = {"simple": SIMPLE_FORMAT, "detailed": DETAILED_FORMAT, "json": JSON_FORMAT}


def _attach(root: logging.Logger, handler: logging.Handler, level, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure process-wide logging. Safe to call more than once.

    Args:
        log_level: Console level; defaults to ``MUKTSAR_LOG_LEVEL``
        log_format: ``simple``, ``detailed`` or ``json``; unknown names fall back to detailed
        enable_file: Set False to keep the file handler off even when settings enable it
    """
    config = _get_logging_config()
    level = (log_level or config["log_level"]).upper()
    fmt = log_format or config["log_format"]
    write_file = enable_file and config["enable_file_logging"]
    formatter = logging.Formatter(_FORMATS.get(fmt, DETAILED_FORMAT), datefmt=DATE_FORMAT)

    root = logging.getLogger()
    # handlers filter; the root lets everything through
    root.setLevel(logging.DEBUG)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    _attach(root, logging.StreamHandler(), level, formatter)
    if write_file:
        log_dir = Path(config["log_file_dir"])
        log_dir.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(log_dir / LOG_FILE_NAME), logging.DEBUG, formatter)

    for name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(module_level)

    root.debug("Logging configured: level=%s, format=%s, file_logging=%s", level, fmt, write_file)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)
