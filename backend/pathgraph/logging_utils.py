from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import settings

LOGGER_NAME = "pathgraph"
LOG_FILE_NAME = "pathgraph.log.jsonl"


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _resolve_log_dir(configured_out_dir: str) -> Path | None:
    for log_dir in (Path(configured_out_dir) / "logs", Path.cwd() / "out" / "logs"):
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            return log_dir
        except OSError:
            continue
    return None


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    log_dir = _resolve_log_dir(settings.out_dir)
    if log_dir is None:
        return None
    try:
        handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(formatter)
    return handler


def get_logger() -> logging.Logger:
    """JSON logger for search and codec events, configured on first use from ``settings``."""
    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = jsonlogger.JsonFormatter()
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if settings.log_to_file:
        handler = _file_handler(formatter)
        if handler is None:
            logger.warning("log file unavailable", extra={"out_dir": settings.out_dir})
        else:
            logger.addHandler(handler)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def reset_logger() -> None:
    """Close and drop handlers so the next event reconfigures from current settings."""
    global LOGGER
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger._configured = False  # type: ignore[attr-defined]
    LOGGER = None


LOGGER: logging.Logger | None = None


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    global LOGGER
    if LOGGER is None:
        LOGGER = get_logger()
    if LOGGER.isEnabledFor(level):
        LOGGER.log(level, event, extra={"event": event, **fields})
