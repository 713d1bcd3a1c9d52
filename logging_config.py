import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Set on configured loggers so repeated setup calls don't stack handlers
_CONFIGURED_MARK = "_shipment_api_configured"

_DEFAULT_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(level: Optional[Union[int, str]]) -> int:
    """
    Accepts a level as int or name ('INFO', 'debug').
    Falls back to LOG_LEVEL, then INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL")
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if isinstance(value, int):
            return value
    return logging.INFO


def setup_logging(
    name: Optional[str] = None,
    *,
    level: Optional[Union[int, str]] = None,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure a logger (the root logger by default) with a stderr handler and,
    when `log_file` or LOG_FILE is given, a rotating file handler.
    Safe to call more than once.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))
    formatter = logging.Formatter(fmt=_DEFAULT_FMT, datefmt=_DEFAULT_DATEFMT)

    if not getattr(logger, _CONFIGURED_MARK, False):
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(formatter)
        logger.addHandler(console)

    log_file = log_file or os.getenv("LOG_FILE")
    if log_file:
        path = Path(log_file)
        has_file = any(
            isinstance(h, RotatingFileHandler) and Path(h.baseFilename) == path.absolute()
            for h in logger.handlers
        )
        if not has_file:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=str(path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
                delay=True,
            )
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    setattr(logger, _CONFIGURED_MARK, True)
    return logger
