from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

# Default line format: timestamp | level | logger | message
_DEFAULT_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_HANDLER_NAME = "couriertrack-console"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(level: Optional[Union[int, str]]) -> int:
    """
    Accepts logging levels as int or str (e.g., 'INFO', 'debug').
    Falls back to LOG_LEVEL env, then WARNING.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL")
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return _LEVELS.get(level.strip().upper(), logging.WARNING)
    return logging.WARNING


def get_logger(
    name: str = "couriertrack",
    *,
    level: Optional[Union[int, str]] = None,
    fmt: str = _DEFAULT_FMT,
    datefmt: str = _DEFAULT_DATEFMT,
) -> logging.Logger:
    """
    Configure a logger writing to stderr. Safe to call multiple times: the
    previous console handler is replaced, so handlers never pile up and always
    write to the current stderr.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))

    for h in list(logger.handlers):
        if h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)

    sh = logging.StreamHandler(stream=sys.stderr)
    sh.set_name(_HANDLER_NAME)
    sh.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    sh.setLevel(logger.level)
    logger.addHandler(sh)
    return logger
