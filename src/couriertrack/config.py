"""Environment-backed configuration for couriertrack.

Credentials and settings come from the process environment, optionally
populated from a ``.env`` file via python-dotenv.
"""
from __future__ import annotations

import os
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Iterable, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import find_dotenv, load_dotenv

TIMEZONE_ENV = "COURIERTRACK_TIMEZONE"


class ConfigError(RuntimeError):
    """Raised when a configuration value is present but unusable."""


def load_env(dotenv_path: Optional[Union[str, Path]] = None, *, override: bool = False) -> Optional[Path]:
    """
    Load variables from ``dotenv_path`` or the nearest ``.env`` (searching up
    from the CWD). Existing process variables win unless ``override=True``.
    Returns the loaded file, or None when no file was found.
    """
    if dotenv_path is None:
        found = find_dotenv(filename=".env", usecwd=True)
        if not found:
            return None
        path = Path(found)
    else:
        path = Path(dotenv_path)
        if not path.is_file():
            return None
    load_dotenv(dotenv_path=path, override=override)
    return path.resolve()


def missing_env_vars(keys: Iterable[str]) -> List[str]:
    return [k for k in keys if not os.getenv(k)]


def get_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Zone used to read couriers' wall-clock dates and times.

    Uses ``name`` or $COURIERTRACK_TIMEZONE (IANA name, e.g. "America/New_York"),
    falling back to UTC.
    """
    value = (name or os.getenv(TIMEZONE_ENV) or "").strip()
    if not value or value.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown time zone {value!r} in {TIMEZONE_ENV}") from exc
