from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Optional, Iterable, Union
import asyncio
import re
import time

import httpx

# yyyyMMdd
_DATE_RE = re.compile(r"(\d{4})(\d{2})(\d{2})")
# Hmmss, the hour may drop its leading zero
_TIME_RE = re.compile(r"(2[0-3]|[01]?\d)([0-5]\d)([0-5]\d)")


def to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware UTC.

    If the datetime is naive (no tzinfo), assume it is UTC and attach tzinfo=UTC.
    If it is aware, convert to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def serialize_dt(dt: datetime) -> str:
    """Serialize datetime as ISO-8601 with trailing 'Z' for UTC."""
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def _component(value: Any) -> str:
    return as_text(value) or ""


def compose_timestamp(
    date: Any,
    time_of_day: Any,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[int]:
    """Combine a ``yyyyMMdd`` date and an ``Hmmss`` time into epoch milliseconds.

    Either side may be missing:
    - date only -> midnight of that date
    - time only -> that time on the current day (``now``, defaults to the clock)
    - neither -> None

    Malformed components or impossible dates also yield None. Wall-clock values
    are read in ``tz`` (UTC when omitted).
    """
    date_part = _component(date)
    time_part = _component(time_of_day)
    if not date_part and not time_part:
        return None

    zone = tz or timezone.utc
    base = to_utc(now).astimezone(zone) if now is not None else datetime.now(zone)
    year, month, day = base.year, base.month, base.day
    hour = minute = second = 0

    if date_part:
        m = _DATE_RE.fullmatch(date_part)
        if m is None:
            return None
        year, month, day = (int(g) for g in m.groups())
    if time_part:
        m = _TIME_RE.fullmatch(time_part)
        if m is None:
            return None
        hour, minute, second = (int(g) for g in m.groups())

    try:
        dt = datetime(year, month, day, hour, minute, second, tzinfo=zone)
    except ValueError:
        return None
    return int(dt.timestamp()) * 1000


def get_with_retries(
    url: str,
    *,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: float = 20.0,
    max_attempts: int = 3,
    backoff_base: float = 0.5,
    status_forcelist: Iterable[int] = (500, 502, 503, 504),
    client: Optional[httpx.Client] = None,
) -> httpx.Response:
    """HTTP GET with simple retries for transient errors."""
    attempt = 0
    last_exc: Optional[Exception] = None
    while attempt < max_attempts:
        attempt += 1
        try:
            if client is None:
                with httpx.Client(timeout=timeout) as c:
                    resp = c.get(url, params=params, headers=headers)
            else:
                resp = client.get(url, params=params, headers=headers)
            if resp.status_code in status_forcelist and attempt < max_attempts:
                time.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            if e.response.status_code in status_forcelist and attempt < max_attempts:
                time.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            raise
        except httpx.HTTPError as e:
            last_exc = e
            if attempt < max_attempts:
                time.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            raise
    assert last_exc is not None
    raise last_exc


async def async_get_with_retries(
    url: str,
    *,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: float = 20.0,
    max_attempts: int = 3,
    backoff_base: float = 0.5,
    status_forcelist: Iterable[int] = (500, 502, 503, 504),
    client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """Async HTTP GET with simple retries for transient errors."""
    attempt = 0
    last_exc: Optional[Exception] = None
    while attempt < max_attempts:
        attempt += 1
        try:
            if client is None:
                async with httpx.AsyncClient(timeout=timeout) as ac:
                    resp = await ac.get(url, params=params, headers=headers)
            else:
                resp = await client.get(url, params=params, headers=headers)
            if resp.status_code in status_forcelist and attempt < max_attempts:
                await asyncio.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            if e.response.status_code in status_forcelist and attempt < max_attempts:
                await asyncio.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            raise
        except httpx.HTTPError as e:
            last_exc = e
            if attempt < max_attempts:
                await asyncio.sleep(backoff_base * (2 ** (attempt - 1)))
                continue
            raise
    assert last_exc is not None
    raise last_exc


def dig(obj: Any, *path: Union[str, int]) -> Any:
    """Follow dict keys / list indexes into decoded JSON.

    Returns None as soon as a step is missing or the value has the wrong type.
    """
    for key in path:
        if isinstance(key, int):
            if not isinstance(obj, list) or not 0 <= key < len(obj):
                return None
            obj = obj[key]
        else:
            if not isinstance(obj, dict):
                return None
            obj = obj.get(key)
    return obj


def as_text(value: Any) -> Optional[str]:
    """String form of a scalar JSON value; None for null, bools and containers."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None
