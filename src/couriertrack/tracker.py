"""Top-level dispatch: pick a courier for a tracking number and track it."""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from tracking_numbers import get_tracking_number

from .couriers import REGISTRY, get_courier
from .couriers.base import CourierBase, UnknownCourierError
from .models import TrackingInfo

logger = logging.getLogger(__name__)


def detect_courier(tracking_number: str) -> CourierBase:
    """Find the registered courier whose tracking-number format matches."""
    detected = get_tracking_number(tracking_number.strip())
    if detected is None or not detected.valid:
        raise UnknownCourierError(
            f"Could not detect a courier for tracking number {tracking_number!r}"
        )

    for courier in REGISTRY.values():
        if detected.courier.code in courier.tracking_number_couriers:
            logger.debug("Detected courier %s for %s", courier.code, tracking_number)
            return courier
    raise UnknownCourierError(
        f"Tracking number {tracking_number!r} belongs to {detected.courier.name}, "
        "which is not supported"
    )


def resolve_courier(tracking_number: str, courier_code: Optional[str] = None) -> CourierBase:
    if courier_code:
        return get_courier(courier_code)
    return detect_courier(tracking_number)


def track(
    tracking_number: str,
    *,
    courier_code: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> TrackingInfo:
    """Fetch and normalize tracking for one number.

    ``courier_code`` bypasses detection from the number's format.
    """
    courier = resolve_courier(tracking_number, courier_code)
    return courier.track(tracking_number, client=client)


async def track_async(
    tracking_number: str,
    *,
    courier_code: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> TrackingInfo:
    courier = resolve_courier(tracking_number, courier_code)
    return await courier.track_async(tracking_number, client=client)
