"""Courier registry for couriertrack.

Maps courier codes to their CourierBase implementation so the dispatcher and
the CLI register couriers in one place.
"""
from __future__ import annotations

from .base import CourierBase, UnknownCourierError
from .ups import UPSCourier

REGISTRY: dict[str, CourierBase] = {
    courier.code: courier for courier in (UPSCourier(),)
}


def get_courier(code: str) -> CourierBase:
    try:
        return REGISTRY[code.lower()]
    except KeyError:
        raise UnknownCourierError(
            f"Unknown courier {code!r}. Available: {', '.join(get_courier_codes())}"
        ) from None


def get_courier_codes() -> list[str]:
    return sorted(REGISTRY.keys())
