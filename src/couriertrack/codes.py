"""Status-code tables mapping courier-specific codes to TrackingStatus.

Tables are read-only lookups; classifiers fall back to UNAVAILABLE for any
code missing here.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .models import TrackingStatus

# UPS Track API activity ``status.type`` values
_UPS: dict[str, TrackingStatus] = {
    "M": TrackingStatus.LABEL_CREATED,  # billing information received
    "MV": TrackingStatus.CANCELLED,  # billing information voided
    "P": TrackingStatus.IN_TRANSIT,  # pickup
    "I": TrackingStatus.IN_TRANSIT,
    "W": TrackingStatus.IN_TRANSIT,  # warehousing
    "O": TrackingStatus.OUT_FOR_DELIVERY,
    "D": TrackingStatus.DELIVERED,
    "DO": TrackingStatus.DELIVERED,  # delivered origin CFS
    "DD": TrackingStatus.DELIVERED,  # delivered destination CFS
    "X": TrackingStatus.EXCEPTION,
    "RS": TrackingStatus.RETURNED,  # returned to shipper
    "NA": TrackingStatus.UNAVAILABLE,
}

STATUS_CODES: Mapping[str, Mapping[str, TrackingStatus]] = MappingProxyType(
    {
        "ups": MappingProxyType(_UPS),
    }
)


def lookup_status(
    code: Optional[str],
    table: Mapping[str, TrackingStatus],
) -> TrackingStatus:
    if not isinstance(code, str):
        return TrackingStatus.UNAVAILABLE
    return table.get(code, TrackingStatus.UNAVAILABLE)
