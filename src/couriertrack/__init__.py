"""Normalize courier tracking responses into one tracking model."""

__version__ = "0.1.0"

from .models import TrackingEvent, TrackingInfo, TrackingStatus
from .tracker import detect_courier, track, track_async

__all__ = [
    "TrackingEvent",
    "TrackingInfo",
    "TrackingStatus",
    "detect_courier",
    "track",
    "track_async",
]
