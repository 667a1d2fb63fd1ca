"""
Universal Pydantic models for courier tracking data.

Every courier's response is normalized into these models, so consumers never
see a courier-specific shape.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class TrackingStatus(str, Enum):
    """Normalized status vocabulary shared by all couriers."""

    LABEL_CREATED = "LABEL_CREATED"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERY_ATTEMPTED = "DELIVERY_ATTEMPTED"
    AVAILABLE_FOR_PICKUP = "AVAILABLE_FOR_PICKUP"
    DELIVERED = "DELIVERED"
    EXCEPTION = "EXCEPTION"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"
    UNAVAILABLE = "UNAVAILABLE"


class TrackingEvent(BaseModel):
    """A single normalized tracking milestone."""

    status: Optional[TrackingStatus] = Field(None, description="Normalized status")
    label: Optional[str] = Field(
        None, description="Courier's human-readable description, verbatim"
    )
    location: Optional[str] = Field(
        None, description="Space-joined address components"
    )
    date: Optional[int] = Field(
        None, description="When the event occurred, epoch milliseconds"
    )

    model_config = ConfigDict(frozen=True, use_enum_values=True)


class TrackingInfo(BaseModel):
    """Normalized tracking history for one tracking number."""

    events: List[TrackingEvent] = Field(
        default_factory=list, description="Events in the courier's original order"
    )
    estimated_delivery_date: Optional[int] = Field(
        None, description="Estimated delivery, epoch milliseconds"
    )

    @property
    def has_events(self) -> bool:
        """Check if any tracking event was reported."""
        return len(self.events) > 0

    model_config = ConfigDict(frozen=True)
