"""UPS courier using the Track API (``/track/v1/details``).

The endpoint requires an access license number sent as the
``AccessLicenseNumber`` header.

Response shape (abridged):
{
  "trackResponse": {
    "shipment": [
      {
        "warnings": [{"code": "TW0001", "message": "Tracking Information Not Found"}],
        "package": [
          {
            "deliveryDate": [{"type": "SDD", "date": "20240116"}],
            "deliveryTime": {"type": "EDW", "startTime": "090000", "endTime": "130000"},
            "activity": [
              {
                "location": {"address": {"city": "...", "stateProvince": "...",
                                         "countryCode": "US", "postalCode": "..."}},
                "status": {"type": "D", "description": "DELIVERED", "code": "KB"},
                "date": "20240115",
                "time": "143000"
              }
            ]
          }
        ]
      }
    ]
  }
}
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, tzinfo
from typing import Any, List, Mapping, Optional, Union
from urllib.parse import quote

import httpx

from ..codes import STATUS_CODES, lookup_status
from ..config import get_timezone
from ..models import TrackingEvent, TrackingInfo, TrackingStatus
from ..utils import as_text, compose_timestamp, dig
from .base import CourierBase, CourierParseError, TrackingNotFoundError

logger = logging.getLogger(__name__)

BASE_URL = "https://onlinetools.ups.com/track/v1/details/"
LICENSE_ENV_VAR = "UPS_ACCESS_LICENSE_NUMBER"

NOT_FOUND_WARNING = "Tracking Information Not Found"
EXCEPTION_TYPE = "EXCEPTION"
DELIVERY_ATTEMPT_MARKER = "DELIVERY ATTEMPT"
ESTIMATED_DELIVERY_WINDOW = "EDW"
LOCATION_FIELDS = ("city", "stateProvince", "countryCode", "postalCode")


def _not_found(shipment: Any, body: Optional[str]) -> TrackingNotFoundError:
    message = (
        "Error retrieving UPS tracking.\n\n"
        f"Shipment:\n{json.dumps(shipment)}\n\n"
        f"Full response body:\n{body}"
    )
    return TrackingNotFoundError(message, shipment=shipment, body=body)


def locate_package(data: Any, *, body: Optional[str] = None) -> Any:
    """Return ``trackResponse.shipment[0].package[0]``.

    Raises TrackingNotFoundError when the shipment is missing, carries the
    "not found" warning, or has no package.
    """
    shipment = dig(data, "trackResponse", "shipment", 0)
    if shipment is None:
        logger.warning("UPS response has no shipment")
        raise _not_found(shipment, body)
    if dig(shipment, "warnings", 0, "message") == NOT_FOUND_WARNING:
        logger.warning("UPS reported: %s", NOT_FOUND_WARNING)
        raise _not_found(shipment, body)

    package = dig(shipment, "package", 0)
    if package is None:
        logger.warning("UPS shipment has no package")
        raise _not_found(shipment, body)
    return package


def classify_status(
    activity: Any,
    codes: Optional[Mapping[str, TrackingStatus]] = None,
) -> TrackingStatus:
    """Normalized status for one activity.

    Failed delivery attempts reported as exceptions become DELIVERY_ATTEMPTED;
    every other type goes through the status-code table (UNAVAILABLE when
    unknown or missing).
    """
    status_type = dig(activity, "status", "type")
    description = dig(activity, "status", "description")
    if (
        status_type == EXCEPTION_TYPE
        and isinstance(description, str)
        and DELIVERY_ATTEMPT_MARKER in description
    ):
        return TrackingStatus.DELIVERY_ATTEMPTED

    table = STATUS_CODES["ups"] if codes is None else codes
    return lookup_status(status_type, table)


def get_location(activity: Any) -> Optional[str]:
    address = dig(activity, "location", "address")
    parts = [as_text(dig(address, field)) for field in LOCATION_FIELDS]
    parts = [p for p in parts if p]
    return " ".join(parts) if parts else None


def to_tracking_event(
    activity: Any,
    *,
    codes: Optional[Mapping[str, TrackingStatus]] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> TrackingEvent:
    return TrackingEvent(
        status=classify_status(activity, codes),
        label=as_text(dig(activity, "status", "description")),
        location=get_location(activity),
        date=compose_timestamp(
            dig(activity, "date"), dig(activity, "time"), now=now, tz=tz
        ),
    )


def map_events(
    package: Any,
    *,
    codes: Optional[Mapping[str, TrackingStatus]] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> List[TrackingEvent]:
    """One TrackingEvent per activity, in the order UPS lists them.

    A package without an activity list has no events; an activity value that
    is not a list is malformed.
    """
    activities = dig(package, "activity")
    if activities is None:
        logger.debug("UPS package has no activity list")
        return []
    if not isinstance(activities, list):
        raise CourierParseError(
            f"UPS package activity should be a list, got {type(activities).__name__}"
        )
    return [
        to_tracking_event(activity, codes=codes, now=now, tz=tz)
        for activity in activities
    ]


def get_estimated_delivery_date(
    package: Any,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[int]:
    """Estimated delivery for packages carrying an estimated delivery window.

    Uses the first deliveryDate entry and the window's end time.
    """
    if dig(package, "deliveryTime", "type") != ESTIMATED_DELIVERY_WINDOW:
        return None
    return compose_timestamp(
        dig(package, "deliveryDate", 0, "date"),
        dig(package, "deliveryTime", "endTime"),
        now=now,
        tz=tz,
    )


def parse_ups_response(
    body: Union[str, bytes],
    *,
    codes: Optional[Mapping[str, TrackingStatus]] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> TrackingInfo:
    """Normalize a UPS Track API response body into TrackingInfo."""
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CourierParseError(f"UPS response is not valid UTF-8: {exc}") from exc
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise CourierParseError(f"UPS response is not valid JSON: {exc}", body=body) from exc

    package = locate_package(data, body=body)
    try:
        events = map_events(package, codes=codes, now=now, tz=tz)
    except CourierParseError as exc:
        raise CourierParseError(str(exc), body=body) from exc
    estimated = get_estimated_delivery_date(package, now=now, tz=tz)

    logger.debug("UPS response normalized: %d event(s), estimated=%s", len(events), estimated)
    return TrackingInfo(events=events, estimated_delivery_date=estimated)


class UPSCourier(CourierBase):
    name = "UPS"
    code = "ups"
    required_env_vars = (LICENSE_ENV_VAR,)
    tracking_number_couriers = ("ups",)

    def _headers(self) -> dict:
        return self.build_headers(
            extra={"AccessLicenseNumber": self.ensure_credential(LICENSE_ENV_VAR)}
        )

    def request(
        self, tracking_number: str, *, client: Optional[httpx.Client] = None
    ) -> httpx.Response:
        return self.get(BASE_URL + quote(tracking_number), headers=self._headers(), client=client)

    async def request_async(
        self, tracking_number: str, *, client: Optional[httpx.AsyncClient] = None
    ) -> httpx.Response:
        return await self.aget(
            BASE_URL + quote(tracking_number), headers=self._headers(), client=client
        )

    def parse(
        self,
        response: Union[httpx.Response, str],
        *,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> TrackingInfo:
        body = response.text if isinstance(response, httpx.Response) else response
        return parse_ups_response(
            body, now=now, tz=tz if tz is not None else get_timezone()
        )
