import json
from datetime import datetime, timezone

import httpx
import pytest

from couriertrack.couriers.base import CourierParseError, TrackingNotFoundError
from couriertrack.couriers.ups import (
    UPSCourier,
    classify_status,
    get_estimated_delivery_date,
    get_location,
    locate_package,
    map_events,
    parse_ups_response,
)
from couriertrack.models import TrackingStatus

NOW = datetime(2024, 3, 10, 8, 0, 0, tzinfo=timezone.utc)


def _ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def _body(package=None, **shipment_extra) -> str:
    shipment = {"inquiryNumber": "1Z5R89390357567127", **shipment_extra}
    if package is not None:
        shipment["package"] = [package]
    return json.dumps({"trackResponse": {"shipment": [shipment]}})


DELIVERED = {
    "location": {
        "address": {
            "city": "ATLANTA",
            "stateProvince": "GA",
            "countryCode": "US",
            "postalCode": "30301",
            "country": "US",
        }
    },
    "status": {"type": "D", "description": "DELIVERED", "code": "KB"},
    "date": "20240115",
    "time": "143000",
}

ATTEMPTED = {
    "location": {"address": {"city": "ATLANTA", "stateProvince": "GA", "countryCode": "US"}},
    "status": {
        "type": "EXCEPTION",
        "description": "THE RECEIVER WAS NOT AVAILABLE. A 2ND DELIVERY ATTEMPT WILL BE MADE",
        "code": "48",
    },
    "date": "20240114",
    "time": "101500",
}


# --- end to end ---


def test_parse_two_activities_keeps_order():
    body = _body({"activity": [DELIVERED, ATTEMPTED]})
    info = parse_ups_response(body, now=NOW)

    assert [e.status for e in info.events] == ["DELIVERED", "DELIVERY_ATTEMPTED"]
    first, second = info.events
    assert first.label == "DELIVERED"
    assert first.location == "ATLANTA GA US 30301"
    assert first.date == _ms(2024, 1, 15, 14, 30, 0)
    assert second.location == "ATLANTA GA US"
    assert second.date == _ms(2024, 1, 14, 10, 15, 0)
    assert info.estimated_delivery_date is None


def test_parse_with_estimated_delivery_window():
    package = {
        "activity": [
            {"status": {"type": "I", "description": "Departed from Facility"},
             "date": "20240114", "time": "220000"}
        ],
        "deliveryDate": [{"type": "SDD", "date": "20240116"}],
        "deliveryTime": {"type": "EDW", "startTime": "090000", "endTime": "130000"},
    }
    info = parse_ups_response(_body(package), now=NOW)
    assert info.estimated_delivery_date == _ms(2024, 1, 16, 13, 0, 0)
    assert info.events[0].status == TrackingStatus.IN_TRANSIT


def test_parse_accepts_bytes():
    info = parse_ups_response(_body({"activity": [DELIVERED]}).encode(), now=NOW)
    assert len(info.events) == 1


def test_parse_rejects_undecodable_bytes():
    body = _body({"activity": [DELIVERED]}).encode().replace(b"DELIVERED", b"DELIV\xffERED", 1)
    with pytest.raises(CourierParseError, match="UTF-8"):
        parse_ups_response(body, now=NOW)


def test_courier_parse_reads_response_text():
    response = httpx.Response(200, text=_body({"activity": [DELIVERED]}))
    info = UPSCourier().parse(response, now=NOW, tz=timezone.utc)
    assert info.events[0].status == "DELIVERED"
    assert info.events[0].date == _ms(2024, 1, 15, 14, 30, 0)


def test_models_are_frozen():
    info = parse_ups_response(_body({"activity": [DELIVERED]}), now=NOW)
    with pytest.raises(Exception):
        info.events[0].label = "changed"


# --- shipment locator ---


def test_not_found_warning_raises():
    body = _body(
        {"activity": []},
        warnings=[{"code": "TW0001", "message": "Tracking Information Not Found"}],
    )
    with pytest.raises(TrackingNotFoundError) as ei:
        parse_ups_response(body, now=NOW)
    err = ei.value
    assert err.body == body
    assert err.shipment["warnings"][0]["code"] == "TW0001"
    assert "Full response body" in str(err)


def test_other_warnings_are_not_fatal():
    body = _body({"activity": [DELIVERED]}, warnings=[{"message": "Something else"}])
    assert len(parse_ups_response(body, now=NOW).events) == 1


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"trackResponse": {}},
        {"trackResponse": {"shipment": []}},
        {"trackResponse": {"shipment": "nope"}},
        [],
    ],
)
def test_missing_shipment_raises(data):
    with pytest.raises(TrackingNotFoundError) as ei:
        locate_package(data, body="raw")
    assert ei.value.shipment is None
    assert ei.value.body == "raw"


def test_shipment_without_package_raises():
    with pytest.raises(TrackingNotFoundError):
        parse_ups_response(_body(), now=NOW)


def test_invalid_json_raises_parse_error():
    with pytest.raises(CourierParseError) as ei:
        parse_ups_response("<html>Service Unavailable</html>")
    assert not isinstance(ei.value, TrackingNotFoundError)
    assert ei.value.body == "<html>Service Unavailable</html>"


# --- event mapper ---


def test_missing_activity_list_gives_no_events():
    assert map_events({}) == []
    assert map_events({"activity": None}) == []
    info = parse_ups_response(_body({"deliveryDate": []}), now=NOW)
    assert info.events == []
    assert not info.has_events


def test_non_list_activity_is_malformed():
    with pytest.raises(CourierParseError):
        map_events({"activity": {"status": {"type": "D"}}})
    with pytest.raises(CourierParseError) as ei:
        parse_ups_response(_body({"activity": "oops"}), now=NOW)
    assert ei.value.body is not None


def test_empty_activity_still_yields_event():
    events = map_events({"activity": [{}, None, "junk"]}, now=NOW)
    assert len(events) == 3
    for e in events:
        assert e.status == "UNAVAILABLE"
        assert e.label is None
        assert e.location is None
        assert e.date is None


def test_partial_activity_degrades_per_field():
    activity = {"status": {"type": "I"}, "date": "2024011X", "time": "143000"}
    (event,) = map_events({"activity": [activity]}, now=NOW)
    assert event.status == "IN_TRANSIT"
    assert event.label is None
    assert event.location is None
    assert event.date is None


def test_time_only_activity_uses_clock():
    (event,) = map_events({"activity": [{"time": "143000"}]}, now=NOW)
    assert event.date == _ms(2024, 3, 10, 14, 30, 0)


# --- status classifier ---


def test_exception_with_delivery_attempt_overrides_table():
    table = {"EXCEPTION": TrackingStatus.EXCEPTION}
    assert classify_status(ATTEMPTED, table) == TrackingStatus.DELIVERY_ATTEMPTED


def test_ups_exception_type_follows_table():
    table = {"X": TrackingStatus.EXCEPTION}
    activity = {"status": {"type": "X", "description": "FINAL DELIVERY ATTEMPT MADE"}}
    assert classify_status(activity, table) == TrackingStatus.EXCEPTION
    assert classify_status(activity) == TrackingStatus.EXCEPTION


def test_delivery_attempt_match_is_case_sensitive():
    table = {"EXCEPTION": TrackingStatus.EXCEPTION}
    activity = {"status": {"type": "EXCEPTION", "description": "delivery attempt made"}}
    assert classify_status(activity, table) == TrackingStatus.EXCEPTION


def test_exception_without_attempt_text_uses_table():
    table = {"EXCEPTION": TrackingStatus.EXCEPTION}
    activity = {"status": {"type": "EXCEPTION", "description": "ADDRESS CORRECTED"}}
    assert classify_status(activity, table) == TrackingStatus.EXCEPTION


def test_attempt_text_on_other_type_is_ignored():
    activity = {"status": {"type": "I", "description": "DELIVERY ATTEMPT SCHEDULED"}}
    assert classify_status(activity) == TrackingStatus.IN_TRANSIT


@pytest.mark.parametrize("code", ["ZZ", "", 42])
def test_unknown_type_is_unavailable(code):
    assert classify_status({"status": {"type": code}}) == TrackingStatus.UNAVAILABLE


def test_missing_type_is_unavailable():
    assert classify_status({"status": {"description": "DELIVERED"}}) == TrackingStatus.UNAVAILABLE
    assert classify_status({}) == TrackingStatus.UNAVAILABLE


def test_label_survives_unknown_status():
    activity = {"status": {"type": "??", "description": "Mystery scan"}}
    (event,) = map_events({"activity": [activity]}, now=NOW)
    assert event.status == "UNAVAILABLE"
    assert event.label == "Mystery scan"


# --- location ---


def test_location_skips_empty_components():
    activity = {
        "location": {
            "address": {"city": "", "stateProvince": None, "countryCode": "US", "postalCode": "30301"}
        }
    }
    assert get_location(activity) == "US 30301"


def test_location_fixed_order():
    activity = {
        "location": {
            "address": {"postalCode": "H3B", "countryCode": "CA", "stateProvince": "QC", "city": "MONTREAL"}
        }
    }
    assert get_location(activity) == "MONTREAL QC CA H3B"


def test_location_absent_when_empty():
    assert get_location({"location": {"address": {"city": "", "countryCode": ""}}}) is None
    assert get_location({"location": {}}) is None
    assert get_location({}) is None


# --- estimated delivery date ---


def test_estimated_delivery_requires_edw():
    package = {
        "deliveryDate": [{"date": "20240116"}],
        "deliveryTime": {"type": "CMT", "endTime": "103000"},
    }
    assert get_estimated_delivery_date(package, now=NOW) is None
    assert get_estimated_delivery_date({"deliveryDate": [{"date": "20240116"}]}, now=NOW) is None


def test_estimated_delivery_date_without_end_time():
    package = {"deliveryDate": [{"date": "20240116"}], "deliveryTime": {"type": "EDW"}}
    assert get_estimated_delivery_date(package, now=NOW) == _ms(2024, 1, 16)


def test_estimated_delivery_without_any_date():
    package = {"deliveryDate": [], "deliveryTime": {"type": "EDW"}}
    assert get_estimated_delivery_date(package, now=NOW) is None
