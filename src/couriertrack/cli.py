import argparse
import sys
from typing import Optional

import httpx

from .config import ConfigError, load_env
from .couriers import REGISTRY, get_courier_codes
from .couriers.base import CourierError, TrackingNotFoundError
from .logging_config import get_logger
from .models import TrackingInfo
from .tracker import resolve_courier
from .utils import from_epoch_ms, serialize_dt


def cmd_track(args: argparse.Namespace) -> int:
    logger = get_logger(level="DEBUG" if args.verbose else None)
    try:
        courier = resolve_courier(args.number, args.courier)
        courier.ensure_configured()
        info = courier.track(args.number)
    except TrackingNotFoundError as exc:
        logger.debug("Not found details: %s", exc)
        print(f"No tracking information found for {args.number}", file=sys.stderr)
        return 1
    except (CourierError, ConfigError, httpx.HTTPError) as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(info.model_dump_json(indent=2, exclude_none=True))
    else:
        print_human(courier.name, args.number, info)
    return 0


def cmd_couriers(_args: argparse.Namespace) -> int:
    for code in get_courier_codes():
        print(f"{code}\t{REGISTRY[code].name}")
    return 0


def _fmt_ms(ms: Optional[int]) -> str:
    return serialize_dt(from_epoch_ms(ms)) if ms is not None else "unknown time"


def print_human(courier_name: str, tracking_number: str, info: TrackingInfo) -> None:
    print(f"Courier: {courier_name}")
    print(f"Tracking number: {tracking_number}")
    if info.estimated_delivery_date is not None:
        print(f"Estimated delivery: {_fmt_ms(info.estimated_delivery_date)}")

    if not info.has_events:
        print("No tracking events")
        return

    print("\nTracking Events:")
    for event in info.events:
        print(f"- {_fmt_ms(event.date)}: {event.status or 'UNKNOWN'}")
        if event.label:
            print(f"  {event.label}")
        if event.location:
            print(f"  Location: {event.location}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="couriertrack", description="Normalized parcel tracking CLI."
    )
    subparsers = parser.add_subparsers(dest="command")

    p_track = subparsers.add_parser("track", help="Track a parcel")
    p_track.add_argument("number", help="Tracking number")
    p_track.add_argument(
        "--courier",
        "-c",
        choices=get_courier_codes(),
        default=None,
        help="Courier code; detected from the tracking number when omitted",
    )
    p_track.add_argument("--json", action="store_true", help="Output normalized JSON")
    p_track.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug details to stderr",
    )
    p_track.set_defaults(func=cmd_track)

    p_couriers = subparsers.add_parser("couriers", help="List supported couriers")
    p_couriers.set_defaults(func=cmd_couriers)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    # Load environment variables from .env if present
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
