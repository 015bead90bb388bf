"""Manual live check against a deployed spot-sharing backend.

Run from the repository root with:
  PYTHONPATH=src SPOTSHARE_BASE_URL=https://script.google.com/macros/s/.../exec \
  SPOTSHARE_ACCESS_CODE=... python scripts/live_check.py

Filters and ordering mirror the dashboard:
  python scripts/live_check.py --date 2024-06-01 --size Compact --sort soonest

Optional environment variables:
  SPOTSHARE_ACCESS_CODE (not needed while a cached session is still valid)
  SPOTSHARE_SESSION_FILE

The script never prints full phone numbers or email addresses.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from pyspotshare import Client, Filters, Spot
from pyspotshare.availability import SORT_OPTIONS, results_summary
from pyspotshare.civil_time import days_between, format_display
from pyspotshare.const import FLOOR_OPTIONS, SIZE_OPTIONS
from pyspotshare.util import mask_email, mask_phone

_LOGGER = logging.getLogger(__name__)


def _require_value(name: str, value: str | None) -> str:
    if not value:
        print(f"Missing required value: {name}", file=sys.stderr)
        raise SystemExit(2)
    return value


def _format_spot(spot: Spot) -> str:
    days = days_between(spot.available_from, spot.available_to)
    return (
        f"{spot.id} | {spot.size} | {spot.floor} | {spot.venmo} | "
        f"{mask_email(spot.email)} | {mask_phone(spot.phone)} | "
        f"{format_display(spot.available_from)} -> {format_display(spot.available_to)} | "
        f"{days}d @ ${spot.price_per_day}/day"
    )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List spots from a spot-sharing backend.")
    parser.add_argument("--base-url", dest="base_url", help="Backend URL.")
    parser.add_argument("--access-code", dest="access_code", help="Shared access code.")
    parser.add_argument("--session-file", dest="session_file", help="Session cache path.")
    parser.add_argument("--date", default="", help="Only spots available on YYYY-MM-DD.")
    parser.add_argument("--venmo", default="", help="Owner Venmo handle contains this text.")
    parser.add_argument("--size", default="", choices=("", *SIZE_OPTIONS))
    parser.add_argument("--floor", default="", choices=("", *FLOOR_OPTIONS))
    parser.add_argument(
        "--sort",
        default="random",
        choices=[mode for mode, _label in SORT_OPTIONS],
        help="Display order.",
    )
    parser.add_argument(
        "--logout",
        action="store_true",
        help="Clear the cached session after listing.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING).",
    )
    return parser.parse_args()


async def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=args.log_level.upper())
    base_url = _require_value("base_url", args.base_url or os.getenv("SPOTSHARE_BASE_URL"))
    access_code = args.access_code or os.getenv("SPOTSHARE_ACCESS_CODE")
    session_file = args.session_file or os.getenv("SPOTSHARE_SESSION_FILE")
    filters = Filters(date=args.date, venmo=args.venmo, size=args.size, floor=args.floor)

    try:
        async with Client(
            base_url=base_url,
            session_path=Path(session_file) if session_file else None,
        ) as client:
            state = await client.check_access()
            _LOGGER.info("Cached session state: %s", state)
            if state != "valid":
                code = _require_value("access_code", access_code)
                result = await client.enter_code(code)
                if not result.success:
                    print(f"Access denied: {result.error}", file=sys.stderr)
                    return 1
            loaded = await client.load_spots()
            if not loaded.success:
                print(f"Error: {loaded.error or 'Could not load spots'}", file=sys.stderr)
                return 1
            spots = client.visible_spots(filters, args.sort)
            if args.logout:
                client.logout()
    except Exception as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    print(results_summary(len(spots), filters))
    for spot in spots:
        print(f"- {_format_spot(spot)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
