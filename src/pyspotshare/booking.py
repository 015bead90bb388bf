"""Rental window admission and pricing."""

from __future__ import annotations

from datetime import datetime, tzinfo
from urllib.parse import quote, urlencode

from .civil_time import (
    CIVIL_TZ,
    combine,
    days_between,
    format_display,
    hours_between,
    is_in_past,
    now_parts,
    to_civil_parts,
)
from .const import TIMEZONE_LABEL, VENMO_PAY_URL
from .exceptions import ValidationError
from .models import BookingQuote, RentalWindow, RenterInfo, Spot
from .util import is_valid_email, is_valid_phone, venmo_username

MISSING_FIELDS_MESSAGE = "Please fill in all date and time fields"
PAST_START_MESSAGE = f"Rental start time cannot be in the past ({TIMEZONE_LABEL} timezone)"
END_BEFORE_START_MESSAGE = "End time must be after start time"
INCOMPLETE_RENTER_MESSAGE = "Please fill in all fields correctly and upload a screenshot"


def check_rental_window(
    spot: Spot,
    window: RentalWindow,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> str | None:
    """Return the rejection message for a candidate window, or ``None``.

    Checks run in a fixed order and the first failure wins, so a given bad
    window always reports the same single message.
    """
    if not (window.from_date and window.from_time and window.to_date and window.to_time):
        return MISSING_FIELDS_MESSAGE
    if is_in_past(window.from_date, window.from_time, now=now, tz=tz):
        return PAST_START_MESSAGE
    start = combine(window.from_date, window.from_time, tz=tz)
    end = combine(window.to_date, window.to_time, tz=tz)
    if start is None or end is None:
        return MISSING_FIELDS_MESSAGE
    if start < spot.available_from:
        return f"Cannot start before {format_display(spot.available_from, tz=tz)}"
    if end > spot.available_to:
        return f"Cannot end after {format_display(spot.available_to, tz=tz)}"
    if start >= end:
        return END_BEFORE_START_MESSAGE
    return None


def quote_rental(
    spot: Spot,
    window: RentalWindow,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> BookingQuote:
    """Admit a window and price it, raising ``ValidationError`` otherwise."""
    error = check_rental_window(spot, window, now=now, tz=tz)
    if error is not None:
        raise ValidationError(error, field="window")
    start = combine(window.from_date, window.from_time, tz=tz)
    end = combine(window.to_date, window.to_time, tz=tz)
    hours = hours_between(start, end, tz=tz)
    days = days_between(start, end, tz=tz)
    return BookingQuote(
        start=start,
        end=end,
        hours=hours,
        days=days,
        total=days * spot.price_per_day,
    )


def initial_rental_window(
    spot: Spot,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> RentalWindow:
    """Default window for a new rental: the whole spot, starting no earlier than now."""
    spot_from = to_civil_parts(spot.available_from, tz=tz)
    spot_to = to_civil_parts(spot.available_to, tz=tz)
    current = now_parts(now=now, tz=tz)
    from_date, from_time = spot_from.date, spot_from.time
    if spot_from.date < current.date:
        from_date, from_time = current.date, current.time
    elif spot_from.date == current.date and spot_from.time < current.time:
        from_time = current.time
    return RentalWindow(
        from_date=from_date,
        from_time=from_time,
        to_date=spot_to.date,
        to_time=spot_to.time,
    )


def from_time_min(
    spot: Spot,
    window: RentalWindow,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> str | None:
    current = now_parts(now=now, tz=tz)
    spot_from = to_civil_parts(spot.available_from, tz=tz)
    if window.from_date == current.date:
        if spot_from.date == current.date and spot_from.time > current.time:
            return spot_from.time
        return current.time
    if window.from_date == spot_from.date:
        return spot_from.time
    return None


def to_time_max(spot: Spot, window: RentalWindow, *, tz: tzinfo = CIVIL_TZ) -> str | None:
    spot_to = to_civil_parts(spot.available_to, tz=tz)
    if window.to_date == spot_to.date:
        return spot_to.time
    return None


def renter_errors(renter: RenterInfo) -> dict[str, str]:
    """Inline errors for contact fields that are filled in but malformed."""
    errors: dict[str, str] = {}
    if renter.email and not is_valid_email(renter.email):
        errors["email"] = "Please enter a valid email"
    if renter.phone and not is_valid_phone(renter.phone):
        errors["phone"] = "Please enter a valid 10-digit phone"
    return errors


def can_confirm(renter: RenterInfo) -> bool:
    return bool(
        renter.name
        and renter.email
        and renter.phone
        and renter.screenshot
        and is_valid_email(renter.email)
        and is_valid_phone(renter.phone)
    )


def payment_link(spot: Spot, booking: BookingQuote, *, tz: tzinfo = CIVIL_TZ) -> str:
    """Venmo deep link prefilled with the advisory total. No money moves here."""
    start_label = format_display(booking.start, tz=tz).replace(f" {TIMEZONE_LABEL}", "")
    end_label = format_display(booking.end, tz=tz)
    query = urlencode(
        {
            "txn": "pay",
            "amount": booking.total,
            "note": f"Parking Spot Rental: {start_label} to {end_label}",
        },
        quote_via=quote,
    )
    base = VENMO_PAY_URL.format(username=venmo_username(spot.venmo))
    return f"{base}?{query}"
