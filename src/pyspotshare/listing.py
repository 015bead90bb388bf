"""Owner-side listing drafts: validation and conversion to the wire shape."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any

from .civil_time import CIVIL_TZ, combine, format_instant, is_in_past, to_civil_parts
from .const import TIMEZONE_LABEL
from .exceptions import ValidationError
from .models import Spot, SpotDraft, SpotEdit
from .util import (
    format_phone_number,
    is_valid_email,
    is_valid_phone,
    is_valid_pin,
    normalize_venmo_handle,
    venmo_username,
)

REQUIRED = "Required"
WINDOW_ORDER_MESSAGE = "End date/time must be after start date/time"
PAST_START_MESSAGE = f"Start date/time cannot be in the past ({TIMEZONE_LABEL} timezone)"
PRICE_MESSAGE = "Price must be a positive whole number"
PIN_FORMAT_MESSAGE = "Please enter a 4-digit PIN"


def _valid_price(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _window_error(
    from_date: str,
    from_time: str,
    to_date: str,
    to_time: str,
    tz: tzinfo,
) -> str | None:
    start = combine(from_date, from_time, tz=tz)
    end = combine(to_date, to_time, tz=tz)
    if start is None or end is None:
        return REQUIRED
    if start >= end:
        return WINDOW_ORDER_MESSAGE
    return None


def validate_new_listing(
    draft: SpotDraft,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> dict[str, str]:
    """Return field errors for a new listing; empty when it may be submitted.

    A missing field or a bad PIN stops validation with a single form-level
    error, mirroring the order in which the owner sees them.
    """
    required = (
        draft.venmo,
        draft.email,
        draft.phone,
        draft.spot_number,
        draft.from_date,
        draft.from_time,
        draft.to_date,
        draft.to_time,
    )
    if not all(required):
        return {"form": "Please fill in all required fields"}

    errors: dict[str, str] = {}
    if not is_valid_email(draft.email):
        errors["email"] = "Please enter a valid email address"
    if not is_valid_phone(draft.phone):
        errors["phone"] = "Please enter a valid 10-digit phone number"
    if not _valid_price(draft.price_per_day):
        errors["price_per_day"] = PRICE_MESSAGE

    if not is_valid_pin(draft.pin):
        return {"pin": PIN_FORMAT_MESSAGE}
    if is_in_past(draft.from_date, draft.from_time, now=now, tz=tz):
        return {"from_date": PAST_START_MESSAGE}
    if errors:
        return errors

    window_error = _window_error(
        draft.from_date, draft.from_time, draft.to_date, draft.to_time, tz
    )
    if window_error is not None:
        return {"to_date": window_error}
    return {}


def validate_spot_edit(edit: SpotEdit, *, tz: tzinfo = CIVIL_TZ) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not edit.venmo:
        errors["venmo"] = REQUIRED
    if not edit.email:
        errors["email"] = REQUIRED
    elif not is_valid_email(edit.email):
        errors["email"] = "Invalid email"
    if not edit.phone:
        errors["phone"] = REQUIRED
    elif not is_valid_phone(edit.phone):
        errors["phone"] = "Invalid phone"
    if not edit.spot_number:
        errors["spot_number"] = REQUIRED
    if not edit.from_date or not edit.from_time:
        errors["from_date"] = REQUIRED
    if not edit.to_date or not edit.to_time:
        errors["to_date"] = REQUIRED
    if not edit.price_per_day:
        errors["price_per_day"] = REQUIRED
    elif not _valid_price(edit.price_per_day):
        errors["price_per_day"] = PRICE_MESSAGE
    if errors:
        return errors

    window_error = _window_error(edit.from_date, edit.from_time, edit.to_date, edit.to_time, tz)
    if window_error is not None:
        return {"to_date": window_error}
    return {}


def listing_payload(listing: SpotDraft | SpotEdit, *, tz: tzinfo = CIVIL_TZ) -> dict[str, Any]:
    """Convert a validated draft into the backend's spot fields."""
    available_from = combine(listing.from_date, listing.from_time, tz=tz)
    available_to = combine(listing.to_date, listing.to_time, tz=tz)
    if available_from is None or available_to is None:
        raise ValidationError("Availability window is incomplete.", field="from_date")
    payload: dict[str, Any] = {
        "venmo": normalize_venmo_handle(listing.venmo),
        "email": listing.email.strip(),
        "phone": format_phone_number(listing.phone),
        "spotNumber": listing.spot_number.strip(),
        "size": listing.size,
        "floor": listing.floor,
        "notes": listing.notes,
        "availableFrom": format_instant(available_from, tz=tz),
        "availableTo": format_instant(available_to, tz=tz),
        "pricePerDay": listing.price_per_day,
    }
    if isinstance(listing, SpotDraft):
        payload["pin"] = listing.pin
    return payload


def edit_from_spot(spot: Spot, *, tz: tzinfo = CIVIL_TZ) -> SpotEdit:
    from_parts = to_civil_parts(spot.available_from, tz=tz)
    to_parts = to_civil_parts(spot.available_to, tz=tz)
    return SpotEdit(
        venmo=venmo_username(spot.venmo),
        email=spot.email,
        phone=format_phone_number(spot.phone),
        spot_number=spot.spot_number,
        size=spot.size,
        floor=spot.floor,
        notes=spot.notes,
        from_date=from_parts.date,
        from_time=from_parts.time,
        to_date=to_parts.date,
        to_time=to_parts.time,
        price_per_day=spot.price_per_day,
    )
