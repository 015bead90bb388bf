from datetime import datetime
from urllib.parse import parse_qs, urlsplit

import pytest

from pyspotshare.booking import (
    END_BEFORE_START_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    PAST_START_MESSAGE,
    can_confirm,
    check_rental_window,
    from_time_min,
    initial_rental_window,
    payment_link,
    quote_rental,
    renter_errors,
    to_time_max,
)
from pyspotshare.civil_time import CIVIL_TZ, combine
from pyspotshare.exceptions import ValidationError
from pyspotshare.models import RentalWindow, RenterInfo, Spot

BEFORE = datetime(2024, 5, 20, 9, 0, tzinfo=CIVIL_TZ)
DURING = datetime(2024, 6, 2, 9, 30, tzinfo=CIVIL_TZ)


def _spot() -> Spot:
    return Spot(
        id="spot-1",
        venmo="@bob",
        email="bob@example.com",
        phone="(555) 123-4567",
        spot_number="B12",
        size="Compact",
        floor="P2",
        available_from=combine("2024-06-01", "08:00"),
        available_to=combine("2024-06-05", "18:00"),
        price_per_day=10,
    )


def _renter(**overrides: str) -> RenterInfo:
    values = {
        "name": "Renter",
        "email": "renter@example.com",
        "phone": "(555) 987-6543",
        "screenshot": "data:image/png;base64,YWJj",
    }
    values.update(overrides)
    return RenterInfo(**values)


def test_past_start_wins_over_range_check() -> None:
    window = RentalWindow("2024-05-30", "08:00", "2024-06-03", "10:00")
    assert check_rental_window(_spot(), window, now=datetime(2024, 6, 2, 9, 0, tzinfo=CIVIL_TZ)) == (
        PAST_START_MESSAGE
    )


def test_past_start_wins_for_unpadded_dates() -> None:
    window = RentalWindow("2024-5-30", "08:00", "2024-06-03", "10:00")
    assert check_rental_window(_spot(), window, now=datetime(2024, 6, 2, 9, 0, tzinfo=CIVIL_TZ)) == (
        PAST_START_MESSAGE
    )


def test_missing_fields() -> None:
    window = RentalWindow("2024-06-02", "", "2024-06-03", "10:00")
    assert check_rental_window(_spot(), window, now=BEFORE) == MISSING_FIELDS_MESSAGE


def test_start_before_spot_window() -> None:
    window = RentalWindow("2024-05-30", "08:00", "2024-06-03", "10:00")
    assert check_rental_window(_spot(), window, now=BEFORE) == (
        "Cannot start before Jun 1, 2024 @ 8:00 AM PST"
    )


def test_end_after_spot_window() -> None:
    window = RentalWindow("2024-06-02", "08:00", "2024-06-06", "10:00")
    assert check_rental_window(_spot(), window, now=BEFORE) == (
        "Cannot end after Jun 5, 2024 @ 6:00 PM PST"
    )


def test_end_must_follow_start() -> None:
    window = RentalWindow("2024-06-02", "10:00", "2024-06-02", "10:00")
    assert check_rental_window(_spot(), window, now=BEFORE) == END_BEFORE_START_MESSAGE


def test_whole_window_is_accepted() -> None:
    window = RentalWindow("2024-06-01", "08:00", "2024-06-05", "18:00")
    assert check_rental_window(_spot(), window, now=BEFORE) is None


def test_quote_rounds_up_to_started_days() -> None:
    window = RentalWindow("2024-06-01", "08:00", "2024-06-02", "09:00")
    quote = quote_rental(_spot(), window, now=BEFORE)
    assert quote.hours == 25.0
    assert quote.days == 2
    assert quote.total == 20
    assert quote.start == combine("2024-06-01", "08:00")


def test_quote_rejects_invalid_window() -> None:
    window = RentalWindow("2024-06-03", "10:00", "2024-06-02", "10:00")
    with pytest.raises(ValidationError) as excinfo:
        quote_rental(_spot(), window, now=BEFORE)
    assert excinfo.value.field == "window"
    assert str(excinfo.value) == END_BEFORE_START_MESSAGE


def test_initial_window_before_spot_opens() -> None:
    assert initial_rental_window(_spot(), now=BEFORE) == RentalWindow(
        "2024-06-01", "08:00", "2024-06-05", "18:00"
    )


def test_initial_window_clamps_start_to_now() -> None:
    assert initial_rental_window(_spot(), now=DURING) == RentalWindow(
        "2024-06-02", "09:30", "2024-06-05", "18:00"
    )


def test_time_bounds() -> None:
    spot = _spot()
    today = RentalWindow("2024-06-02", "10:00", "2024-06-05", "18:00")
    assert from_time_min(spot, today, now=DURING) == "09:30"
    first_day = RentalWindow("2024-06-01", "10:00", "2024-06-04", "18:00")
    assert from_time_min(spot, first_day, now=BEFORE) == "08:00"
    assert from_time_min(spot, today, now=BEFORE) is None
    assert to_time_max(spot, today) == "18:00"
    assert to_time_max(spot, first_day) is None


def test_renter_errors_only_for_filled_fields() -> None:
    assert renter_errors(RenterInfo()) == {}
    errors = renter_errors(RenterInfo(email="nope", phone="555"))
    assert errors == {
        "email": "Please enter a valid email",
        "phone": "Please enter a valid 10-digit phone",
    }


def test_can_confirm() -> None:
    assert can_confirm(_renter()) is True
    assert can_confirm(_renter(name="")) is False
    assert can_confirm(_renter(email="bad")) is False
    assert can_confirm(RenterInfo(name="R", email="r@x.io", phone="5559876543")) is False


def test_payment_link() -> None:
    window = RentalWindow("2024-06-01", "08:00", "2024-06-02", "09:00")
    link = payment_link(_spot(), quote_rental(_spot(), window, now=BEFORE))
    parts = urlsplit(link)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://venmo.com/bob"
    query = parse_qs(parts.query)
    assert query["txn"] == ["pay"]
    assert query["amount"] == ["20"]
    assert query["note"] == [
        "Parking Spot Rental: Jun 1, 2024 @ 8:00 AM to Jun 2, 2024 @ 9:00 AM PST"
    ]
    assert "+" not in parts.query
