"""Public data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .const import DEFAULT_FROM_TIME, DEFAULT_PRICE_PER_DAY, DEFAULT_TO_TIME

SpotSize = Literal["Full Size", "Compact", "Motorcycle"]
Floor = Literal["P1", "P2", "P3"]
SpotStatus = Literal["available", "rented"]
SortMode = Literal["random", "soonest", "longest"]


@dataclass(frozen=True, slots=True)
class CivilParts:
    date: str
    time: str


@dataclass(frozen=True, slots=True)
class Spot:
    """A listed parking spot. The PIN is write-only and never mapped back."""

    id: str
    venmo: str
    email: str
    phone: str
    spot_number: str
    size: SpotSize
    floor: Floor
    available_from: datetime
    available_to: datetime
    price_per_day: int
    status: SpotStatus = "available"
    notes: str = ""


@dataclass(frozen=True, slots=True)
class Session:
    code: str
    version: int
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Filters:
    date: str = ""
    venmo: str = ""
    size: str = ""
    floor: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.date or self.venmo or self.size or self.floor)

    def cleared(self) -> Filters:
        return Filters()


@dataclass(frozen=True, slots=True)
class RentalWindow:
    from_date: str
    from_time: str
    to_date: str
    to_time: str


@dataclass(frozen=True, slots=True)
class RenterInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    screenshot: str | None = None


@dataclass(frozen=True, slots=True)
class BookingQuote:
    start: datetime
    end: datetime
    hours: float
    days: int
    total: int


@dataclass(frozen=True, slots=True)
class RentalConfirmation:
    spot_number: str
    owner_phone: str


@dataclass(frozen=True, slots=True)
class SpotEdit:
    """Owner-editable fields of an existing listing."""

    venmo: str = ""
    email: str = ""
    phone: str = ""
    spot_number: str = ""
    size: SpotSize = "Full Size"
    floor: Floor = "P1"
    notes: str = ""
    from_date: str = ""
    from_time: str = DEFAULT_FROM_TIME
    to_date: str = ""
    to_time: str = DEFAULT_TO_TIME
    price_per_day: int = DEFAULT_PRICE_PER_DAY


@dataclass(frozen=True, slots=True)
class SpotDraft:
    """A new listing as entered by the owner, including its PIN."""

    venmo: str = ""
    email: str = ""
    phone: str = ""
    spot_number: str = ""
    size: SpotSize = "Full Size"
    floor: Floor = "P1"
    notes: str = ""
    from_date: str = ""
    from_time: str = DEFAULT_FROM_TIME
    to_date: str = ""
    to_time: str = DEFAULT_TO_TIME
    price_per_day: int = DEFAULT_PRICE_PER_DAY
    pin: str = ""


@dataclass(frozen=True, slots=True)
class ActionResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class AccessResult:
    success: bool
    version: int | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class AddSpotResult:
    success: bool
    id: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RentResult:
    success: bool
    spot_number: str | None = None
    owner_phone: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class SpotsResult:
    success: bool
    spots: tuple[Spot, ...] = field(default_factory=tuple)
    error: str | None = None
