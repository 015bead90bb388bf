"""Multi-step rental and manage flows.

Each step is its own record; drafts are turned into backend requests only on
submission. Cancelling discards the draft, and a response that lands after
cancellation is handed back to the caller without touching the wizard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Literal, TypeVar

from .booking import (
    can_confirm,
    check_rental_window,
    initial_rental_window,
    payment_link,
    quote_rental,
    renter_errors,
)
from .exceptions import ValidationError
from .listing import PIN_FORMAT_MESSAGE, edit_from_spot
from .models import (
    ActionResult,
    BookingQuote,
    RentalConfirmation,
    RentalWindow,
    RenterInfo,
    RentResult,
    Spot,
    SpotEdit,
)
from .util import format_phone_number, is_valid_pin

if TYPE_CHECKING:
    from .client import Client

_LOGGER = logging.getLogger(__name__)

INCORRECT_PIN_MESSAGE = "Incorrect PIN"

_StepT = TypeVar("_StepT")


@dataclass(frozen=True, slots=True)
class ChooseWindow:
    window: RentalWindow
    renter: RenterInfo = field(default_factory=RenterInfo)
    step: Literal["window"] = "window"


@dataclass(frozen=True, slots=True)
class EnterRenter:
    window: RentalWindow
    renter: RenterInfo = field(default_factory=RenterInfo)
    step: Literal["renter"] = "renter"


@dataclass(frozen=True, slots=True)
class RentalDone:
    confirmation: RentalConfirmation
    step: Literal["done"] = "done"


@dataclass(frozen=True, slots=True)
class EnterPin:
    pin_error: str | None = None
    step: Literal["pin"] = "pin"


@dataclass(frozen=True, slots=True)
class EditSpot:
    pin: str
    edit: SpotEdit
    step: Literal["edit"] = "edit"


@dataclass(frozen=True, slots=True)
class ManageDone:
    action: Literal["updated", "deleted"]
    step: Literal["done"] = "done"


RentalStep = ChooseWindow | EnterRenter | RentalDone
ManageStep = EnterPin | EditSpot | ManageDone


class _Wizard:
    def __init__(self, client: Client, spot: Spot) -> None:
        self._client = client
        self._spot = spot
        self._closed = False
        self._busy = False

    @property
    def spot(self) -> Spot:
        return self._spot

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def busy(self) -> bool:
        return self._busy

    def _expect(self, state: object, step_type: type[_StepT]) -> _StepT:
        if self._closed:
            raise ValidationError("This flow was cancelled.")
        if not isinstance(state, step_type):
            raise ValidationError(f"Not available at the {getattr(state, 'step', '?')} step.")
        return state

    def _begin(self) -> None:
        if self._busy:
            raise ValidationError("A submission is already in progress.")
        self._busy = True

    def _finish(self, action: str) -> bool:
        """Release the busy flag; ``False`` when the result must be dropped."""
        self._busy = False
        if self._closed:
            _LOGGER.debug("Ignoring %s response for a cancelled flow", action)
            return False
        return True


class RentalWizard(_Wizard):
    """Choose a window, enter renter details, confirm and reveal the spot number."""

    def __init__(self, client: Client, spot: Spot, *, now: datetime | None = None) -> None:
        super().__init__(client, spot)
        self._state: RentalStep = ChooseWindow(window=initial_rental_window(spot, now=now))

    @property
    def state(self) -> RentalStep:
        return self._state

    def set_window(self, window: RentalWindow) -> None:
        current = self._expect(self._state, ChooseWindow)
        self._state = replace(current, window=window)

    def window_error(self, *, now: datetime | None = None) -> str | None:
        current = self._expect(self._state, ChooseWindow | EnterRenter)
        return check_rental_window(self._spot, current.window, now=now)

    def quote(self, *, now: datetime | None = None) -> BookingQuote:
        current = self._expect(self._state, ChooseWindow | EnterRenter)
        return quote_rental(self._spot, current.window, now=now)

    def payment_link(self, *, now: datetime | None = None) -> str:
        return payment_link(self._spot, self.quote(now=now))

    def advance(self, *, now: datetime | None = None) -> EnterRenter:
        current = self._expect(self._state, ChooseWindow)
        error = check_rental_window(self._spot, current.window, now=now)
        if error is not None:
            raise ValidationError(error, field="window")
        self._state = EnterRenter(window=current.window, renter=current.renter)
        return self._state

    def set_renter(self, renter: RenterInfo) -> None:
        current = self._expect(self._state, EnterRenter)
        self._state = replace(current, renter=replace(renter, phone=format_phone_number(renter.phone)))

    def renter_errors(self) -> dict[str, str]:
        current = self._expect(self._state, EnterRenter)
        return renter_errors(current.renter)

    @property
    def can_confirm(self) -> bool:
        return isinstance(self._state, EnterRenter) and can_confirm(self._state.renter)

    def back(self) -> ChooseWindow:
        current = self._expect(self._state, EnterRenter)
        self._state = ChooseWindow(window=current.window, renter=current.renter)
        return self._state

    async def confirm(self, *, now: datetime | None = None) -> RentResult:
        current = self._expect(self._state, EnterRenter)
        self._begin()
        try:
            result = await self._client.rent_spot(self._spot, current.window, current.renter, now=now)
        finally:
            keep = self._finish("rentSpot")
        if keep and result.success:
            self._state = RentalDone(
                confirmation=RentalConfirmation(
                    spot_number=result.spot_number or "",
                    owner_phone=result.owner_phone or "",
                )
            )
        return result

    def cancel(self) -> None:
        self._closed = True
        self._state = ChooseWindow(window=RentalWindow("", "", "", ""))


class ManageWizard(_Wizard):
    """Verify the owner's PIN, then edit or delete the listing."""

    def __init__(self, client: Client, spot: Spot) -> None:
        super().__init__(client, spot)
        self._state: ManageStep = EnterPin()

    @property
    def state(self) -> ManageStep:
        return self._state

    async def verify(self, pin: str) -> ActionResult:
        self._expect(self._state, EnterPin)
        if not is_valid_pin(pin):
            self._state = EnterPin(pin_error=PIN_FORMAT_MESSAGE)
            return ActionResult(success=False, error=PIN_FORMAT_MESSAGE)
        self._begin()
        try:
            result = await self._client.verify_pin(self._spot.id, pin)
        finally:
            keep = self._finish("verifyPin")
        if not keep:
            return result
        if result.success:
            self._state = EditSpot(pin=pin, edit=edit_from_spot(self._spot))
        else:
            self._state = EnterPin(pin_error=INCORRECT_PIN_MESSAGE)
        return result

    def set_edit(self, edit: SpotEdit) -> None:
        current = self._expect(self._state, EditSpot)
        self._state = replace(current, edit=edit)

    async def save(self) -> ActionResult:
        current = self._expect(self._state, EditSpot)
        self._begin()
        try:
            result = await self._client.update_spot(self._spot.id, current.pin, current.edit)
        finally:
            keep = self._finish("updateSpot")
        if keep and result.success:
            self._state = ManageDone(action="updated")
        return result

    async def delete(self) -> ActionResult:
        current = self._expect(self._state, EditSpot)
        self._begin()
        try:
            result = await self._client.delete_spot(self._spot.id, current.pin)
        finally:
            keep = self._finish("deleteSpot")
        if keep and result.success:
            self._state = ManageDone(action="deleted")
        return result

    def cancel(self) -> None:
        self._closed = True
        self._state = EnterPin()
