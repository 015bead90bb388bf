"""Application controller for the parking dashboard."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from pathlib import Path

import aiohttp

from .api import BackendApi
from .availability import select_spots, shuffle_order
from .booking import INCOMPLETE_RENTER_MESSAGE, can_confirm, quote_rental, renter_errors
from .const import DEFAULT_TIMEOUT
from .exceptions import AuthError, ConfigError, ValidationError
from .listing import (
    PIN_FORMAT_MESSAGE,
    listing_payload,
    validate_new_listing,
    validate_spot_edit,
)
from .models import (
    AccessResult,
    ActionResult,
    AddSpotResult,
    Filters,
    RentalWindow,
    RenterInfo,
    RentResult,
    Session,
    SortMode,
    Spot,
    SpotDraft,
    SpotEdit,
    SpotsResult,
)
from .session import GateState, SessionGate, SessionStore
from .util import is_valid_pin, require_id

_LOGGER = logging.getLogger(__name__)


class Client:
    """Owns the backend connection, the session gate and the spot snapshot.

    Every successful mutation re-fetches the full spot list; the client keeps
    no partial state of its own between fetches.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        base_url: str,
        timeout: aiohttp.ClientTimeout | None = None,
        session_path: Path | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ConfigError("base_url must be a non-empty string.")
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._rng = rng
        self._store = SessionStore(session_path)
        self._api: BackendApi | None = None
        self._gate: SessionGate | None = None
        self._spots: tuple[Spot, ...] = ()
        self._shuffled_order: tuple[str, ...] = ()
        self._loading = False

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._api = None
            self._gate = None

    @property
    def api(self) -> BackendApi:
        if self._api is None:
            self._api = BackendApi(
                self._ensure_session(),
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self._api

    @property
    def gate(self) -> SessionGate:
        if self._gate is None:
            self._gate = SessionGate(self._store, self.api)
        return self._gate

    @property
    def spots(self) -> tuple[Spot, ...]:
        return self._spots

    @property
    def loading(self) -> bool:
        return self._loading

    async def check_access(self, *, now: datetime | None = None) -> GateState:
        return await self.gate.check(now=now)

    async def enter_code(self, code: str, *, now: datetime | None = None) -> AccessResult:
        return await self.gate.enter_code(code, now=now)

    def logout(self) -> None:
        if self._gate is None:
            self._store.clear()
        else:
            self._gate.logout()
        self._spots = ()
        self._shuffled_order = ()

    async def load_spots(self) -> SpotsResult:
        self._require_session()
        self._loading = True
        try:
            result = await self.api.get_spots()
        finally:
            self._loading = False
        self._spots = result.spots if result.success else ()
        self._shuffled_order = shuffle_order((spot.id for spot in self._spots), self._rng)
        if not result.success:
            _LOGGER.warning("Could not load spots: %s", result.error)
        return result

    def visible_spots(
        self,
        filters: Filters | None = None,
        sort_mode: SortMode = "random",
    ) -> list[Spot]:
        return select_spots(self._spots, filters, sort_mode, self._shuffled_order)

    def find_spot(self, spot_id: str) -> Spot | None:
        for spot in self._spots:
            if spot.id == spot_id:
                return spot
        return None

    async def list_spot(self, draft: SpotDraft, *, now: datetime | None = None) -> AddSpotResult:
        session = self._require_session()
        errors = validate_new_listing(draft, now=now)
        if errors:
            raise ValidationError(field_errors=errors)
        result = await self.api.add_spot(session.code, listing_payload(draft))
        if result.success:
            await self.load_spots()
        return result

    async def verify_pin(self, spot_id: str, pin: str) -> ActionResult:
        session = self._require_session()
        spot_id = require_id(spot_id, "spot_id")
        if not is_valid_pin(pin):
            raise ValidationError(PIN_FORMAT_MESSAGE, field="pin")
        return await self.api.verify_pin(session.code, spot_id, pin)

    async def update_spot(self, spot_id: str, pin: str, edit: SpotEdit) -> ActionResult:
        session = self._require_session()
        spot_id = require_id(spot_id, "spot_id")
        errors = validate_spot_edit(edit)
        if errors:
            raise ValidationError(field_errors=errors)
        result = await self.api.update_spot(session.code, spot_id, pin, listing_payload(edit))
        if result.success:
            await self.load_spots()
        return result

    async def delete_spot(self, spot_id: str, pin: str) -> ActionResult:
        session = self._require_session()
        spot_id = require_id(spot_id, "spot_id")
        result = await self.api.delete_spot(session.code, spot_id, pin)
        if result.success:
            await self.load_spots()
        return result

    async def rent_spot(
        self,
        spot: Spot,
        window: RentalWindow,
        renter: RenterInfo,
        *,
        now: datetime | None = None,
    ) -> RentResult:
        """Book ``window`` of ``spot``.

        The backend splits the spot around the booked window; the fresh list
        is fetched afterwards.
        """
        session = self._require_session()
        quote = quote_rental(spot, window, now=now)
        if not can_confirm(renter):
            errors = renter_errors(renter) or {"form": INCOMPLETE_RENTER_MESSAGE}
            raise ValidationError(INCOMPLETE_RENTER_MESSAGE, field_errors=errors)
        result = await self.api.rent_spot(session.code, spot.id, quote.start, quote.end, renter)
        if result.success:
            await self.load_spots()
        return result

    def _require_session(self) -> Session:
        session = self.gate.session
        if session is None:
            raise AuthError("Access code required.")
        return session

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
