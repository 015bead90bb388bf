"""Client for the spot-sharing backend.

The backend is a single HTTP endpoint; the ``action`` parameter selects the
command. Public methods never raise for remote trouble: transport failures,
HTTP errors and malformed bodies come back as results with ``success=False``
and a human-readable ``error``.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import aiohttp

from .civil_time import format_instant, parse_instant
from .const import (
    ACTION_ADD_SPOT,
    ACTION_CHECK_SESSION,
    ACTION_DELETE_SPOT,
    ACTION_GET_SPOTS,
    ACTION_RENT_SPOT,
    ACTION_UPDATE_SPOT,
    ACTION_VALIDATE_ACCESS,
    ACTION_VERIFY_PIN,
    DEFAULT_HEADERS,
    DEFAULT_TIMEOUT,
    FLOOR_OPTIONS,
    POST_HEADERS,
    SIZE_OPTIONS,
    STATUS_AVAILABLE,
    STATUS_RENTED,
)
from .exceptions import (
    AuthError,
    BackendError,
    ConfigError,
    NetworkError,
    PySpotShareError,
    ValidationError,
)
from .models import (
    AccessResult,
    ActionResult,
    AddSpotResult,
    RenterInfo,
    RentResult,
    Spot,
    SpotsResult,
)
from .util import mask_secret, require_id

_LOGGER = logging.getLogger(__name__)

_FALLBACK_ERROR = "Unknown error"


class BackendApi:
    """Request/response contract of the remote backend."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        timeout: aiohttp.ClientTimeout | None = None,
    ) -> None:
        if session is None:
            raise ConfigError("Session is required.")
        self._session = session
        self._base_url = self._normalize_base_url(base_url)
        self._timeout = timeout or DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        return self._base_url

    async def validate_access(self, code: str) -> AccessResult:
        _LOGGER.debug("validateAccess started (code=%s)", mask_secret(code))
        try:
            data = await self._get(ACTION_VALIDATE_ACCESS, {"code": code})
        except PySpotShareError as exc:
            return AccessResult(success=False, error=self._failure_message(exc))
        success = data.get("success") is True
        version = self._parse_version(data.get("version")) if success else None
        if success and version is None:
            return AccessResult(success=False, error="Backend did not return a session version.")
        _LOGGER.debug("validateAccess completed (success=%s)", success)
        return AccessResult(success=success, version=version, error=self._error_from(data))

    async def check_session(self, version: int) -> bool:
        _LOGGER.debug("checkSession started (version=%s)", version)
        try:
            data = await self._get(ACTION_CHECK_SESSION, {"version": str(version)})
        except PySpotShareError as exc:
            _LOGGER.warning("checkSession failed: %s", exc)
            return False
        valid = data.get("valid") is True
        _LOGGER.debug("checkSession completed (valid=%s)", valid)
        return valid

    async def get_spots(self) -> SpotsResult:
        _LOGGER.debug("getSpots started")
        try:
            data = await self._get(ACTION_GET_SPOTS, {})
            spots = self._map_spot_list(data.get("spots"))
        except PySpotShareError as exc:
            return SpotsResult(success=False, error=self._failure_message(exc))
        _LOGGER.debug("getSpots completed (%d spots)", len(spots))
        return SpotsResult(success=True, spots=tuple(spots))

    async def add_spot(self, access_code: str, payload: Mapping[str, Any]) -> AddSpotResult:
        _LOGGER.debug("addSpot started")
        try:
            data = await self._get(
                ACTION_ADD_SPOT,
                {"accessCode": access_code or "", "data": self._dump(payload)},
            )
        except PySpotShareError as exc:
            return AddSpotResult(success=False, error=self._failure_message(exc))
        success = data.get("success") is True
        spot_id = data.get("id")
        _LOGGER.debug("addSpot completed (success=%s)", success)
        return AddSpotResult(
            success=success,
            id=str(spot_id) if success and spot_id is not None else None,
            error=self._error_from(data),
        )

    async def verify_pin(self, access_code: str, spot_id: str, pin: str) -> ActionResult:
        return await self._action(
            ACTION_VERIFY_PIN,
            {"accessCode": access_code or "", "spotId": spot_id, "pin": pin},
        )

    async def update_spot(
        self,
        access_code: str,
        spot_id: str,
        pin: str,
        payload: Mapping[str, Any],
    ) -> ActionResult:
        return await self._action(
            ACTION_UPDATE_SPOT,
            {
                "accessCode": access_code or "",
                "spotId": spot_id,
                "pin": pin,
                "data": self._dump(payload),
            },
        )

    async def delete_spot(self, access_code: str, spot_id: str, pin: str) -> ActionResult:
        return await self._action(
            ACTION_DELETE_SPOT,
            {"accessCode": access_code or "", "spotId": spot_id, "pin": pin},
        )

    async def rent_spot(
        self,
        access_code: str,
        spot_id: str,
        start: datetime,
        end: datetime,
        renter: RenterInfo,
    ) -> RentResult:
        """Book part or all of a spot's window.

        Sent as a POST body: the embedded screenshot is far too large for a
        query string.
        """
        _LOGGER.debug("rentSpot started")
        try:
            body = {
                "action": ACTION_RENT_SPOT,
                "accessCode": access_code or "",
                "spotId": spot_id,
                "startDateTime": format_instant(start),
                "endDateTime": format_instant(end),
                "renterInfo": {
                    "name": renter.name,
                    "email": renter.email,
                    "phone": renter.phone,
                    "screenshot": renter.screenshot,
                },
            }
            data = await self._post(body)
        except PySpotShareError as exc:
            return RentResult(success=False, error=self._failure_message(exc))
        success = data.get("success") is True
        _LOGGER.debug("rentSpot completed (success=%s)", success)
        return RentResult(
            success=success,
            spot_number=self._optional_text(data.get("spotNumber")) if success else None,
            owner_phone=self._optional_text(data.get("ownerPhone")) if success else None,
            error=self._error_from(data),
        )

    async def _action(self, action: str, params: dict[str, str]) -> ActionResult:
        _LOGGER.debug("%s started", action)
        try:
            data = await self._get(action, params)
        except PySpotShareError as exc:
            return ActionResult(success=False, error=self._failure_message(exc))
        success = data.get("success") is True
        _LOGGER.debug("%s completed (success=%s)", action, success)
        return ActionResult(success=success, error=self._error_from(data))

    async def _get(self, action: str, params: Mapping[str, str]) -> dict[str, Any]:
        query = {"action": action, **params}
        return await self._request("GET", params=query, headers=DEFAULT_HEADERS)

    async def _post(self, body: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", data=self._dump(body), headers=POST_HEADERS)

    async def _request(self, method: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._session.request(
                method,
                self._base_url,
                timeout=self._timeout,
                **kwargs,
            ) as response:
                self._raise_for_status(response)
                try:
                    # Script backends label JSON as text/plain.
                    data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as exc:
                    raise BackendError("Response did not contain valid JSON.") from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError("Network request failed.") from exc
        if not isinstance(data, dict):
            raise BackendError("Response was not a JSON object.")
        return data

    def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        if response.status in (401, 403):
            raise AuthError("Access was denied by the backend.")
        raise BackendError(f"Backend request failed with status {response.status}.")

    def _failure_message(self, exc: PySpotShareError) -> str:
        _LOGGER.warning("Backend call failed: %s", exc)
        return str(exc) or _FALLBACK_ERROR

    def _error_from(self, data: Mapping[str, Any]) -> str | None:
        if data.get("success") is True:
            return None
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error.strip()
        return None

    def _map_spot_list(self, raw: Any) -> list[Spot]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise BackendError("Backend response included invalid spots.")
        spots: list[Spot] = []
        for item in raw:
            try:
                spots.append(self._map_spot(item))
            except BackendError as exc:
                _LOGGER.warning("Skipping spot: %s", exc)
        return spots

    def _map_spot(self, data: Any) -> Spot:
        if not isinstance(data, dict):
            raise BackendError("Backend response included invalid spot data.")
        try:
            spot_id = require_id(data.get("id"), "spot id")
            available_from = parse_instant(data.get("availableFrom") or "")
            available_to = parse_instant(data.get("availableTo") or "")
        except ValidationError as exc:
            raise BackendError(f"Backend returned invalid spot data: {exc}") from exc
        if available_from >= available_to:
            raise BackendError(f"Spot {spot_id} has an empty availability window.")
        status = str(data.get("status") or STATUS_AVAILABLE).strip().lower()
        if status not in (STATUS_AVAILABLE, STATUS_RENTED):
            raise BackendError(f"Spot {spot_id} has unknown status {status!r}.")
        size = data.get("size") or SIZE_OPTIONS[0]
        if size not in SIZE_OPTIONS:
            raise BackendError(f"Spot {spot_id} has unknown size {size!r}.")
        floor = data.get("floor") or FLOOR_OPTIONS[0]
        if floor not in FLOOR_OPTIONS:
            raise BackendError(f"Spot {spot_id} has unknown floor {floor!r}.")
        return Spot(
            id=spot_id,
            venmo=self._optional_text(data.get("venmo")) or "",
            email=self._optional_text(data.get("email")) or "",
            phone=self._optional_text(data.get("phone")) or "",
            spot_number=self._optional_text(data.get("spotNumber")) or "",
            size=size,
            floor=floor,
            available_from=available_from,
            available_to=available_to,
            price_per_day=self._parse_price(data.get("pricePerDay"), spot_id),
            status=status,
            notes=self._optional_text(data.get("notes")) or "",
        )

    def _parse_price(self, value: Any, spot_id: str) -> int:
        if isinstance(value, bool):
            raise BackendError(f"Spot {spot_id} has an invalid price.")
        try:
            price = float(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise BackendError(f"Spot {spot_id} has an invalid price.") from exc
        if not math.isfinite(price) or not price.is_integer() or price <= 0:
            raise BackendError(f"Spot {spot_id} has an invalid price.")
        return int(price)

    def _parse_version(self, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def _optional_text(self, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def _dump(self, payload: Mapping[str, Any]) -> str:
        return json.dumps(dict(payload), separators=(",", ":"))

    def _normalize_base_url(self, base_url: str) -> str:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ConfigError("base_url must be a non-empty string.")
        return base_url.strip()
