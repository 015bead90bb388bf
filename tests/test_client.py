from __future__ import annotations

import json
import random
from datetime import datetime
from pathlib import Path
from typing import Any

import aiohttp
import pytest

from pyspotshare import Client
from pyspotshare.civil_time import CIVIL_TZ
from pyspotshare.exceptions import AuthError, ConfigError, ValidationError
from pyspotshare.models import Filters, RentalWindow, RenterInfo, SpotDraft, SpotEdit
from pyspotshare.session import SessionStore

BASE_URL = "https://script.example/exec"
NOW = datetime(2024, 5, 20, 9, 0, tzinfo=CIVIL_TZ)


class _FakeResponse:
    def __init__(self, payload: Any, *, status: int = 200) -> None:
        self.status = status
        self._payload = payload

    async def json(self, content_type: str | None = "application/json") -> Any:
        return self._payload


class _FakeRequestContext:
    def __init__(self, response: _FakeResponse) -> None:
        self._response = response

    async def __aenter__(self) -> _FakeResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _SequenceSession:
    def __init__(self, responses: list[object]) -> None:
        self._responses = responses
        self.calls: list[dict[str, Any]] = []
        self._index = 0
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeRequestContext:
        self.calls.append({"method": method, "url": url, "kwargs": kwargs})
        response = self._responses[self._index]
        self._index += 1
        if isinstance(response, Exception):
            raise response
        return _FakeRequestContext(response)

    def actions(self) -> list[str]:
        names = []
        for call in self.calls:
            if call["method"] == "POST":
                names.append(json.loads(call["kwargs"]["data"])["action"])
            else:
                names.append(call["kwargs"]["params"]["action"])
        return names


def _spot_payload(spot_id: str, **overrides: Any) -> dict[str, Any]:
    payload = {
        "id": spot_id,
        "venmo": "@bob",
        "email": "bob@example.com",
        "phone": "(555) 123-4567",
        "spotNumber": f"B{spot_id}",
        "size": "Compact",
        "floor": "P2",
        "availableFrom": "2024-06-01T08:00:00-07:00",
        "availableTo": "2024-06-05T18:00:00-07:00",
        "pricePerDay": 10,
        "status": "available",
    }
    payload.update(overrides)
    return payload


def _spots_response(*spots: dict[str, Any]) -> _FakeResponse:
    return _FakeResponse({"spots": list(spots)})


def _client(session: _SequenceSession, tmp_path: Path) -> Client:
    return Client(
        session=session,  # type: ignore[arg-type]
        base_url=BASE_URL,
        session_path=tmp_path / "session.json",
        rng=random.Random(0),
    )


async def _unlocked(session: _SequenceSession, tmp_path: Path) -> Client:
    client = _client(session, tmp_path)
    result = await client.enter_code("secret", now=NOW)
    assert result.success is True
    return client


def _renter() -> RenterInfo:
    return RenterInfo(
        name="Renter",
        email="renter@example.com",
        phone="(555) 987-6543",
        screenshot="data:image/png;base64,YWJj",
    )


@pytest.mark.asyncio
async def test_client_does_not_close_injected_session() -> None:
    session = aiohttp.ClientSession()
    client = Client(session=session, base_url=BASE_URL)
    await client.aclose()

    assert session.closed is False
    await session.close()


def test_client_requires_base_url() -> None:
    with pytest.raises(ConfigError):
        Client(base_url="")


def test_logout_on_fresh_client_clears_cached_session(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    SessionStore(path).save("secret", 1, now=NOW)
    client = Client(base_url=BASE_URL, session_path=path)

    client.logout()

    assert path.exists() is False
    assert client.spots == ()
    assert client._session is None


@pytest.mark.asyncio
async def test_load_spots_requires_access(tmp_path: Path) -> None:
    session = _SequenceSession([])
    client = _client(session, tmp_path)
    with pytest.raises(AuthError):
        await client.load_spots()
    assert session.calls == []


@pytest.mark.asyncio
async def test_check_access_uses_cached_session(tmp_path: Path) -> None:
    first = _SequenceSession([_FakeResponse({"success": True, "version": 2})])
    await _unlocked(first, tmp_path)

    second = _SequenceSession([_FakeResponse({"valid": True})])
    client = _client(second, tmp_path)
    assert await client.check_access(now=NOW) == "valid"
    assert second.actions() == ["checkSession"]


@pytest.mark.asyncio
async def test_load_and_filter_spots(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _spots_response(
                _spot_payload("1"),
                _spot_payload("2", status="rented"),
                _spot_payload("3", floor="P1"),
            ),
        ]
    )
    client = await _unlocked(session, tmp_path)
    result = await client.load_spots()

    assert result.success is True
    assert client.loading is False
    assert len(client.spots) == 3
    visible = client.visible_spots()
    assert sorted(spot.id for spot in visible) == ["1", "3"]
    assert client.visible_spots() == visible
    assert [spot.id for spot in client.visible_spots(Filters(floor="P1"), "soonest")] == ["3"]
    assert client.find_spot("2") is not None
    assert client.find_spot("missing") is None


@pytest.mark.asyncio
async def test_failed_load_clears_snapshot(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _spots_response(_spot_payload("1")),
            _FakeResponse({}, status=500),
        ]
    )
    client = await _unlocked(session, tmp_path)
    await client.load_spots()
    result = await client.load_spots()
    assert result.success is False
    assert client.spots == ()


@pytest.mark.asyncio
async def test_rent_spot_reloads_after_success(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _spots_response(_spot_payload("1")),
            _FakeResponse({"success": True, "spotNumber": "B1", "ownerPhone": "(555) 123-4567"}),
            _spots_response(),
        ]
    )
    client = await _unlocked(session, tmp_path)
    await client.load_spots()
    spot = client.spots[0]
    window = RentalWindow("2024-06-02", "09:00", "2024-06-03", "09:00")

    result = await client.rent_spot(spot, window, _renter(), now=NOW)

    assert result.success is True
    assert result.spot_number == "B1"
    assert session.actions() == ["validateAccess", "getSpots", "rentSpot", "getSpots"]
    body = json.loads(session.calls[2]["kwargs"]["data"])
    assert body["accessCode"] == "secret"
    assert body["startDateTime"] == "2024-06-02T09:00:00-07:00"
    assert client.spots == ()


@pytest.mark.asyncio
async def test_rent_spot_validates_before_sending(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _spots_response(_spot_payload("1")),
        ]
    )
    client = await _unlocked(session, tmp_path)
    await client.load_spots()
    spot = client.spots[0]

    with pytest.raises(ValidationError) as excinfo:
        await client.rent_spot(
            spot, RentalWindow("2024-06-02", "09:00", "2024-06-03", "09:00"), RenterInfo(), now=NOW
        )
    assert str(excinfo.value) == "Please fill in all fields correctly and upload a screenshot"

    with pytest.raises(ValidationError) as excinfo:
        await client.rent_spot(
            spot, RentalWindow("2024-06-02", "09:00", "2024-06-09", "09:00"), _renter(), now=NOW
        )
    assert excinfo.value.field == "window"
    assert session.actions() == ["validateAccess", "getSpots"]


@pytest.mark.asyncio
async def test_list_spot(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _FakeResponse({"success": True, "id": "new-1"}),
            _spots_response(_spot_payload("new-1")),
        ]
    )
    client = await _unlocked(session, tmp_path)
    draft = SpotDraft(
        venmo="bob",
        email="bob@example.com",
        phone="5551234567",
        spot_number="B12",
        from_date="2024-06-01",
        to_date="2024-06-05",
        pin="1234",
    )
    result = await client.list_spot(draft, now=NOW)

    assert result.id == "new-1"
    data = json.loads(session.calls[1]["kwargs"]["params"]["data"])
    assert data["venmo"] == "@bob"
    assert data["pin"] == "1234"
    assert [spot.id for spot in client.spots] == ["new-1"]


@pytest.mark.asyncio
async def test_list_spot_rejects_invalid_draft(tmp_path: Path) -> None:
    session = _SequenceSession([_FakeResponse({"success": True, "version": 1})])
    client = await _unlocked(session, tmp_path)
    with pytest.raises(ValidationError) as excinfo:
        await client.list_spot(SpotDraft(), now=NOW)
    assert excinfo.value.field_errors == {"form": "Please fill in all required fields"}
    assert len(session.calls) == 1


@pytest.mark.asyncio
async def test_manage_calls(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _FakeResponse({"success": True}),
            _FakeResponse({"success": True}),
            _spots_response(_spot_payload("1")),
            _FakeResponse({"success": False, "error": "Invalid PIN"}),
        ]
    )
    client = await _unlocked(session, tmp_path)
    assert (await client.verify_pin("1", "1234")).success is True

    edit = SpotEdit(
        venmo="bob",
        email="bob@example.com",
        phone="5551234567",
        spot_number="B1",
        from_date="2024-06-01",
        to_date="2024-06-05",
    )
    assert (await client.update_spot("1", "1234", edit)).success is True

    deleted = await client.delete_spot("1", "0000")
    assert deleted.success is False
    assert deleted.error == "Invalid PIN"
    assert session.actions() == [
        "validateAccess",
        "verifyPin",
        "updateSpot",
        "getSpots",
        "deleteSpot",
    ]


@pytest.mark.asyncio
async def test_verify_pin_rejects_bad_format(tmp_path: Path) -> None:
    session = _SequenceSession([_FakeResponse({"success": True, "version": 1})])
    client = await _unlocked(session, tmp_path)
    with pytest.raises(ValidationError) as excinfo:
        await client.verify_pin("1", "12a4")
    assert excinfo.value.field == "pin"


@pytest.mark.asyncio
async def test_logout_drops_snapshot(tmp_path: Path) -> None:
    session = _SequenceSession(
        [
            _FakeResponse({"success": True, "version": 1}),
            _spots_response(_spot_payload("1")),
        ]
    )
    client = await _unlocked(session, tmp_path)
    await client.load_spots()
    client.logout()
    assert client.spots == ()
    assert client.gate.state == "no_session"
    assert (tmp_path / "session.json").exists() is False
