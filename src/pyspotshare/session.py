"""Cached access-code session and the gate that decides whether it still holds."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, Protocol

from .const import SESSION_DURATION, SESSION_FILENAME
from .models import AccessResult, Session
from .util import mask_secret

_LOGGER = logging.getLogger(__name__)

GateState = Literal["checking", "no_session", "valid", "invalid"]

ENTER_CODE_MESSAGE = "Please enter the access code"
INCORRECT_CODE_MESSAGE = "Incorrect access code"


class AccessBackend(Protocol):
    async def validate_access(self, code: str) -> AccessResult: ...

    async def check_session(self, version: int) -> bool: ...


def default_session_path() -> Path:
    return Path.home() / ".config" / "pyspotshare" / SESSION_FILENAME


def _utcnow(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now


def is_session_expired(session: Session | None, *, now: datetime | None = None) -> bool:
    if session is None:
        return True
    return _utcnow(now) - session.timestamp > SESSION_DURATION


class SessionStore:
    """One session record in a JSON file, overwritten wholesale on save."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_session_path()

    def load(self) -> Session | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Session(
                code=str(data["code"]),
                version=int(data["version"]),
                timestamp=datetime.fromtimestamp(int(data["timestamp"]) / 1000, UTC),
            )
        except (OSError, OverflowError, ValueError, TypeError, KeyError) as exc:
            _LOGGER.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return None

    def save(self, code: str, version: int, *, now: datetime | None = None) -> Session:
        session = Session(code=code, version=version, timestamp=_utcnow(now))
        payload = {
            "code": session.code,
            "version": session.version,
            "timestamp": int(session.timestamp.timestamp() * 1000),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload), encoding="utf-8")
        _LOGGER.debug("Saved session (code=%s, version=%s)", mask_secret(code), version)
        return session

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        _LOGGER.debug("Cleared session at %s", self.path)


class SessionGate:
    """Decides whether the cached access code still unlocks the dashboard.

    ``checking`` on start; ``no_session`` when nothing is cached; ``invalid``
    when the cached code expired or the backend rotated the code (the cache
    is cleared in both cases); ``valid`` once the code is confirmed.
    """

    def __init__(self, store: SessionStore, backend: AccessBackend) -> None:
        self._store = store
        self._backend = backend
        self._state: GateState = "checking"
        self._session: Session | None = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session if self._state == "valid" else None

    @property
    def needs_code(self) -> bool:
        return self._state in ("no_session", "invalid")

    async def check(self, *, now: datetime | None = None) -> GateState:
        self._state = "checking"
        session = self._store.load()
        if session is None:
            self._set("no_session", None)
            return self._state
        if is_session_expired(session, now=now):
            _LOGGER.debug("Cached session expired")
            self._invalidate()
            return self._state
        if not await self._backend.check_session(session.version):
            _LOGGER.debug("Cached session version %s was rejected", session.version)
            self._invalidate()
            return self._state
        self._set("valid", session)
        return self._state

    async def enter_code(self, code: str, *, now: datetime | None = None) -> AccessResult:
        code = (code or "").strip()
        if not code:
            return AccessResult(success=False, error=ENTER_CODE_MESSAGE)
        result = await self._backend.validate_access(code)
        if not result.success or result.version is None:
            return AccessResult(success=False, error=result.error or INCORRECT_CODE_MESSAGE)
        session = self._store.save(code, result.version, now=now)
        self._set("valid", session)
        return result

    def logout(self) -> None:
        self._store.clear()
        self._set("no_session", None)

    def _invalidate(self) -> None:
        self._store.clear()
        self._set("invalid", None)

    def _set(self, state: GateState, session: Session | None) -> None:
        self._state = state
        self._session = session
