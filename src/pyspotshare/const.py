"""Constants for the spot-sharing backend and dashboard."""

from datetime import timedelta

import aiohttp

TIMEZONE_NAME = "America/Los_Angeles"
TIMEZONE_LABEL = "PST"

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)
DEFAULT_PRICE_PER_DAY = 10
DEFAULT_FROM_TIME = "08:00"
DEFAULT_TO_TIME = "18:00"

SESSION_DURATION_DAYS = 7
SESSION_DURATION = timedelta(days=SESSION_DURATION_DAYS)
SESSION_FILENAME = "parking_session.json"

ACTION_VALIDATE_ACCESS = "validateAccess"
ACTION_CHECK_SESSION = "checkSession"
ACTION_GET_SPOTS = "getSpots"
ACTION_ADD_SPOT = "addSpot"
ACTION_VERIFY_PIN = "verifyPin"
ACTION_UPDATE_SPOT = "updateSpot"
ACTION_DELETE_SPOT = "deleteSpot"
ACTION_RENT_SPOT = "rentSpot"

STATUS_AVAILABLE = "available"
STATUS_RENTED = "rented"

SIZE_OPTIONS = ("Full Size", "Compact", "Motorcycle")
FLOOR_OPTIONS = ("P1", "P2", "P3")

VENMO_PAY_URL = "https://venmo.com/{username}"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "pyspotshare",
}

# The script backend reads the raw body, so JSON goes out as plain text.
POST_HEADERS = {
    **DEFAULT_HEADERS,
    "Content-Type": "text/plain;charset=utf-8",
}
