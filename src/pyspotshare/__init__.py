"""pySpotShare package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .api import BackendApi
from .client import Client
from .exceptions import (
    AuthError,
    BackendError,
    ConfigError,
    NetworkError,
    PySpotShareError,
    ValidationError,
)
from .models import (
    BookingQuote,
    Filters,
    RentalWindow,
    RenterInfo,
    Session,
    Spot,
    SpotDraft,
    SpotEdit,
)
from .session import SessionGate, SessionStore
from .wizard import ManageWizard, RentalWizard

try:
    __version__ = version("pyspotshare")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "AuthError",
    "BackendApi",
    "BackendError",
    "BookingQuote",
    "Client",
    "ConfigError",
    "Filters",
    "ManageWizard",
    "NetworkError",
    "PySpotShareError",
    "RentalWindow",
    "RentalWizard",
    "RenterInfo",
    "Session",
    "SessionGate",
    "SessionStore",
    "Spot",
    "SpotDraft",
    "SpotEdit",
    "ValidationError",
    "__version__",
]
