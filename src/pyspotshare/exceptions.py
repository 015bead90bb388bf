"""Library exceptions."""

from __future__ import annotations

from collections.abc import Mapping


class PySpotShareError(Exception):
    """Base exception for the library."""

    error_type = "unknown"
    default_error_code: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        detail: str | None = None,
        user_message: str | None = None,
    ) -> None:
        text = message or detail or ""
        super().__init__(text)
        self.error_code = error_code or self.default_error_code
        self.detail = detail or text
        self.user_message = user_message


class AuthError(PySpotShareError):
    """Raised when the access code or a spot PIN is rejected."""

    error_type = "auth"
    default_error_code = "auth_error"


class NetworkError(PySpotShareError):
    """Raised when network communication fails."""

    error_type = "network"
    default_error_code = "network_error"


class ValidationError(PySpotShareError):
    """Raised when inputs fail validation."""

    error_type = "validation"
    default_error_code = "validation_error"

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        field_errors: Mapping[str, str] | None = None,
        error_code: str | None = None,
        detail: str | None = None,
        user_message: str | None = None,
    ) -> None:
        errors = dict(field_errors or {})
        if message is None and errors:
            message = next(iter(errors.values()))
        super().__init__(
            message,
            error_code=error_code,
            detail=detail,
            user_message=user_message,
        )
        self.field = field
        self.field_errors = errors


class BackendError(PySpotShareError):
    """Raised when the backend returns an error or an unusable response."""

    error_type = "backend"
    default_error_code = "backend_error"


class ConfigError(PySpotShareError):
    """Raised when the client is misconfigured."""

    error_type = "config"
    default_error_code = "config_error"
