"""Shared utilities for validation, normalization and redaction."""

from __future__ import annotations

import base64
import re

from .exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGIT_RE = re.compile(r"\D")
_PIN_RE = re.compile(r"^[0-9]{4}$")


def is_valid_email(email: str) -> bool:
    if not isinstance(email, str) or not email:
        return False
    return _EMAIL_RE.match(email) is not None


def phone_digits(phone: str) -> str:
    if not isinstance(phone, str):
        return ""
    return _NON_DIGIT_RE.sub("", phone)


def is_valid_phone(phone: str) -> bool:
    return len(phone_digits(phone)) == 10


def is_valid_pin(pin: str) -> bool:
    if not isinstance(pin, str):
        return False
    return _PIN_RE.match(pin) is not None


def format_phone_number(value: str) -> str:
    """Mask digits into ``(XXX) XXX-XXXX`` as they are typed."""
    digits = phone_digits(value)[:10]
    if not digits:
        return ""
    if len(digits) <= 3:
        return f"({digits}"
    if len(digits) <= 6:
        return f"({digits[:3]}) {digits[3:]}"
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def venmo_username(handle: str) -> str:
    if not isinstance(handle, str):
        return ""
    return handle.strip().lstrip("@")


def normalize_venmo_handle(handle: str) -> str:
    username = venmo_username(handle)
    if not username:
        return ""
    return f"@{username}"


def mask_phone(phone: str) -> str:
    digits = phone_digits(phone)
    if len(digits) <= 4:
        return "*" * len(digits) or "***"
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"


def mask_email(email: str) -> str:
    if not isinstance(email, str) or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    if len(local) <= 1:
        return f"*@{domain}"
    return f"{local[:1]}{'*' * (len(local) - 1)}@{domain}"


def mask_secret(value: str | None) -> str:
    if not value:
        return "***"
    return "*" * len(value)


def encode_screenshot(data: bytes, mime_type: str) -> str:
    """Encode an uploaded payment screenshot as a data URL."""
    if not data:
        raise ValidationError("Screenshot is empty.", field="screenshot")
    if not isinstance(mime_type, str) or not mime_type.startswith("image/"):
        raise ValidationError("Screenshot must be an image.", field="screenshot")
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def require_id(value: object, field: str) -> str:
    if value is None:
        raise ValidationError(f"{field} is required.", field=field)
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required.", field=field)
    return text
