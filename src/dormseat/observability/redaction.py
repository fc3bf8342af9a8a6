"""Redaction helpers for safe logging.

Reservation passwords, admin secrets, device ids and personal names must
never reach the logs. Every structured log field passes through
safe_log_context().
"""

import re
from typing import Any

_SENSITIVE_KEY_PARTS = ("password", "secret", "token", "device", "name", "authorization")

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_BCRYPT_PATTERN = re.compile(r"\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}")

_REDACTED = "[REDACTED]"


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in _SENSITIVE_KEY_PARTS)


def redact_string(value: str) -> str:
    """Strip hashes, phone numbers and emails from free text."""
    result = _BCRYPT_PATTERN.sub(_REDACTED, value)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={sorted(value.keys())})"
    if isinstance(value, (list, tuple, set)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a log context dict; sensitive keys are masked outright."""
    return {
        key: _REDACTED if is_sensitive_key(key) and value is not None else redact_value(value)
        for key, value in kwargs.items()
    }
