"""Runtime configuration loaded from environment variables.

Provides:
- Config: frozen value object injected into the controller and moderation
- Config.from_env(): build a Config from os.environ
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime

from dormseat.infra.time import ensure_aware

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_instant(name: str) -> datetime | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    return ensure_aware(datetime.fromisoformat(raw))


@dataclass(frozen=True)
class Config:
    """Application configuration.

    Attributes:
        database_url: libpq DSN or postgres URL for the reservation store.
        admin_secret: Shared admin secret. None means admin access is
            misconfigured and every admin check fails.
        admin_names: Allowed admin names. Empty disables the name check.
        default_window_start: Window start seeded on first settings read.
        default_window_end: Window end seeded on first settings read.
        rate_limit_max_requests: Requests allowed per client per window.
        rate_limit_window_seconds: Length of the throttle window.
        self_cancel_requires_window: Gate owner cancellation on the window.
        enforce_password_policy: Reject weak reservation passwords.
        enforce_device_binding: Check device ids on records that carry one.
        audit_cancellations: Snapshot deleted reservations.
        allowed_origins: CORS origins.
        log_level: Level for the package logger.
    """

    database_url: str | None = None
    admin_secret: str | None = None
    admin_names: tuple[str, ...] = ()
    default_window_start: datetime | None = None
    default_window_end: datetime | None = None
    rate_limit_max_requests: int = 20
    rate_limit_window_seconds: int = 60
    self_cancel_requires_window: bool = False
    enforce_password_policy: bool = True
    enforce_device_binding: bool = True
    audit_cancellations: bool = True
    allowed_origins: tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            admin_secret=os.environ.get("ADMIN_PASSWORD") or None,
            admin_names=_env_list("ADMIN_NAMES"),
            default_window_start=_env_instant("RESERVATION_START_TIME"),
            default_window_end=_env_instant("RESERVATION_END_TIME"),
            rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 20),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
            self_cancel_requires_window=_env_bool("SELF_CANCEL_REQUIRES_WINDOW", False),
            enforce_password_policy=_env_bool("ENFORCE_PASSWORD_POLICY", True),
            enforce_device_binding=_env_bool("ENFORCE_DEVICE_BINDING", True),
            audit_cancellations=_env_bool("AUDIT_CANCELLATIONS", True),
            allowed_origins=_env_list("ALLOWED_ORIGINS"),
            log_level=os.environ.get("LOG_LEVEL") or "INFO",
        )
