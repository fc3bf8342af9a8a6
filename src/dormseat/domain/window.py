"""Reservation time-window gate."""

from __future__ import annotations

from datetime import datetime

from dormseat.config import Config
from dormseat.infra.time import ensure_aware

from .models import ReservationWindow
from .store import SettingsStore


def load_window(settings: SettingsStore, config: Config) -> ReservationWindow:
    """Stored window, seeding it from the configured defaults when absent.

    Booking checks and settings reads both go through here, so the
    configured defaults apply from the first request of a fresh deployment.
    """
    window = settings.get_window()
    if window is None:
        window = settings.put_window(config.default_window_start, config.default_window_end)
    return window


def is_booking_open(window: ReservationWindow | None, now: datetime) -> bool:
    """True iff a window is configured and start <= now <= end.

    A missing record or a missing bound means closed, never unrestricted.
    """
    if window is None or window.start is None or window.end is None:
        return False
    now = ensure_aware(now)
    return ensure_aware(window.start) <= now <= ensure_aware(window.end)
