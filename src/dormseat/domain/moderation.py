"""Admin moderation: login, reservation window, announcements, audit trail.

Singletons are upserted by key; last write wins. Public settings and the
public announcement are broadcast after each change. The admin-only
announcement is never broadcast.
"""

from __future__ import annotations

from datetime import datetime

from dormseat.config import Config
from dormseat.infra.time import ensure_aware, utc_now
from dormseat.notify.hub import ANNOUNCEMENT_UPDATED, SETTINGS_UPDATED, ChangeNotifier
from dormseat.observability.logging import get_logger
from dormseat.observability.redaction import safe_log_context

from .credentials import AdminCredentials, verify_admin
from .errors import AuthenticationError, AuthorizationError, ValidationError
from .models import (
    ADMIN_ANNOUNCEMENT_KEY,
    ANNOUNCEMENT_KEY,
    Announcement,
    CancelledReservation,
    ReservationWindow,
)
from .store import ReservationStore, SettingsStore
from .window import load_window

logger = get_logger(__name__)


class Moderation:
    def __init__(
        self,
        config: Config,
        reservations: ReservationStore,
        settings: SettingsStore,
        notifier: ChangeNotifier,
    ) -> None:
        self._config = config
        self._reservations = reservations
        self._settings = settings
        self._notifier = notifier

    def login(self, credentials: AdminCredentials) -> None:
        """Raise AuthenticationError unless the credentials are valid."""
        if not verify_admin(self._config, credentials):
            logger.warning("admin login failed")
            raise AuthenticationError("Wrong admin password")
        logger.info("admin login succeeded")

    # ── reservation window ───────────────────────────────────────────────

    def get_window(self) -> ReservationWindow:
        return load_window(self._settings, self._config)

    def update_window(
        self,
        admin: AdminCredentials,
        start: datetime | None,
        end: datetime | None,
    ) -> ReservationWindow:
        self._require_admin(admin)
        start = ensure_aware(start) if start is not None else None
        end = ensure_aware(end) if end is not None else None
        if start is not None and end is not None and start > end:
            raise ValidationError("Reservation start must not be after its end")

        window = self._settings.put_window(start, end)
        logger.info(
            "reservation window updated",
            extra={"extra_fields": window.public_view()},
        )
        self._publish(SETTINGS_UPDATED, window.public_view())
        return window

    # ── announcements ────────────────────────────────────────────────────

    def get_announcement(self) -> Announcement:
        return self._load_announcement(ANNOUNCEMENT_KEY)

    def update_announcement(
        self, admin: AdminCredentials, message: str, active: bool
    ) -> Announcement:
        self._require_admin(admin)
        announcement = self._settings.put_announcement(ANNOUNCEMENT_KEY, message, active)
        logger.info(
            "announcement updated",
            extra={"extra_fields": safe_log_context(active=active, length=len(message))},
        )
        self._publish(ANNOUNCEMENT_UPDATED, announcement.public_view())
        return announcement

    def get_admin_announcement(self, admin: AdminCredentials) -> Announcement:
        self._require_admin(admin)
        return self._load_announcement(ADMIN_ANNOUNCEMENT_KEY)

    def update_admin_announcement(
        self, admin: AdminCredentials, message: str, active: bool
    ) -> Announcement:
        self._require_admin(admin)
        return self._settings.put_announcement(ADMIN_ANNOUNCEMENT_KEY, message, active)

    # ── audit ────────────────────────────────────────────────────────────

    def list_cancelled(self, admin: AdminCredentials) -> list[CancelledReservation]:
        self._require_admin(admin)
        return self._reservations.list_cancelled()

    # ── helpers ──────────────────────────────────────────────────────────

    def _load_announcement(self, key: str) -> Announcement:
        announcement = self._settings.get_announcement(key)
        if announcement is None:
            return Announcement(key=key, message="", active=False, updated_at=utc_now())
        return announcement

    def _require_admin(self, admin: AdminCredentials) -> None:
        if not verify_admin(self._config, admin):
            logger.warning("admin credential rejected")
            raise AuthorizationError()

    def _publish(self, event: str, payload: dict) -> None:
        try:
            self._notifier.broadcast(event, payload)
        except Exception:
            logger.exception("settings broadcast failed")
