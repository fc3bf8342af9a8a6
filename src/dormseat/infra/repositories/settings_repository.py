"""Settings repository - admin_settings and announcements singletons.

Each singleton is a row keyed by a fixed string; writes are upserts
(INSERT ... ON CONFLICT (key) DO UPDATE), so the last writer wins.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

import psycopg2
from psycopg2.extensions import cursor as PgCursor

from dormseat.domain.errors import StoreError
from dormseat.domain.models import WINDOW_KEY, Announcement, ReservationWindow
from dormseat.infra.db import txn
from dormseat.observability.logging import get_logger

logger = get_logger(__name__)


class PostgresSettingsStore:
    """SettingsStore backed by `admin_settings` and `announcements`."""

    def __init__(self, dsn: str | None = None) -> None:
        self._dsn = dsn

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        try:
            with txn(dsn=self._dsn) as cur:
                yield cur
        except psycopg2.Error as exc:
            logger.exception("settings store failure")
            raise StoreError() from exc

    def get_window(self) -> ReservationWindow | None:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT reservation_start_time, reservation_end_time
                FROM admin_settings
                WHERE key = %s
                """,
                (WINDOW_KEY,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return ReservationWindow(start=row[0], end=row[1])

    def put_window(self, start: datetime | None, end: datetime | None) -> ReservationWindow:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO admin_settings (key, reservation_start_time, reservation_end_time)
                VALUES (%s, %s, %s)
                ON CONFLICT (key) DO UPDATE
                SET reservation_start_time = EXCLUDED.reservation_start_time,
                    reservation_end_time = EXCLUDED.reservation_end_time,
                    updated_at = now()
                RETURNING reservation_start_time, reservation_end_time
                """,
                (WINDOW_KEY, start, end),
            )
            row = cur.fetchone()
        return ReservationWindow(start=row[0], end=row[1])

    def get_announcement(self, key: str) -> Announcement | None:
        with self._cursor() as cur:
            cur.execute(
                "SELECT key, message, active, updated_at FROM announcements WHERE key = %s",
                (key,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return Announcement(key=row[0], message=row[1], active=row[2], updated_at=row[3])

    def put_announcement(self, key: str, message: str, active: bool) -> Announcement:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO announcements (key, message, active, updated_at)
                VALUES (%s, %s, %s, now())
                ON CONFLICT (key) DO UPDATE
                SET message = EXCLUDED.message,
                    active = EXCLUDED.active,
                    updated_at = EXCLUDED.updated_at
                RETURNING key, message, active, updated_at
                """,
                (key, message, active),
            )
            row = cur.fetchone()
        return Announcement(key=row[0], message=row[1], active=row[2], updated_at=row[3])
