"""Reservations repository - PostgreSQL implementation of ReservationStore.

Uses raw SQL with psycopg2 (no ORM). Uniqueness is enforced by two named
constraints; a UniqueViolation is translated into UniqueConstraintViolation
carrying the key that collided.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from dormseat.domain.errors import StoreError
from dormseat.domain.models import (
    CancelledReservation,
    Identity,
    NewReservation,
    Placement,
    Reservation,
)
from dormseat.domain.store import ConflictKind, UniqueConstraintViolation
from dormseat.infra.db import txn
from dormseat.observability.logging import get_logger

logger = get_logger(__name__)

IDENTITY_CONSTRAINT = "uq_reservations_identity"
PLACEMENT_CONSTRAINT = "uq_reservations_placement"

_COLUMNS = "id, room_no, name, dormitory, floor, seat, password_hash, created_at, device_id"

_CANCELLED_COLUMNS = (
    "id, reservation_id, room_no, name, dormitory, floor, seat, "
    "created_at, cancelled_at, cancelled_by"
)


def conflict_kind(exc: pg_errors.UniqueViolation) -> ConflictKind:
    """Work out which unique index rejected the write.

    Raises:
        StoreError: For unique violations on any other constraint.
    """
    diag = getattr(exc, "diag", None)
    constraint = getattr(diag, "constraint_name", None) or str(exc)
    if IDENTITY_CONSTRAINT in constraint:
        return ConflictKind.IDENTITY
    if PLACEMENT_CONSTRAINT in constraint:
        return ConflictKind.PLACEMENT
    raise StoreError() from exc


def _parse_id(reservation_id: str) -> str | None:
    """Canonical uuid text, or None for ids that cannot exist.

    Comparing the uuid column directly keeps primary-key lookups on the index.
    """
    try:
        return str(uuid.UUID(reservation_id))
    except (ValueError, TypeError, AttributeError):
        return None


def _row_to_reservation(row: tuple[Any, ...]) -> Reservation:
    return Reservation(
        id=str(row[0]),
        room_no=row[1],
        name=row[2],
        dormitory=row[3],
        floor=row[4],
        seat=row[5],
        password_hash=row[6],
        created_at=row[7],
        device_id=row[8],
    )


def _row_to_cancelled(row: tuple[Any, ...]) -> CancelledReservation:
    return CancelledReservation(
        id=str(row[0]),
        reservation_id=str(row[1]),
        room_no=row[2],
        name=row[3],
        dormitory=row[4],
        floor=row[5],
        seat=row[6],
        created_at=row[7],
        cancelled_at=row[8],
        cancelled_by=row[9],
    )


class PostgresReservationStore:
    """ReservationStore backed by the `reservations` table."""

    def __init__(self, dsn: str | None = None) -> None:
        self._dsn = dsn

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        try:
            with txn(dsn=self._dsn) as cur:
                yield cur
        except pg_errors.UniqueViolation as exc:
            raise UniqueConstraintViolation(conflict_kind(exc)) from exc
        except psycopg2.Error as exc:
            logger.exception("reservation store failure")
            raise StoreError() from exc

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> Reservation | None:
        with self._cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
        return _row_to_reservation(row) if row is not None else None

    # ── lookups ──────────────────────────────────────────────────────────

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        key = _parse_id(reservation_id)
        if key is None:
            return None
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reservations WHERE id = %s",
            (key,),
        )

    def find_by_identity(self, identity: Identity) -> Reservation | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM reservations WHERE room_no = %s AND name = %s",
            (identity.room_no, identity.name),
        )

    def find_by_placement(self, placement: Placement) -> Reservation | None:
        return self._fetch_one(
            f"""
            SELECT {_COLUMNS} FROM reservations
            WHERE dormitory = %s AND floor = %s AND seat = %s
            """,
            (placement.dormitory, placement.floor, placement.seat),
        )

    def find_by_placement_excluding(
        self, placement: Placement, exclude_id: str
    ) -> Reservation | None:
        key = _parse_id(exclude_id)
        if key is None:
            return self.find_by_placement(placement)
        return self._fetch_one(
            f"""
            SELECT {_COLUMNS} FROM reservations
            WHERE dormitory = %s AND floor = %s AND seat = %s AND id <> %s
            """,
            (placement.dormitory, placement.floor, placement.seat, key),
        )

    def list_all(self) -> list[Reservation]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM reservations ORDER BY created_at, id")
            rows = cur.fetchall()
        return [_row_to_reservation(row) for row in rows]

    def list_cancelled(self) -> list[CancelledReservation]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_CANCELLED_COLUMNS} FROM cancelled_reservations "
                "ORDER BY cancelled_at DESC"
            )
            rows = cur.fetchall()
        return [_row_to_cancelled(row) for row in rows]

    # ── writes ───────────────────────────────────────────────────────────

    def insert(self, new: NewReservation) -> Reservation:
        """Insert a reservation.

        Raises:
            UniqueConstraintViolation: identity or placement already held.
        """
        reservation = self._fetch_one(
            f"""
            INSERT INTO reservations
                (room_no, name, dormitory, floor, seat, password_hash, device_id)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {_COLUMNS}
            """,
            (
                new.identity.room_no,
                new.identity.name,
                new.placement.dormitory,
                new.placement.floor,
                new.placement.seat,
                new.password_hash,
                new.device_id,
            ),
        )
        if reservation is None:
            raise StoreError()
        return reservation

    def update_placement(
        self, reservation_id: str, placement: Placement, *, device_id: str | None = None
    ) -> Reservation | None:
        """Move a reservation to another seat and refresh created_at.

        Returns None if the reservation no longer exists.
        """
        key = _parse_id(reservation_id)
        if key is None:
            return None
        return self._fetch_one(
            f"""
            UPDATE reservations
            SET dormitory = %s, floor = %s, seat = %s,
                device_id = COALESCE(%s, device_id),
                created_at = now()
            WHERE id = %s
            RETURNING {_COLUMNS}
            """,
            (placement.dormitory, placement.floor, placement.seat, device_id, key),
        )

    def update(
        self,
        reservation_id: str,
        *,
        identity: Identity,
        placement: Placement,
        device_id: str | None = None,
    ) -> Reservation | None:
        key = _parse_id(reservation_id)
        if key is None:
            return None
        return self._fetch_one(
            f"""
            UPDATE reservations
            SET room_no = %s, name = %s,
                dormitory = %s, floor = %s, seat = %s,
                device_id = COALESCE(%s, device_id),
                created_at = now()
            WHERE id = %s
            RETURNING {_COLUMNS}
            """,
            (
                identity.room_no,
                identity.name,
                placement.dormitory,
                placement.floor,
                placement.seat,
                device_id,
                key,
            ),
        )

    def delete(self, reservation_id: str, *, audit_as: str | None = None) -> Reservation | None:
        """Delete one reservation, snapshotting it when audit_as is set.

        The delete and the audit insert are one statement, so a row is
        archived exactly when it is removed.
        """
        key = _parse_id(reservation_id)
        if key is None:
            return None
        with self._cursor() as cur:
            cur.execute(
                f"""
                WITH removed AS (
                    DELETE FROM reservations WHERE id = %s
                    RETURNING {_COLUMNS}
                ), audit AS (
                    INSERT INTO cancelled_reservations
                        (reservation_id, room_no, name, dormitory, floor, seat,
                         created_at, cancelled_by)
                    SELECT id, room_no, name, dormitory, floor, seat, created_at, %s
                    FROM removed
                    WHERE %s
                )
                SELECT {_COLUMNS} FROM removed
                """,
                (key, audit_as, audit_as is not None),
            )
            row = cur.fetchone()
        return _row_to_reservation(row) if row is not None else None

    def delete_all(self, *, audit_as: str | None = None) -> int:
        """Delete every reservation; returns how many were removed."""
        with self._cursor() as cur:
            cur.execute(
                """
                WITH removed AS (
                    DELETE FROM reservations
                    RETURNING id, room_no, name, dormitory, floor, seat, created_at
                ), audit AS (
                    INSERT INTO cancelled_reservations
                        (reservation_id, room_no, name, dormitory, floor, seat,
                         created_at, cancelled_by)
                    SELECT id, room_no, name, dormitory, floor, seat, created_at, %s
                    FROM removed
                    WHERE %s
                )
                SELECT count(*) FROM removed
                """,
                (audit_as, audit_as is not None),
            )
            row = cur.fetchone()
        return int(row[0]) if row else 0
