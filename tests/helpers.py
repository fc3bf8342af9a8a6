"""Shared test helpers: in-memory stores and a controllable clock.

The in-memory reservation store enforces the same two unique keys as the
PostgreSQL schema and raises the same UniqueConstraintViolation, so the
admission controller can be exercised without a database.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from dormseat.domain.admission import ReservationRequest
from dormseat.domain.models import (
    Announcement,
    CancelledReservation,
    Identity,
    NewReservation,
    Placement,
    Reservation,
    ReservationWindow,
)
from dormseat.domain.store import ConflictKind, UniqueConstraintViolation

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryReservationStore:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self._clock = clock or FakeClock()
        self._rows: dict[str, Reservation] = {}
        self._cancelled: list[CancelledReservation] = []
        self._lock = threading.Lock()

    # lookups

    def find_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._rows.get(reservation_id)

    def find_by_identity(self, identity: Identity) -> Reservation | None:
        with self._lock:
            return next((r for r in self._rows.values() if r.identity == identity), None)

    def find_by_placement(self, placement: Placement) -> Reservation | None:
        with self._lock:
            return next((r for r in self._rows.values() if r.placement == placement), None)

    def find_by_placement_excluding(self, placement: Placement, exclude_id: str) -> Reservation | None:
        with self._lock:
            return next(
                (r for r in self._rows.values() if r.placement == placement and r.id != exclude_id),
                None,
            )

    def list_all(self) -> list[Reservation]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda r: (r.created_at, r.id))

    def list_cancelled(self) -> list[CancelledReservation]:
        with self._lock:
            return list(reversed(self._cancelled))

    # writes

    def _check_unique(self, candidate: Reservation) -> None:
        for row in self._rows.values():
            if row.id == candidate.id:
                continue
            if row.identity == candidate.identity:
                raise UniqueConstraintViolation(ConflictKind.IDENTITY)
            if row.placement == candidate.placement:
                raise UniqueConstraintViolation(ConflictKind.PLACEMENT)

    def insert(self, new: NewReservation) -> Reservation:
        reservation = Reservation(
            id=str(uuid.uuid4()),
            room_no=new.identity.room_no,
            name=new.identity.name,
            dormitory=new.placement.dormitory,
            floor=new.placement.floor,
            seat=new.placement.seat,
            password_hash=new.password_hash,
            created_at=self._clock(),
            device_id=new.device_id,
        )
        with self._lock:
            self._check_unique(reservation)
            self._rows[reservation.id] = reservation
        return reservation

    def update_placement(self, reservation_id, placement, *, device_id=None):
        with self._lock:
            current = self._rows.get(reservation_id)
            if current is None:
                return None
            updated = replace(
                current,
                dormitory=placement.dormitory,
                floor=placement.floor,
                seat=placement.seat,
                device_id=device_id if device_id is not None else current.device_id,
                created_at=self._clock(),
            )
            self._check_unique(updated)
            self._rows[reservation_id] = updated
            return updated

    def update(self, reservation_id, *, identity, placement, device_id=None):
        with self._lock:
            current = self._rows.get(reservation_id)
            if current is None:
                return None
            updated = replace(
                current,
                room_no=identity.room_no,
                name=identity.name,
                dormitory=placement.dormitory,
                floor=placement.floor,
                seat=placement.seat,
                device_id=device_id if device_id is not None else current.device_id,
                created_at=self._clock(),
            )
            self._check_unique(updated)
            self._rows[reservation_id] = updated
            return updated

    def _archive(self, row: Reservation, audit_as: str) -> None:
        self._cancelled.append(
            CancelledReservation(
                id=str(uuid.uuid4()),
                reservation_id=row.id,
                room_no=row.room_no,
                name=row.name,
                dormitory=row.dormitory,
                floor=row.floor,
                seat=row.seat,
                created_at=row.created_at,
                cancelled_at=self._clock(),
                cancelled_by=audit_as,
            )
        )

    def delete(self, reservation_id, *, audit_as=None):
        with self._lock:
            row = self._rows.pop(reservation_id, None)
            if row is not None and audit_as is not None:
                self._archive(row, audit_as)
            return row

    def delete_all(self, *, audit_as=None) -> int:
        with self._lock:
            rows = list(self._rows.values())
            self._rows.clear()
            if audit_as is not None:
                for row in rows:
                    self._archive(row, audit_as)
            return len(rows)


class InMemorySettingsStore:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self._clock = clock or FakeClock()
        self._window: ReservationWindow | None = None
        self._announcements: dict[str, Announcement] = {}

    def get_window(self) -> ReservationWindow | None:
        return self._window

    def put_window(self, start, end) -> ReservationWindow:
        self._window = ReservationWindow(start=start, end=end)
        return self._window

    def get_announcement(self, key: str) -> Announcement | None:
        return self._announcements.get(key)

    def put_announcement(self, key: str, message: str, active: bool) -> Announcement:
        announcement = Announcement(key=key, message=message, active=active, updated_at=self._clock())
        self._announcements[key] = announcement
        return announcement


class RecordingNotifier:
    """ChangeNotifier stand-in that records broadcasts."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def broadcast(self, event: str, payload: object) -> int:
        self.events.append((event, payload))
        return 1

    def last(self, event: str):
        for name, payload in reversed(self.events):
            if name == event:
                return payload
        raise AssertionError(f"no {event} broadcast recorded")


ADMIN_SECRET = "admin-secret-7Q"


def make_request(**overrides) -> ReservationRequest:
    """Request for Kim in room 101 at D1/2/5 unless overridden."""
    fields = {
        "room_no": "101",
        "name": "Kim",
        "dormitory": "D1",
        "floor": "2",
        "seat": 5,
        "password": "p@ssW0rd!",
    }
    fields.update(overrides)
    return ReservationRequest(**fields)
