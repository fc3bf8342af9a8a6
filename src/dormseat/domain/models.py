"""Reservation, settings and announcement records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

WINDOW_KEY = "reservationTimes"
ANNOUNCEMENT_KEY = "currentAnnouncement"
ADMIN_ANNOUNCEMENT_KEY = "adminOnlyAnnouncement"

# seat column is a PostgreSQL integer
MAX_SEAT = 2**31 - 1


@dataclass(frozen=True)
class Identity:
    """Who holds a reservation: (room_no, name)."""

    room_no: str
    name: str


@dataclass(frozen=True)
class Placement:
    """Physical seat: (dormitory, floor, seat)."""

    dormitory: str
    floor: str
    seat: int


@dataclass(frozen=True)
class NewReservation:
    identity: Identity
    placement: Placement
    password_hash: str
    device_id: str | None = None


@dataclass(frozen=True)
class Reservation:
    id: str
    room_no: str
    name: str
    dormitory: str
    floor: str
    seat: int
    password_hash: str
    created_at: datetime
    device_id: str | None = None

    @property
    def identity(self) -> Identity:
        return Identity(self.room_no, self.name)

    @property
    def placement(self) -> Placement:
        return Placement(self.dormitory, self.floor, self.seat)

    def public_view(self) -> dict[str, Any]:
        """JSON shape sent to clients. Never includes hash or device id."""
        return {
            "id": self.id,
            "roomNo": self.room_no,
            "name": self.name,
            "dormitory": self.dormitory,
            "floor": self.floor,
            "seat": self.seat,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CancelledReservation:
    """Audit snapshot of a deleted reservation. Append-only."""

    id: str
    reservation_id: str
    room_no: str
    name: str
    dormitory: str
    floor: str
    seat: int
    created_at: datetime
    cancelled_at: datetime
    cancelled_by: str

    def public_view(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "reservationId": self.reservation_id,
            "roomNo": self.room_no,
            "name": self.name,
            "dormitory": self.dormitory,
            "floor": self.floor,
            "seat": self.seat,
            "createdAt": self.created_at.isoformat(),
            "cancelledAt": self.cancelled_at.isoformat(),
            "cancelledBy": self.cancelled_by,
        }


@dataclass(frozen=True)
class ReservationWindow:
    start: datetime | None = None
    end: datetime | None = None

    def public_view(self) -> dict[str, Any]:
        return {
            "key": WINDOW_KEY,
            "reservationStartTime": self.start.isoformat() if self.start else None,
            "reservationEndTime": self.end.isoformat() if self.end else None,
        }


@dataclass(frozen=True)
class Announcement:
    key: str
    message: str
    active: bool
    updated_at: datetime

    def public_view(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "message": self.message,
            "active": self.active,
            "updatedAt": self.updated_at.isoformat(),
        }
