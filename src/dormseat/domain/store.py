"""Storage contracts the domain depends on.

The reservation store is the authority on uniqueness: both the identity
and the placement key are backed by unique indexes, and a write that
violates one of them raises UniqueConstraintViolation naming which.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Protocol

from .models import (
    Announcement,
    CancelledReservation,
    Identity,
    NewReservation,
    Placement,
    Reservation,
    ReservationWindow,
)


class ConflictKind(str, enum.Enum):
    IDENTITY = "identity"
    PLACEMENT = "placement"


class UniqueConstraintViolation(Exception):
    """Raised by store writes rejected by a unique index."""

    def __init__(self, kind: ConflictKind) -> None:
        self.kind = kind
        super().__init__(f"unique constraint violated on {kind.value} key")


class ReservationStore(Protocol):
    def find_by_id(self, reservation_id: str) -> Reservation | None: ...

    def find_by_identity(self, identity: Identity) -> Reservation | None: ...

    def find_by_placement(self, placement: Placement) -> Reservation | None: ...

    def find_by_placement_excluding(
        self, placement: Placement, exclude_id: str
    ) -> Reservation | None: ...

    def insert(self, new: NewReservation) -> Reservation: ...

    def update_placement(
        self, reservation_id: str, placement: Placement, *, device_id: str | None = None
    ) -> Reservation | None: ...

    def update(
        self,
        reservation_id: str,
        *,
        identity: Identity,
        placement: Placement,
        device_id: str | None = None,
    ) -> Reservation | None: ...

    def delete(self, reservation_id: str, *, audit_as: str | None = None) -> Reservation | None: ...

    def delete_all(self, *, audit_as: str | None = None) -> int: ...

    def list_all(self) -> list[Reservation]: ...

    def list_cancelled(self) -> list[CancelledReservation]: ...


class SettingsStore(Protocol):
    def get_window(self) -> ReservationWindow | None: ...

    def put_window(self, start: datetime | None, end: datetime | None) -> ReservationWindow: ...

    def get_announcement(self, key: str) -> Announcement | None: ...

    def put_announcement(self, key: str, message: str, active: bool) -> Announcement: ...
