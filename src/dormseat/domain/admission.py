"""Reservation admission control.

Decides whether a create/move, update, cancel or bulk-cancel request is
accepted. No reservation state is kept between requests: every decision
re-reads the store.

The read-then-write in submit() is a check-then-act race. Two requests
can both pass the pre-check for the same seat; the store's unique indexes
let exactly one write through and the loser surfaces as
DuplicateDetectedError instead of a server error.

Order of checks for submit():
validate → window → password policy → lookups → placement tie-break →
move (verify password, device) or create → broadcast full list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from dormseat.config import Config
from dormseat.infra.hashing import hash_credential, password_too_long, verify_credential
from dormseat.infra.time import utc_now
from dormseat.notify.hub import RESERVATIONS_UPDATED, ChangeNotifier
from dormseat.observability.logging import get_logger
from dormseat.observability.redaction import safe_log_context

from .credentials import AdminCredentials, is_weak_password, verify_admin
from .errors import (
    AuthorizationError,
    CredentialMismatchError,
    DeviceMismatchError,
    DuplicateDetectedError,
    IdentityTakenError,
    NotFoundError,
    PasswordMismatchError,
    PlacementTakenError,
    ValidationError,
    WeakCredentialError,
    WindowClosedError,
)
from .models import MAX_SEAT, Identity, NewReservation, Placement, Reservation
from .store import ConflictKind, ReservationStore, SettingsStore, UniqueConstraintViolation
from .window import is_booking_open, load_window

logger = get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class ReservationRequest:
    """Fields submitted by a user for create/move/update."""

    room_no: str
    name: str
    dormitory: str
    floor: str
    seat: int
    password: str
    device_id: str | None = None
    honeypot: str | None = None

    @property
    def identity(self) -> Identity:
        return Identity(self.room_no.strip(), self.name.strip())

    @property
    def placement(self) -> Placement:
        return Placement(self.dormitory.strip(), self.floor.strip(), self.seat)


@dataclass(frozen=True)
class AdmissionResult:
    reservation: Reservation
    created: bool


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


class AdmissionController:
    """Accept/reject decisions for reservation mutations."""

    def __init__(
        self,
        config: Config,
        reservations: ReservationStore,
        settings: SettingsStore,
        notifier: ChangeNotifier,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._reservations = reservations
        self._settings = settings
        self._notifier = notifier
        self._clock = clock

    # ── queries ──────────────────────────────────────────────────────────

    def list_reservations(self) -> list[Reservation]:
        return self._reservations.list_all()

    # ── create / move ────────────────────────────────────────────────────

    def submit(self, request: ReservationRequest) -> AdmissionResult:
        """Create a reservation for a new identity or move an existing one.

        Raises:
            ValidationError, WindowClosedError, WeakCredentialError,
            PlacementTakenError, CredentialMismatchError,
            DeviceMismatchError, DuplicateDetectedError.
        """
        self._validate(request, require_password=True)
        self._require_open_window()
        if self._config.enforce_password_policy and is_weak_password(request.password):
            raise WeakCredentialError()

        identity = request.identity
        placement = request.placement
        existing = self._reservations.find_by_identity(identity)
        conflict = self._reservations.find_by_placement(placement)

        # A seat conflict is only forgivable when the holder is the requester
        if conflict is not None and (existing is None or conflict.id != existing.id):
            self._log_rejection("placement taken", placement, conflict_id=conflict.id)
            raise PlacementTakenError()

        if existing is not None:
            if not verify_credential(request.password, existing.password_hash):
                raise CredentialMismatchError()
            self._check_device(existing, request.device_id)
            moved = self._write(
                lambda: self._reservations.update_placement(
                    existing.id, placement, device_id=request.device_id
                )
            )
            if moved is None:
                raise NotFoundError()
            self._log_accepted("reservation moved", moved)
            self._publish_reservations()
            return AdmissionResult(reservation=moved, created=False)

        new = NewReservation(
            identity=identity,
            placement=placement,
            password_hash=hash_credential(request.password),
            device_id=request.device_id,
        )
        created = self._write(lambda: self._reservations.insert(new))
        self._log_accepted("reservation created", created)
        self._publish_reservations()
        return AdmissionResult(reservation=created, created=True)

    # ── update by id ─────────────────────────────────────────────────────

    def update(
        self,
        reservation_id: str,
        request: ReservationRequest,
        *,
        admin: AdminCredentials | None = None,
    ) -> Reservation:
        """Rewrite identity and placement of an existing reservation.

        Owners authenticate with the reservation password inside the
        window; admins bypass both.
        """
        self._validate(request, require_password=admin is None)
        if admin is None:
            self._require_open_window()

        record = self._reservations.find_by_id(reservation_id)
        if record is None:
            raise NotFoundError()

        if admin is not None:
            self._require_admin(admin)
            device_id = None
        else:
            if not verify_credential(request.password, record.password_hash):
                raise CredentialMismatchError()
            self._check_device(record, request.device_id)
            device_id = request.device_id

        identity = request.identity
        placement = request.placement
        holder = self._reservations.find_by_identity(identity)
        if holder is not None and holder.id != record.id:
            raise IdentityTakenError()
        conflict = self._reservations.find_by_placement_excluding(placement, record.id)
        if conflict is not None:
            self._log_rejection("placement taken", placement, conflict_id=conflict.id)
            raise PlacementTakenError()

        updated = self._write(
            lambda: self._reservations.update(
                record.id, identity=identity, placement=placement, device_id=device_id
            )
        )
        if updated is None:
            raise NotFoundError()
        self._log_accepted("reservation updated", updated)
        self._publish_reservations()
        return updated

    # ── cancel ───────────────────────────────────────────────────────────

    def cancel(
        self,
        reservation_id: str,
        *,
        password: str | None = None,
        device_id: str | None = None,
        admin: AdminCredentials | None = None,
    ) -> Reservation:
        """Delete one reservation as its owner or as an admin."""
        if admin is None and _blank(password):
            raise ValidationError("Password is required to cancel")
        if admin is None and self._config.self_cancel_requires_window:
            self._require_open_window()

        record = self._reservations.find_by_id(reservation_id)
        if record is None:
            raise NotFoundError()

        if admin is not None:
            self._require_admin(admin)
            cancelled_by = "admin"
        else:
            if not verify_credential(password, record.password_hash):
                raise PasswordMismatchError()
            self._check_device(record, device_id)
            cancelled_by = "owner"

        deleted = self._reservations.delete(record.id, audit_as=self._audit_tag(cancelled_by))
        if deleted is None:
            raise NotFoundError()
        self._log_accepted("reservation cancelled", deleted, cancelled_by=cancelled_by)
        self._publish_reservations()
        return deleted

    def cancel_all(self, admin: AdminCredentials) -> int:
        """Delete every reservation. Admin only."""
        self._require_admin(admin)
        removed = self._reservations.delete_all(audit_as=self._audit_tag("admin"))
        logger.info(
            "all reservations cancelled",
            extra={"extra_fields": safe_log_context(removed=removed)},
        )
        self._publish_reservations()
        return removed

    # ── helpers ──────────────────────────────────────────────────────────

    def _validate(self, request: ReservationRequest, *, require_password: bool) -> None:
        if not _blank(request.honeypot):
            logger.warning("honeypot field filled, rejecting")
            raise ValidationError("Invalid request")
        for value in (request.room_no, request.name, request.dormitory, request.floor):
            if _blank(value):
                raise ValidationError()
        if request.seat is None or not 0 <= request.seat <= MAX_SEAT:
            raise ValidationError(f"Seat must be between 0 and {MAX_SEAT}")
        if require_password and _blank(request.password):
            raise ValidationError()
        if request.password and password_too_long(request.password):
            raise ValidationError("Password is too long")

    def _require_open_window(self) -> None:
        window = load_window(self._settings, self._config)
        if not is_booking_open(window, self._clock()):
            raise WindowClosedError()

    def _require_admin(self, admin: AdminCredentials) -> None:
        if not verify_admin(self._config, admin):
            logger.warning("admin credential rejected")
            raise AuthorizationError()

    def _check_device(self, record: Reservation, device_id: str | None) -> None:
        # Records without a binding predate device binding and are not checked
        if not self._config.enforce_device_binding or record.device_id is None:
            return
        if device_id != record.device_id:
            raise DeviceMismatchError()

    def _audit_tag(self, cancelled_by: str) -> str | None:
        return cancelled_by if self._config.audit_cancellations else None

    def _write(self, operation: Callable[[], Reservation | None]) -> Reservation | None:
        try:
            return operation()
        except UniqueConstraintViolation as exc:
            logger.warning(
                "write lost race on unique index",
                extra={"extra_fields": safe_log_context(conflict=exc.kind.value)},
            )
            if exc.kind is ConflictKind.IDENTITY:
                message = "This room number and name were just reserved by another request"
            else:
                message = "Seat was just reserved by another request"
            raise DuplicateDetectedError(exc.kind.value, message) from exc

    def _publish_reservations(self) -> None:
        """Post-commit hook: push the complete list to subscribers.

        Runs after the write has committed; a failure here is logged and
        does not turn the request into an error.
        """
        try:
            snapshot = [r.public_view() for r in self._reservations.list_all()]
            self._notifier.broadcast(RESERVATIONS_UPDATED, snapshot)
        except Exception:
            logger.exception("reservation broadcast failed")

    def _log_accepted(self, message: str, reservation: Reservation, **fields: str) -> None:
        logger.info(
            message,
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation.id,
                    dormitory=reservation.dormitory,
                    floor=reservation.floor,
                    seat=reservation.seat,
                    **fields,
                )
            },
        )

    def _log_rejection(self, message: str, placement: Placement, **fields: str) -> None:
        logger.info(
            message,
            extra={
                "extra_fields": safe_log_context(
                    dormitory=placement.dormitory,
                    floor=placement.floor,
                    seat=placement.seat,
                    **fields,
                )
            },
        )
