"""Reservation endpoints.

POST   /reservations          create or move (201 created, 200 moved)
PUT    /reservations/{id}     update as owner (password) or admin
DELETE /reservations/{id}     cancel as owner (password) or admin
DELETE /reservations          cancel everything (admin, not throttled)
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Path, Response, status
from pydantic import BaseModel, ConfigDict, Field

from dormseat.api.admin_auth import AdminDep, OptionalAdminDep
from dormseat.api.deps import get_controller
from dormseat.api.rate_limit import rate_limited
from dormseat.domain.admission import AdmissionController, ReservationRequest
from dormseat.domain.credentials import AdminCredentials

router = APIRouter(prefix="/reservations", tags=["reservations"])


class ReservationBody(BaseModel):
    """Request body for create/move and update."""

    model_config = ConfigDict(populate_by_name=True)

    room_no: str = Field(alias="roomNo")
    name: str
    dormitory: str
    floor: str
    seat: int
    password: str | None = None
    device_id: str | None = Field(default=None, alias="deviceId")
    # Hidden form field; humans leave it empty
    website: str | None = None

    def to_request(self) -> ReservationRequest:
        return ReservationRequest(
            room_no=self.room_no,
            name=self.name,
            dormitory=self.dormitory,
            floor=self.floor,
            seat=self.seat,
            password=self.password or "",
            device_id=self.device_id,
            honeypot=self.website,
        )


class CancelBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: str | None = None
    device_id: str | None = Field(default=None, alias="deviceId")


@router.get("")
def list_reservations(
    controller: AdmissionController = Depends(get_controller),
) -> list[dict]:
    return [r.public_view() for r in controller.list_reservations()]


@router.post("", dependencies=[Depends(rate_limited)])
def submit_reservation(
    body: ReservationBody,
    response: Response,
    controller: AdmissionController = Depends(get_controller),
) -> dict:
    """Create a reservation, or move the caller's existing one."""
    result = controller.submit(body.to_request())
    if result.created:
        response.status_code = status.HTTP_201_CREATED
        message = "Reservation created"
    else:
        message = "Reservation moved"
    return {"message": message, "reservation": result.reservation.public_view()}


@router.put("/{reservation_id}", dependencies=[Depends(rate_limited)])
def update_reservation(
    body: ReservationBody,
    reservation_id: str = Path(..., description="Reservation id"),
    admin: AdminCredentials | None = OptionalAdminDep,
    controller: AdmissionController = Depends(get_controller),
) -> dict:
    updated = controller.update(reservation_id, body.to_request(), admin=admin)
    return {"message": "Reservation updated", "reservation": updated.public_view()}


@router.delete("/{reservation_id}", dependencies=[Depends(rate_limited)])
def cancel_reservation(
    reservation_id: str = Path(..., description="Reservation id"),
    body: CancelBody | None = Body(None),
    admin: AdminCredentials | None = OptionalAdminDep,
    controller: AdmissionController = Depends(get_controller),
) -> dict:
    body = body or CancelBody()
    cancelled = controller.cancel(
        reservation_id,
        password=body.password,
        device_id=body.device_id,
        admin=admin,
    )
    return {"message": "Reservation cancelled", "id": cancelled.id}


@router.delete("")
def cancel_all_reservations(
    admin: AdminCredentials = AdminDep,
    controller: AdmissionController = Depends(get_controller),
) -> dict:
    removed = controller.cancel_all(admin)
    return {"message": "All reservations cancelled", "removed": removed}
