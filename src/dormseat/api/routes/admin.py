"""Admin endpoints: login, reservation window, announcements, audit trail."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from dormseat.api.admin_auth import AdminDep
from dormseat.api.deps import get_moderation
from dormseat.domain.credentials import AdminCredentials
from dormseat.domain.moderation import Moderation

router = APIRouter(tags=["admin"])


class AdminLoginRequest(BaseModel):
    password: str = Field(min_length=1)
    name: str | None = None


class WindowRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: datetime | None = Field(default=None, alias="reservationStartTime")
    end: datetime | None = Field(default=None, alias="reservationEndTime")


class AnnouncementRequest(BaseModel):
    message: str = ""
    active: bool = False


@router.post("/admin-login")
def admin_login(
    body: AdminLoginRequest,
    moderation: Moderation = Depends(get_moderation),
) -> dict:
    moderation.login(AdminCredentials(secret=body.password, name=body.name))
    return {"success": True, "message": "Admin login succeeded"}


@router.get("/admin-settings")
def get_admin_settings(moderation: Moderation = Depends(get_moderation)) -> dict:
    return moderation.get_window().public_view()


@router.put("/admin-settings")
def put_admin_settings(
    body: WindowRequest,
    admin: AdminCredentials = AdminDep,
    moderation: Moderation = Depends(get_moderation),
) -> dict:
    return moderation.update_window(admin, body.start, body.end).public_view()


@router.get("/announcement")
def get_announcement(moderation: Moderation = Depends(get_moderation)) -> dict:
    return moderation.get_announcement().public_view()


@router.put("/announcement")
def put_announcement(
    body: AnnouncementRequest,
    admin: AdminCredentials = AdminDep,
    moderation: Moderation = Depends(get_moderation),
) -> dict:
    return moderation.update_announcement(admin, body.message, body.active).public_view()


@router.get("/admin-announcement")
def get_admin_announcement(
    admin: AdminCredentials = AdminDep,
    moderation: Moderation = Depends(get_moderation),
) -> dict:
    return moderation.get_admin_announcement(admin).public_view()


@router.put("/admin-announcement")
def put_admin_announcement(
    body: AnnouncementRequest,
    admin: AdminCredentials = AdminDep,
    moderation: Moderation = Depends(get_moderation),
) -> dict:
    return moderation.update_admin_announcement(admin, body.message, body.active).public_view()


@router.get("/cancelled-reservations")
def list_cancelled_reservations(
    admin: AdminCredentials = AdminDep,
    moderation: Moderation = Depends(get_moderation),
) -> list[dict]:
    return [c.public_view() for c in moderation.list_cancelled(admin)]
