"""Dependency providers reading the collaborators wired by create_app()."""

from __future__ import annotations

from fastapi import Request

from dormseat.domain.admission import AdmissionController
from dormseat.domain.moderation import Moderation


def get_controller(request: Request) -> AdmissionController:
    return request.app.state.controller


def get_moderation(request: Request) -> Moderation:
    return request.app.state.moderation
