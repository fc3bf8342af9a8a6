"""FastAPI application factory.

Collaborators (config, stores, notifier, clock) are injected so tests can
run the whole HTTP surface against in-memory fakes.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from dormseat.config import Config
from dormseat.domain.admission import AdmissionController, Clock
from dormseat.domain.moderation import Moderation
from dormseat.domain.store import ReservationStore, SettingsStore
from dormseat.infra.time import utc_now
from dormseat.notify.hub import ChangeNotifier
from dormseat.observability.logging import configure_logging
from dormseat.observability.request_context import (
    REQUEST_ID_HEADER,
    bind_request_id,
    new_request_id,
    unbind_request_id,
)

from .errors import register_exception_handlers
from .rate_limit import FixedWindowRateLimiter
from .routes import admin, health, realtime, reservations


def create_app(
    config: Config | None = None,
    *,
    reservation_store: ReservationStore | None = None,
    settings_store: SettingsStore | None = None,
    notifier: ChangeNotifier | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        config: Explicit configuration. If None, read from the environment.
        reservation_store: Store override. Defaults to PostgreSQL.
        settings_store: Settings store override. Defaults to PostgreSQL.
        notifier: Change notifier override.
        clock: Source of "now" for the reservation window.

    Returns:
        Configured FastAPI application.
    """
    if config is None:
        config = Config.from_env()

    configure_logging(config.log_level)

    if reservation_store is None or settings_store is None:
        from dormseat.infra.repositories.reservations_repository import PostgresReservationStore
        from dormseat.infra.repositories.settings_repository import PostgresSettingsStore

        reservation_store = reservation_store or PostgresReservationStore(config.database_url)
        settings_store = settings_store or PostgresSettingsStore(config.database_url)

    notifier = notifier or ChangeNotifier()

    app = FastAPI(title="Dormseat", docs_url=None, redoc_url=None)

    app.state.config = config
    app.state.notifier = notifier
    app.state.rate_limiter = FixedWindowRateLimiter(
        config.rate_limit_max_requests, config.rate_limit_window_seconds
    )
    app.state.controller = AdmissionController(
        config, reservation_store, settings_store, notifier, clock=clock
    )
    app.state.moderation = Moderation(config, reservation_store, settings_store, notifier)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = bind_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            unbind_request_id(token)

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(reservations.router)
    app.include_router(admin.router)
    app.include_router(realtime.router)

    return app
