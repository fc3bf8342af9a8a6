"""Websocket change feed.

On connect the client receives one snapshot each of reservations, the
reservation window and the public announcement, then every broadcast
until it disconnects.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from dormseat.domain.admission import AdmissionController
from dormseat.domain.moderation import Moderation
from dormseat.notify.hub import (
    INITIAL_ANNOUNCEMENT,
    INITIAL_RESERVATIONS,
    INITIAL_SETTINGS,
    ChangeNotifier,
    make_message,
)
from dormseat.observability.logging import get_logger

router = APIRouter(tags=["realtime"])

logger = get_logger(__name__)


def _initial_messages(controller: AdmissionController, moderation: Moderation) -> list[dict]:
    reservations = [r.public_view() for r in controller.list_reservations()]
    return [
        make_message(INITIAL_RESERVATIONS, reservations),
        make_message(INITIAL_SETTINGS, moderation.get_window().public_view()),
        make_message(INITIAL_ANNOUNCEMENT, moderation.get_announcement().public_view()),
    ]


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Inbound frames of any kind are ignored; only the close matters
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.debug("subscriber receive ended", extra={"extra_fields": {"reason": type(exc).__name__}})


@router.websocket("/ws")
async def change_feed(websocket: WebSocket) -> None:
    state = websocket.app.state
    notifier: ChangeNotifier = state.notifier

    await websocket.accept()
    subscription = notifier.subscribe(asyncio.get_running_loop())
    logger.info("subscriber connected", extra={"extra_fields": {"subscribers": notifier.subscriber_count}})

    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        for message in await run_in_threadpool(_initial_messages, state.controller, state.moderation):
            await websocket.send_json(message)

        while True:
            next_message = asyncio.create_task(subscription.queue.get())
            done, _ = await asyncio.wait(
                {next_message, disconnected}, return_when=asyncio.FIRST_COMPLETED
            )
            if disconnected in done:
                next_message.cancel()
                break
            await websocket.send_json(next_message.result())
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        notifier.unsubscribe(subscription)
        logger.info("subscriber disconnected", extra={"extra_fields": {"subscribers": notifier.subscriber_count}})
