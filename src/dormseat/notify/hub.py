"""In-process fan-out of change events to websocket subscribers.

Request handlers are sync and run in the threadpool, while each websocket
lives on the event loop. broadcast() therefore hands messages over with
loop.call_soon_threadsafe into a per-subscriber asyncio.Queue.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any

from fastapi.encoders import jsonable_encoder

from dormseat.observability.logging import get_logger

logger = get_logger(__name__)

RESERVATIONS_UPDATED = "reservationsUpdated"
SETTINGS_UPDATED = "settingsUpdated"
ANNOUNCEMENT_UPDATED = "announcementUpdated"

INITIAL_RESERVATIONS = "initialReservations"
INITIAL_SETTINGS = "initialSettings"
INITIAL_ANNOUNCEMENT = "initialAnnouncement"

# Pending messages per subscriber; a slow reader loses the oldest first
SUBSCRIBER_QUEUE_SIZE = 100


def make_message(event: str, payload: Any) -> dict[str, Any]:
    return {"event": event, "data": jsonable_encoder(payload)}


@dataclass(eq=False)
class Subscription:
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(
        default_factory=lambda: asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
    )
    dropped: int = 0

    def offer(self, message: dict[str, Any]) -> None:
        """Enqueue, evicting the oldest pending message when full.

        Runs on the subscriber's loop. Each event carries a full snapshot,
        so a later message of the same event supersedes an evicted one.
        """
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(message)


class ChangeNotifier:
    """Thread-safe registry of subscribers plus broadcast."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, loop: asyncio.AbstractEventLoop) -> Subscription:
        subscription = Subscription(loop=loop)
        with self._lock:
            self._subscriptions.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def broadcast(self, event: str, payload: Any) -> int:
        """Queue one message for every subscriber.

        Returns the number of subscribers the message was handed to.
        Subscribers whose loop has shut down are dropped.
        """
        message = make_message(event, payload)
        with self._lock:
            targets = list(self._subscriptions)

        delivered = 0
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription.offer, message)
                delivered += 1
            except RuntimeError:
                # loop closed
                self.unsubscribe(subscription)

        logger.info(
            "broadcast",
            extra={"extra_fields": {"event": event, "subscribers": delivered}},
        )
        return delivered
