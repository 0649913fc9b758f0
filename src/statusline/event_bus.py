"""Thread-safe event bus for statusline update and error notifications."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Protocol

logger = logging.getLogger(__name__)

UPDATE = "update"
ERROR = "error"
CHANNELS = (UPDATE, ERROR)


class EventHandler(Protocol):
    """
    Protocol for channel subscribers.

    Handlers on the "update" channel receive a StatusLineEvent; handlers on
    the "error" channel receive an Exception.
    """

    def __call__(self, payload: Any) -> None: ...


class EventBus:
    """
    Thread-safe pub/sub bus with two named channels.

    Thread Safety:
        - All public methods are thread-safe
        - Subscribers can be added/removed during publishing, including
          from inside a handler
        - Payloads are delivered in subscription order (per channel)

    Example:
        bus = EventBus()

        def handler(event: StatusLineEvent) -> None:
            print(event.agent_name, event.data)

        sub_id = bus.subscribe("update", handler)
        bus.publish("update", event)
        bus.unsubscribe(sub_id)
    """

    def __init__(self) -> None:
        # channel -> list of (subscription_id, handler)
        self._subscribers: dict[str, list[tuple[str, EventHandler]]] = {
            channel: [] for channel in CHANNELS
        }
        self._lock = threading.Lock()

    def subscribe(self, channel: str, handler: EventHandler) -> str:
        """
        Subscribe a handler to a channel.

        Args:
            channel: "update" or "error"
            handler: Callable invoked with each published payload

        Returns:
            Subscription ID for unsubscribing

        Raises:
            ValueError: If the channel is unknown
        """
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel!r} (expected one of {CHANNELS})")

        subscription_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[channel].append((subscription_id, handler))
            total = len(self._subscribers[channel])

        logger.debug(
            "Subscribed to channel",
            extra={
                "channel": channel,
                "subscription_id": subscription_id,
                "total_subscribers": total,
            },
        )
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """
        Remove a subscription.

        Args:
            subscription_id: ID returned from subscribe()

        Returns:
            True if unsubscribed, False if ID not found
        """
        with self._lock:
            for channel, subscribers in self._subscribers.items():
                for i, (sub_id, _) in enumerate(subscribers):
                    if sub_id == subscription_id:
                        subscribers.pop(i)
                        logger.debug(
                            "Unsubscribed from channel",
                            extra={"channel": channel, "subscription_id": subscription_id},
                        )
                        return True

        logger.debug(
            "Subscription ID not found",
            extra={"subscription_id": subscription_id},
        )
        return False

    def publish(self, channel: str, payload: Any) -> None:
        """
        Deliver a payload to every subscriber of a channel, synchronously.

        A handler that raises is logged and does not prevent the remaining
        handlers from running.

        Args:
            channel: "update" or "error"
            payload: Value handed to each handler

        Raises:
            ValueError: If the channel is unknown
        """
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel!r} (expected one of {CHANNELS})")

        # Snapshot so handlers may (un)subscribe while we iterate
        with self._lock:
            subscribers = list(self._subscribers[channel])

        for subscription_id, handler in subscribers:
            try:
                handler(payload)
            except Exception as e:
                logger.error(
                    "Handler raised exception",
                    extra={
                        "channel": channel,
                        "subscription_id": subscription_id,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )

    def get_subscriber_count(self, channel: str | None = None) -> int:
        """
        Get the number of subscribers.

        Args:
            channel: Channel to count. If None, returns the total across channels.
        """
        with self._lock:
            if channel is not None:
                return len(self._subscribers.get(channel, []))
            return sum(len(subs) for subs in self._subscribers.values())
