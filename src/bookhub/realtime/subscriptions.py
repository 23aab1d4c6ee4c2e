"""Subscription manager — binds live GraphQL subscriptions to bus topics.

Learn: Every `subscription { bookAdded { ... } }` operation becomes one
stream() generator. The generator's `finally` disposes the bus
subscription, so it is detached whether the client stops the operation,
the socket drops (the GraphQL router cancels the generator), or the
server drains.

The manager keeps the set of live subscriptions so a draining server can
dispose them all and let their connections complete.
"""

from collections.abc import AsyncGenerator
from typing import Any

import structlog

from bookhub.realtime.bus import EventBus, Subscription

logger = structlog.get_logger()


class SubscriptionManager:
    """Tracks every live subscription opened through the GraphQL layer."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        self._live: set[Subscription] = set()

    @property
    def active_count(self) -> int:
        return len(self._live)

    def open(self, topic: str) -> Subscription:
        """Subscribe to `topic` and track the subscription until it is disposed."""
        subscription = self.bus.subscribe(topic)
        self._live.add(subscription)
        logger.info(
            "bookhub.subscription.opened", topic=topic, active=len(self._live)
        )
        return subscription

    def release(self, subscription: Subscription) -> None:
        subscription.dispose()
        if subscription in self._live:
            self._live.discard(subscription)
            logger.info(
                "bookhub.subscription.disposed",
                topic=subscription.topic,
                active=len(self._live),
            )

    async def stream(self, topic: str) -> AsyncGenerator[Any, None]:
        """Yield each payload published to `topic` until disposed."""
        subscription = self.open(topic)
        try:
            async for payload in subscription:
                yield payload
        finally:
            self.release(subscription)

    def dispose_all(self) -> int:
        """Dispose every live subscription. Returns how many there were."""
        live = list(self._live)
        for subscription in live:
            self.release(subscription)
        return len(live)
