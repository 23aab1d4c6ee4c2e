"""In-process event bus — topic-keyed publish/subscribe.

Learn: The bus is fire-and-forget like any pub/sub. If no one is
subscribed to a topic when an event is published, the event is gone;
late subscribers never see earlier events.

Each Subscription owns a FIFO queue, so delivery order per subscriber
follows publish order. publish() only enqueues and never awaits, which
keeps it safe to call from any coroutine while other connections are
subscribing and unsubscribing: the subscriber set is snapshotted before
delivery.

Backpressure: a subscriber that falls more than `max_pending` events
behind is detached: it still receives what was queued, then its
iteration fails with SubscriberOverflowError. Events are never dropped
silently.
"""

import asyncio
from collections import deque
from typing import Any, Optional

import structlog

logger = structlog.get_logger()

DEFAULT_MAX_PENDING = 100


class BusClosedError(RuntimeError):
    """Raised when subscribing to a bus that has been closed."""


class SubscriberOverflowError(RuntimeError):
    """Raised to a subscriber whose backlog exceeded its bound."""


class Subscription:
    """One consumer's view of a topic: a lazy, unbounded, one-shot stream.

    Use as an async iterator. Dispose it (or leave an `async with` block)
    to detach from the bus; a consumer suspended in `__anext__` wakes up
    and the iteration ends.
    """

    def __init__(self, bus: "EventBus", topic: str, max_pending: int):
        self.bus = bus
        self.topic = topic
        self.max_pending = max_pending
        self._pending: deque[Any] = deque()
        self._wakeup = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _deliver(self, payload: Any) -> bool:
        if self._disposed:
            return False
        if len(self._pending) >= self.max_pending:
            logger.warning(
                "bookhub.bus.subscriber_overflow",
                topic=self.topic,
                max_pending=self.max_pending,
            )
            self._fail(
                SubscriberOverflowError(
                    f"Subscriber fell more than {self.max_pending} events behind "
                    f"on {self.topic}"
                )
            )
            return False
        self._pending.append(payload)
        self._wakeup.set()
        return True

    def _fail(self, error: BaseException) -> None:
        self._error = error
        self.dispose()

    def dispose(self) -> None:
        """Detach from the bus. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self.bus._detach(self)
        self._wakeup.set()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        while not self._pending:
            if self._disposed:
                if self._error is not None:
                    raise self._error
                raise StopAsyncIteration
            self._wakeup.clear()
            await self._wakeup.wait()
        return self._pending.popleft()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class EventBus:
    """Process-wide pub/sub channel keyed by topic name."""

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING):
        self.max_pending = max_pending
        self._subscribers: dict[str, set[Subscription]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._subscribers.get(topic, ()))
        return sum(len(subs) for subs in self._subscribers.values())

    def subscribe(self, topic: str) -> Subscription:
        """Attach a new subscription. Only events published after this call are seen."""
        if self._closed:
            raise BusClosedError("Event bus is closed")
        subscription = Subscription(self, topic, self.max_pending)
        self._subscribers.setdefault(topic, set()).add(subscription)
        return subscription

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver `payload` to every subscriber currently attached to `topic`.

        Returns how many subscribers received it.
        """
        delivered = 0
        for subscription in list(self._subscribers.get(topic, ())):
            if subscription._deliver(payload):
                delivered += 1
        logger.debug("bookhub.bus.published", topic=topic, delivered=delivered)
        return delivered

    def close(self) -> int:
        """Dispose every subscription and refuse new ones. Returns how many were live."""
        self._closed = True
        live = [sub for subs in self._subscribers.values() for sub in subs]
        for subscription in live:
            subscription.dispose()
        return len(live)

    def _detach(self, subscription: Subscription) -> None:
        subs = self._subscribers.get(subscription.topic)
        if subs is None:
            return
        subs.discard(subscription)
        if not subs:
            del self._subscribers[subscription.topic]
