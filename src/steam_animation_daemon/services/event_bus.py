"""
Event Bus - Central lifecycle event broadcast

Implements fan-out pub-sub:
- Publishers: publish(event) (never blocks, never awaits)
- Subscribers: subscribe() -> Subscription, then `await sub.recv()`
- Middleware: add_middleware(middleware_fn)

Every subscriber has its own bounded buffer. When a subscriber falls behind,
its oldest unread events are dropped and the next recv() raises
SubscriberLagged with the number of dropped events.
"""

import asyncio
from collections import deque
from typing import Callable, Deque, List, Optional

from steam_animation_daemon.errors import BusClosed, SubscriberLagged
from steam_animation_daemon.models.events import Event
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.EVENT)

DEFAULT_CAPACITY = 32


class Subscription:
    """
    One subscriber's view of the bus.

    Events published after subscribe() are delivered in publish order.
    `lagged_total` counts every event ever dropped for this subscriber.
    """

    def __init__(self, bus: "EventBus", capacity: int, name: str):
        if capacity < 1:
            raise ValueError("Subscription capacity must be >= 1")
        self._bus = bus
        self._capacity = capacity
        self.name = name
        self._queue: Deque[Event] = deque()
        self._ready = asyncio.Event()
        self._missed = 0
        self._closed = False
        self.lagged_total = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of buffered, unread events"""
        return len(self._queue)

    def _push(self, event: Event) -> None:
        if len(self._queue) >= self._capacity:
            self._queue.popleft()
            self._missed += 1
            self.lagged_total += 1
        self._queue.append(event)
        self._ready.set()

    def _close(self) -> None:
        self._closed = True
        self._ready.set()

    def try_recv(self) -> Optional[Event]:
        """
        Non-blocking receive.

        Returns None when nothing is buffered.

        Raises:
            SubscriberLagged: events were dropped since the last receive
            BusClosed: subscription closed and drained
        """
        if self._missed:
            missed, self._missed = self._missed, 0
            raise SubscriberLagged(missed)
        if self._queue:
            return self._queue.popleft()
        if self._closed:
            raise BusClosed()
        return None

    async def recv(self) -> Event:
        """
        Wait for the next event.

        Raises:
            SubscriberLagged: events were dropped; subsequent calls continue
                with the oldest event still buffered
            BusClosed: subscription closed and drained
        """
        while True:
            event = self.try_recv()
            if event is not None:
                return event
            self._ready.clear()
            await self._ready.wait()

    def close(self) -> None:
        """Unsubscribe; buffered events can still be drained"""
        self._bus.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        try:
            return await self.recv()
        except BusClosed:
            raise StopAsyncIteration


class EventBus:
    """
    Central event bus for lifecycle events

    Features:
    - Per-subscriber bounded buffers with drop-oldest overflow
    - Lag notification (SubscriberLagged) instead of silent loss
    - Middleware pipeline (logging, blocking)
    - Bounded event history for debugging

    Example:
        bus = EventBus(capacity=32)
        sub = bus.subscribe(name="dispatch")

        bus.publish(LifecycleEvent.starting(pid_count=3))
        event = await sub.recv()
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._capacity = capacity
        self._subscribers: List[Subscription] = []

        # Middleware pipeline (applied in registration order)
        self._middleware: List[Callable[[Event], Optional[Event]]] = []

        # Event history (circular buffer for debugging)
        self._event_history: Deque[Event] = deque(maxlen=100)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, capacity: Optional[int] = None, name: Optional[str] = None) -> Subscription:
        """
        Subscribe to all events published from now on

        Args:
            capacity: Buffer size for this subscriber (default: bus capacity)
            name: Label used in logs
        """
        sub = Subscription(
            self,
            capacity or self._capacity,
            name or f"subscriber-{len(self._subscribers) + 1}",
        )
        self._subscribers.append(sub)

        log.debug(
            "Event subscriber registered",
            subscriber=sub.name,
            capacity=capacity or self._capacity,
        )
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            log.debug("Event subscriber removed", subscriber=subscription.name)
        subscription._close()

    def add_middleware(self, middleware: Callable[[Event], Optional[Event]]) -> None:
        """
        Add middleware to event processing pipeline

        Middleware can:
        - Modify events (return a new event)
        - Block events (return None)
        - Log/validate events

        Middleware runs in registration order (FIFO).
        """
        self._middleware.append(middleware)
        log.debug(
            "Middleware registered",
            middleware=middleware.__name__
        )

    def publish(self, event: Event) -> int:
        """
        Publish event to all subscribers

        Flow:
        1. Apply middleware (can modify or block event)
        2. Save to event history
        3. Push into every subscriber buffer (dropping oldest on overflow)

        Returns:
            Number of subscribers the event was delivered to
        """
        for middleware in self._middleware:
            processed_event = middleware(event)
            if processed_event is None:
                return 0
            event = processed_event

        self._event_history.append(event)

        if not self._subscribers:
            log.warn("No subscribers for event", event_type=event.type.name)
            return 0

        for sub in self._subscribers:
            before = sub.lagged_total
            sub._push(event)
            if sub.lagged_total != before:
                log.warn(
                    "Subscriber buffer full, dropped oldest event",
                    subscriber=sub.name,
                    lagged_total=sub.lagged_total,
                )

        return len(self._subscribers)

    def close(self) -> None:
        """Close every subscription"""
        for sub in list(self._subscribers):
            self.unsubscribe(sub)

    def get_event_history(self, limit: int = 10) -> List[Event]:
        """
        Get recent events from history

        Returns:
            List of recent events (newest last)
        """
        return list(self._event_history)[-limit:]

    def clear_history(self) -> None:
        """Clear event history"""
        self._event_history.clear()
