"""
In-process realtime hub.

Committed row changes are published as ChangeEvent objects; consumers hold a
Subscription scoped to one table, an event kind and an optional
column-equality filter. A Subscription is an async iterator bound to the
event loop that created it. Delivery is at-most-once: nothing is replayed
for subscriptions created after an event, and a subscription whose loop is
gone is dropped.
"""
import asyncio
import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from heartbeat.core.config import settings

logger = logging.getLogger(__name__)

_CLOSED = object()


class ChangeType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    ALL = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    type: ChangeType
    record: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict:
        return {"table": self.table, "type": self.type.value, "record": self.record}


@dataclass(frozen=True)
class ChannelFilter:
    """Column equality filter, written as ``column=eq.value``."""
    column: str
    value: Any

    @classmethod
    def parse(cls, expression: str) -> "ChannelFilter":
        column, sep, rest = expression.partition("=")
        if not sep or not rest.startswith("eq.") or not column:
            raise ValueError(f"Unsupported filter expression: {expression!r}")
        return cls(column=column, value=rest[len("eq."):])

    def matches(self, record: Dict[str, Any]) -> bool:
        if self.column not in record:
            return False
        actual = record[self.column]
        if isinstance(actual, bool) or isinstance(self.value, bool):
            return str(actual).lower() == str(self.value).lower()
        return str(actual) == str(self.value)


class Subscription:
    """A cancellable stream of change events for one table."""

    def __init__(self, hub: "RealtimeHub", table: str, event: ChangeType,
                 channel_filter: Optional[ChannelFilter], loop: asyncio.AbstractEventLoop,
                 maxsize: int):
        self.table = table
        self.event = event
        self.filter = channel_filter
        self._hub = hub
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        if self.event != ChangeType.ALL and change.type != self.event:
            return False
        if self.filter is not None and not self.filter.matches(change.record):
            return False
        return True

    def _deliver(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(change)
        except asyncio.QueueFull:
            logger.warning(f"Realtime queue full for {self.table}, dropping {change.type.value} event")

    def _wake(self) -> None:
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # A full queue means no reader is blocked on get()
            pass

    def close(self) -> None:
        """Release the subscription. Iteration stops and does not restart."""
        if self._closed:
            return
        self._closed = True
        self._hub._remove(self)
        try:
            self._loop.call_soon_threadsafe(self._wake)
        except RuntimeError:
            # Loop already closed, nobody is waiting
            pass

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


class RealtimeHub:
    def __init__(self):
        self._subscriptions: Set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, table: str, event: ChangeType = ChangeType.ALL,
                  channel_filter: Optional[ChannelFilter] = None,
                  maxsize: Optional[int] = None) -> Subscription:
        """Create a subscription bound to the running event loop."""
        loop = asyncio.get_running_loop()
        subscription = Subscription(
            self, table, event, channel_filter, loop,
            maxsize if maxsize is not None else settings.REALTIME_QUEUE_SIZE,
        )
        with self._lock:
            self._subscriptions.add(subscription)
        logger.debug(f"Subscribed to {table} ({event.value}, filter={channel_filter})")
        return subscription

    def publish(self, change: ChangeEvent) -> int:
        """Fan a change out to every matching subscription. Returns the number scheduled."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]

        delivered = 0
        for subscription in targets:
            try:
                subscription._loop.call_soon_threadsafe(subscription._deliver, change)
                delivered += 1
            except RuntimeError:
                logger.info(f"Dropping realtime subscription on {subscription.table}: event loop closed")
                subscription._closed = True
                self._remove(subscription)
        return delivered

    def subscription_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.table == table)

    def clear(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)


realtime_hub = RealtimeHub()
