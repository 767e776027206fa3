"""
In-process change feed used for live notification updates.

Writers publish ``ChangeEvent`` objects after a commit; readers obtain a
``Subscription`` for the rows they care about and iterate over it. A
subscription must be closed when its owner goes away (WebSocket disconnect,
logout); using it as an async context manager does that automatically.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"


@dataclass
class ChangeEvent:
    table: str
    kind: str  # INSERT or UPDATE
    record: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChangeFilter:
    """Matches events on one table, optionally restricted to one column value"""

    table: str
    column: Optional[str] = None
    value: Any = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.column is None:
            return True
        return event.record.get(self.column) == self.value


class Subscription:
    """Stream of change events matching one filter"""

    def __init__(self, feed: "ChangeFeed", change_filter: ChangeFilter):
        self.feed = feed
        self.filter = change_filter
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def deliver(self, event: ChangeEvent) -> None:
        if not self.closed:
            self.queue.put_nowait(event)

    async def get(self, timeout: Optional[float] = None) -> ChangeEvent:
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.feed.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeFeed:
    """Fan-out of change events to live subscriptions"""

    def __init__(self):
        self.subscriptions: List[Subscription] = []

    def subscribe(self, change_filter: ChangeFilter) -> Subscription:
        subscription = Subscription(self, change_filter)
        self.subscriptions.append(subscription)
        logger.info(f"Subscribed to {change_filter.table} ({change_filter.column}={change_filter.value}). Total subscriptions: {len(self.subscriptions)}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        try:
            self.subscriptions.remove(subscription)
            logger.info(f"Unsubscribed from {subscription.filter.table}. Remaining subscriptions: {len(self.subscriptions)}")
        except ValueError:
            # Already removed
            pass

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every matching subscription; returns the delivery count"""
        delivered = 0
        for subscription in self.subscriptions.copy():
            if subscription.filter.matches(event):
                subscription.deliver(event)
                delivered += 1
        return delivered

    def subscription_count(self, predicate: Optional[Callable[[Subscription], bool]] = None) -> int:
        if predicate is None:
            return len(self.subscriptions)
        return sum(1 for s in self.subscriptions if predicate(s))


# Global change feed instance
change_feed = ChangeFeed()
