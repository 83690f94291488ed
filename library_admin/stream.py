"""
Push-based value streams used by the form model.

A ValueStream delivers every emitted value synchronously to its subscribers,
in subscription order. Subscribers may ask for a seed emission at subscribe
time (``start_with``) so derived state exists before the first real event.
Streams stay open until ``close()``; closing completes every subscription and
ends any ``values()`` iterator. Subscriptions are context managers so callers
can scope them::

    with control.value_changes.subscribe(print, start_with=control.value):
        control.set_value("tol")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, List, Optional

logger = logging.getLogger(__name__)

_NO_VALUE = object()
_COMPLETE = object()


class Subscription:
    """Handle returned by :meth:`ValueStream.subscribe`; release it with ``unsubscribe()``."""

    def __init__(self, stream: "ValueStream", observer: Callable[[Any], None],
                 on_complete: Optional[Callable[[], None]] = None) -> None:
        self._stream = stream
        self._observer = observer
        self._on_complete = on_complete
        self.closed = False

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._stream._remove(self)

    def _complete(self) -> None:
        if self.closed:
            return
        self.unsubscribe()
        if self._on_complete is not None:
            self._on_complete()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()


class ValueStream:
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def observer_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, observer: Callable[[Any], None], start_with: Any = _NO_VALUE,
                  on_complete: Optional[Callable[[], None]] = None) -> Subscription:
        if self._closed:
            raise RuntimeError(f"Stream {self.name!r} is closed")
        subscription = Subscription(self, observer, on_complete)
        self._subscriptions.append(subscription)
        if start_with is not _NO_VALUE:
            observer(start_with)
        return subscription

    def emit(self, value: Any) -> None:
        if self._closed:
            raise RuntimeError(f"Cannot emit on closed stream {self.name!r}")
        # Observers may subscribe or unsubscribe while being notified
        for subscription in list(self._subscriptions):
            if not subscription.closed:
                subscription._observer(value)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for subscription in list(self._subscriptions):
            subscription._complete()
        logger.debug(f"Stream {self.name!r} closed")

    async def values(self, start_with: Any = _NO_VALUE) -> AsyncIterator[Any]:
        """Iterate emissions asynchronously until the stream is closed."""
        if self._closed:
            return
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self.subscribe(
            queue.put_nowait,
            start_with=start_with,
            on_complete=lambda: queue.put_nowait(_COMPLETE),
        )
        try:
            while True:
                item = await queue.get()
                if item is _COMPLETE:
                    return
                yield item
        finally:
            subscription.unsubscribe()

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass
