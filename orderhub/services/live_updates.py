"""Fan-out of order changes to long-lived subscribers.

Each subscriber owns a change flag. ``notify`` raises every flag; a
subscriber that wakes up reloads the full enriched order list and yields
it. Changes that land while a subscriber is still loading or sending are
folded into its next push, so only the latest state is guaranteed.
"""
import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Set

from orderhub.schemas.order import OrderWithDetails

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Awaitable[List[OrderWithDetails]]]


class OrderStreamHub:
    def __init__(self) -> None:
        self._subscribers: Set[asyncio.Event] = set()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self) -> None:
        for changed in self._subscribers:
            changed.set()

    def close(self) -> None:
        self._closed = True
        self.notify()
        logger.info(f"Order stream closed with {self.subscriber_count} active subscribers")

    async def subscribe(
        self,
        load_snapshot: SnapshotLoader,
        keepalive: Optional[float] = None
    ) -> AsyncIterator[Optional[List[OrderWithDetails]]]:
        """Yield the current snapshot, then a fresh one after each change.

        ``None`` is yielded as a heartbeat when nothing changed within
        ``keepalive`` seconds.
        """
        changed = asyncio.Event()
        self._subscribers.add(changed)
        logger.info(f"Subscriber joined order stream ({self.subscriber_count} active)")

        try:
            snapshot = await self._load(load_snapshot)
            if snapshot is not None:
                yield snapshot

            while not self._closed:
                try:
                    await asyncio.wait_for(changed.wait(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield None
                    continue

                if self._closed:
                    break

                changed.clear()
                snapshot = await self._load(load_snapshot)
                if snapshot is not None:
                    yield snapshot
        finally:
            self._subscribers.discard(changed)
            logger.info(f"Subscriber left order stream ({self.subscriber_count} active)")

    async def _load(self, load_snapshot: SnapshotLoader) -> Optional[List[OrderWithDetails]]:
        try:
            return await load_snapshot()
        except Exception as e:
            logger.error(f"Failed to load order snapshot for stream: {e}", exc_info=True)
            return None


order_stream_hub = OrderStreamHub()
