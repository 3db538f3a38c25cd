"""
Polling broadcaster for realtime detection events.

The Frigate database offers no change notification, so the poller re-queries
a sliding window on a fixed interval. Each tick covers
[last_poll_time - window_seconds, now]; the overlap means an event near a
tick boundary can be delivered twice. Delivery is at-least-once and
consumers that need exactly-once display de-duplicate on `source_id`.
"""

import asyncio
import inspect
import logging
import time

from collections.abc import Awaitable, Callable
from typing import Any

from shiftlens.config import PollerConfig
from shiftlens.constants import LABEL_CELL_PHONE, LABEL_PERSON, EventCategory
from shiftlens.database.source import EventSource
from shiftlens.exceptions import PollTickError
from shiftlens.models.events import EventFilter
from shiftlens.models.realtime import BroadcastPayload, PollerStats, RealtimeEvent, Subscription
from shiftlens.realtime.classify import (
    camera_activity_events,
    employee_event,
    matches_filter,
    violation_event,
    zone_event,
)
from shiftlens.realtime.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

BroadcastFn = Callable[[str, dict[str, Any]], Awaitable[None] | None]


class RealtimePoller:
    """
    Periodically query the event source and push new events to subscribers.

    Lifecycle: construct, `initialize(broadcast_fn)` (or `start()`), `stop()`.
    All methods must be called from the event loop that runs the poller.

    Args:
        source: Event source to poll
        config: Interval, window and per-category row limits
        clock: Returns the current unix time
        registry: Subscription registry (a fresh one by default)
    """

    def __init__(
        self,
        source: EventSource,
        config: PollerConfig | None = None,
        clock: Callable[[], float] = time.time,
        registry: SubscriptionRegistry | None = None,
    ):
        self.source = source
        self.config = config or PollerConfig()
        self.clock = clock
        self.registry = registry or SubscriptionRegistry()
        self.last_poll_time: float = clock()
        self.tick_count = 0
        self.failed_ticks = 0
        self.delivery_failures = 0
        self._broadcast_fn: BroadcastFn | None = None
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, broadcast_fn: BroadcastFn) -> None:
        """Attach the transport callback and start polling."""
        self._broadcast_fn = broadcast_fn
        self.start()
        logger.info("Realtime poller initialized")

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the tick loop on the running event loop.

        Calling start while already polling is a no-op.
        """
        if self.is_polling:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="shiftlens-realtime-poller"
        )
        logger.info(
            f"Started polling every {self.config.poll_interval_seconds}s "
            f"(window {self.config.window_seconds}s)"
        )

    async def stop(self) -> None:
        """Cancel the tick loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped polling for new events")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.poll_interval_seconds)
            await self.poll_once()

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def _category_queries(
        self, start: float, end: float
    ) -> list[tuple[EventCategory, EventFilter]]:
        cfg = self.config
        return [
            (
                EventCategory.VIOLATIONS,
                EventFilter(
                    start_time=start, end_time=end, label=LABEL_CELL_PHONE, limit=cfg.violation_limit
                ),
            ),
            (
                EventCategory.EMPLOYEE_ACTIVITY,
                EventFilter(
                    start_time=start,
                    end_time=end,
                    label=LABEL_PERSON,
                    has_sub_label=True,
                    limit=cfg.employee_activity_limit,
                ),
            ),
            (
                EventCategory.CAMERA_ACTIVITY,
                EventFilter(start_time=start, end_time=end, limit=cfg.camera_activity_limit),
            ),
            (
                EventCategory.ZONE_ACTIVITY,
                EventFilter(
                    start_time=start, end_time=end, has_zones=True, limit=cfg.zone_activity_limit
                ),
            ),
        ]

    async def poll_once(self) -> bool:
        """
        Run one tick.

        Categories are queried and broadcast in turn. `last_poll_time`
        advances only when every category succeeded, so a failed tick's
        window is covered again by the next one.

        Returns:
            True if the tick succeeded
        """
        now = self.clock()
        window = (self.last_poll_time - self.config.window_seconds, now)
        self.tick_count += 1

        try:
            for category, filters in self._category_queries(*window):
                rows = await self.source.query_events(filters)
                if category == EventCategory.VIOLATIONS:
                    events = [violation_event(r) for r in rows]
                elif category == EventCategory.EMPLOYEE_ACTIVITY:
                    events = [employee_event(r) for r in rows]
                elif category == EventCategory.ZONE_ACTIVITY:
                    events = [zone_event(r) for r in rows]
                else:
                    events = camera_activity_events(rows)

                if events:
                    await self.broadcast(category.value, events, now)
        except Exception as e:
            error = PollTickError(f"Poll tick failed: {e}", window=window)
            self.failed_ticks += 1
            logger.error(f"{error} (window {window[0]:.3f}..{window[1]:.3f})", exc_info=True)
            return False

        self.last_poll_time = now
        return True

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _deliver(self, client_id: str, payload: dict[str, Any]) -> bool:
        if self._broadcast_fn is None:
            return False
        try:
            result = self._broadcast_fn(client_id, payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.delivery_failures += 1
            logger.warning(f"Failed to deliver to client {client_id}: {e}")
            return False
        return True

    @staticmethod
    def _select(
        events: list[RealtimeEvent],
        subscriptions: list[Subscription],
        client_filter: dict[str, Any],
    ) -> list[RealtimeEvent]:
        return [
            event
            for event in events
            if matches_filter(event, client_filter)
            and any(matches_filter(event, s.filters) for s in subscriptions)
        ]

    async def broadcast(
        self, event_type: str, events: list[RealtimeEvent], timestamp: float | None = None
    ) -> int:
        """
        Deliver events of one category to every matching subscriber.

        The subscriber set is fixed when the broadcast starts. Each client
        receives one payload with the events that pass its filters, in the
        order given.

        Returns:
            Number of clients delivered to
        """
        if not events or self._broadcast_fn is None:
            return 0
        if timestamp is None:
            timestamp = self.clock()

        table = self.registry.snapshot()
        targets = SubscriptionRegistry.subscribers_for(event_type, table)

        delivered = 0
        for client_id, subscriptions in targets.items():
            selected = self._select(events, subscriptions, self.registry.client_filter(client_id))
            if not selected:
                continue
            payload = BroadcastPayload(
                event_type=event_type,
                events=[e.model_dump() for e in selected],
                timestamp=timestamp,
            )
            if await self._deliver(client_id, payload.model_dump()):
                delivered += 1

        logger.debug(f"Broadcasted {len(events)} {event_type} events to {delivered} subscribers")
        return delivered

    async def send_to_client(self, client_id: str, event_type: str, data: Any) -> bool:
        """Send a transport-initiated event to one client."""
        return await self._deliver(
            client_id, {"event_type": event_type, "data": data, "timestamp": self.clock()}
        )

    async def broadcast_custom_event(self, event_type: str, data: Any) -> int:
        """Send a transport-initiated event to every connected client."""
        payload = {"event_type": event_type, "data": data, "timestamp": self.clock()}
        delivered = 0
        for client_id in self.registry.client_ids:
            if await self._deliver(client_id, payload):
                delivered += 1
        return delivered

    # ------------------------------------------------------------------
    # Registry pass-through
    # ------------------------------------------------------------------

    def subscribe(
        self, client_id: str, event_type: str, filters: dict[str, Any] | None = None
    ) -> Subscription:
        return self.registry.subscribe(client_id, event_type, filters)

    def unsubscribe(
        self, client_id: str, event_type: str, filters: dict[str, Any] | None = None
    ) -> bool:
        return self.registry.unsubscribe(client_id, event_type, filters)

    def set_filter(self, client_id: str, filters: dict[str, Any] | None) -> None:
        self.registry.set_filter(client_id, filters)

    def on_disconnect(self, client_id: str) -> int:
        return self.registry.remove_client(client_id)

    def get_stats(self) -> PollerStats:
        return PollerStats(
            client_count=self.registry.client_count,
            subscription_count=self.registry.subscription_count,
            active_subscriptions=self.registry.subscription_keys,
            last_poll_time=self.last_poll_time,
            is_polling=self.is_polling,
            tick_count=self.tick_count,
            failed_ticks=self.failed_ticks,
        )
