"""
Live update broadcaster for presenter dashboards.

Each open stream connection owns one StatsSubscription. A subscription polls
the total vote count every STREAM_POLL_INTERVAL_SECONDS and pushes a fresh
statistics snapshot only when the count went up since its last push.

Subscription lifecycle:
    CONNECTING -> OPEN -> (IDLE <-> PUSHING) -> CLOSED

When the count drops (administrative reset) the baseline is lowered and
nothing is pushed. If new votes arrive in the same tick as a reset and the
count still ends up lower, the dashboard keeps its pre-reset snapshot until
the count next rises; dashboards that issue a reset reload /stats themselves.

A failing poll cycle is logged and retried on the next tick; it never ends
the subscription. Client disconnect, generator cancellation and
StatsBroadcaster.shutdown() all lead to CLOSED and unregister the
subscription.
"""

import asyncio
import json
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.session import get_session_maker
from schemas.stats import QuestionStats
from services.stats_service import StatsService

logger = structlog.get_logger(__name__)

KEEPALIVE_FRAME = ": keep-alive\n\n"

SessionFactory = Callable[[], AsyncSession]
DisconnectCheck = Callable[[], Awaitable[bool]]


class SubscriptionState(str, Enum):
    """Stream connection state."""

    CONNECTING = "connecting"
    OPEN = "open"
    IDLE = "idle"
    PUSHING = "pushing"
    CLOSED = "closed"


def format_sse_event(stats: list[QuestionStats]) -> str:
    """Frame one snapshot as a Server-Sent Event (one JSON payload per event)."""
    payload = json.dumps([s.model_dump(mode="json", by_alias=True) for s in stats])
    return f"data: {payload}\n\n"


def _default_session_factory() -> AsyncSession:
    return get_session_maker()()


class StatsSubscription:
    """
    One dashboard connection.

    The last seen vote count is per-subscription state, so subscribers
    never interfere with each other.
    """

    def __init__(
        self,
        broadcaster: "StatsBroadcaster",
        session_factory: SessionFactory,
        poll_interval: float,
        keepalive_interval: float,
        is_disconnected: Optional[DisconnectCheck] = None,
    ):
        self.id = str(uuid4())
        self.state = SubscriptionState.CONNECTING
        self.last_vote_count = -1
        self.pushes = 0
        self._broadcaster = broadcaster
        self._session_factory = session_factory
        self._poll_interval = poll_interval
        self._keepalive_interval = keepalive_interval
        self._is_disconnected = is_disconnected
        self._closed = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        return self.state == SubscriptionState.CLOSED

    def close(self) -> None:
        """Ask the event loop of this subscription to stop at its next wake-up."""
        self._closed.set()

    async def _read(self) -> tuple[int, Optional[list[QuestionStats]]]:
        """Read the vote count, and the stats when the count went up."""
        async with self._session_factory() as db:
            # Uncached: a cache entry filled while a vote was committing may
            # predate the count read below
            service = StatsService(db)
            count = await service.total_vote_count()

            if count < self.last_vote_count:
                # Votes were reset: lower the baseline so the next vote pushes
                self.last_vote_count = count
                return count, None
            if count == self.last_vote_count:
                return count, None

            if self.state != SubscriptionState.CONNECTING:
                self.state = SubscriptionState.PUSHING
            stats = await service.compute_stats()
            return count, stats

    async def poll_once(self) -> Optional[str]:
        """
        Run one poll cycle.

        Returns:
            An SSE frame when new votes arrived, otherwise None
        """
        try:
            count, stats = await self._read()
        finally:
            if self.state in (SubscriptionState.OPEN, SubscriptionState.PUSHING):
                self.state = SubscriptionState.IDLE

        if stats is None:
            return None

        self.last_vote_count = count
        self.pushes += 1
        return format_sse_event(stats)

    async def _wait_for_tick(self) -> bool:
        """Sleep one poll interval. Returns False when the subscription should end."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=self._poll_interval)
            return False
        except asyncio.TimeoutError:
            pass

        if self._is_disconnected is not None and await self._is_disconnected():
            return False
        return True

    async def events(self) -> AsyncIterator[str]:
        """Yield SSE frames until the client goes away or the server shuts down."""
        idle_seconds = 0.0
        self._broadcaster.register(self)
        try:
            try:
                frame = await self.poll_once()
                if frame is not None:
                    yield frame
            except Exception as e:
                # last_vote_count stays -1, so the first good cycle pushes
                logger.warning("stats_stream_initial_snapshot_failed", subscription=self.id[:8], error=str(e))

            self.state = SubscriptionState.OPEN
            logger.info("stats_stream_opened", subscription=self.id[:8])

            while not self._closed.is_set():
                if not await self._wait_for_tick():
                    break

                try:
                    frame = await self.poll_once()
                except Exception as e:
                    logger.warning("stats_stream_cycle_failed", subscription=self.id[:8], error=str(e))
                    frame = None

                if frame is not None:
                    idle_seconds = 0.0
                    yield frame
                    continue

                idle_seconds += self._poll_interval
                if idle_seconds >= self._keepalive_interval:
                    idle_seconds = 0.0
                    yield KEEPALIVE_FRAME
        finally:
            self.state = SubscriptionState.CLOSED
            self._broadcaster.unregister(self)
            logger.info("stats_stream_closed", subscription=self.id[:8], pushes=self.pushes)


class StatsBroadcaster:
    """Registry of open dashboard subscriptions."""

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        poll_interval: Optional[float] = None,
        keepalive_interval: Optional[float] = None,
    ):
        self._session_factory = session_factory or _default_session_factory
        self._poll_interval = poll_interval
        self._keepalive_interval = keepalive_interval
        self._subscriptions: dict[str, StatsSubscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, is_disconnected: Optional[DisconnectCheck] = None) -> StatsSubscription:
        """
        Create a subscription. It is registered once ``events()`` starts and
        unregistered on every exit path of that generator.
        """
        subscription = StatsSubscription(
            broadcaster=self,
            session_factory=self._session_factory,
            poll_interval=self._poll_interval or settings.STREAM_POLL_INTERVAL_SECONDS,
            keepalive_interval=self._keepalive_interval or settings.STREAM_KEEPALIVE_SECONDS,
            is_disconnected=is_disconnected,
        )
        return subscription

    def register(self, subscription: StatsSubscription) -> None:
        self._subscriptions[subscription.id] = subscription

    def unregister(self, subscription: StatsSubscription) -> None:
        self._subscriptions.pop(subscription.id, None)

    async def shutdown(self) -> None:
        """Close every open subscription (application shutdown)."""
        subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            subscription.close()
        if subscriptions:
            logger.info("stats_streams_closing", count=len(subscriptions))


# Global broadcaster for this process
stats_broadcaster = StatsBroadcaster()


def get_broadcaster() -> StatsBroadcaster:
    """Dependency for getting the live update broadcaster."""
    return stats_broadcaster
