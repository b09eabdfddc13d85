"""In-process fan-out of standings update events.

Each subscriber owns a bounded asyncio.Queue. Publishing never waits: when a
subscriber's queue is full the event is dropped for that subscriber only.
"""

# Pawn Standings
# Copyright (C) 2025  Pawn Standings developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import asyncio
from typing import List, Optional

from pawnstandings.constants import SUBSCRIBER_QUEUE_SIZE
from pawnstandings.models.standings import StandingsUpdateEvent
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)

_CLOSED = None


class StandingsSubscription:
    """Async iterator over standings update events.

    Usage::

        async with service.subscribe(tournament_id=1) as subscription:
            async for event in subscription:
                ...
    """

    def __init__(
        self,
        broadcaster: "StandingsBroadcaster",
        tournament_id: Optional[int] = None,
        maxsize: int = SUBSCRIBER_QUEUE_SIZE,
    ) -> None:
        self._broadcaster = broadcaster
        self.tournament_id = tournament_id
        self._queue: "asyncio.Queue[Optional[StandingsUpdateEvent]]" = asyncio.Queue(
            maxsize=maxsize
        )
        self.dropped = 0
        self.closed = False

    def wants(self, event: StandingsUpdateEvent) -> bool:
        return self.tournament_id is None or self.tournament_id == event.tournament_id

    def offer(self, event: StandingsUpdateEvent) -> bool:
        """Queue an event without waiting; False if it was dropped."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> StandingsUpdateEvent:
        event = await self._queue.get()
        if event is _CLOSED:
            raise StopAsyncIteration
        return event

    def close(self) -> None:
        """Detach from the broadcaster and wake any waiting reader."""
        if self.closed:
            return
        self.closed = True
        self._broadcaster.unsubscribe(self)
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Make room for the close marker; the reader stops at it anyway.
            self._queue.get_nowait()
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "StandingsSubscription":
        return self

    async def __anext__(self) -> StandingsUpdateEvent:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        return await self.get()

    async def __aenter__(self) -> "StandingsSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class StandingsBroadcaster:
    """Delivers events to every interested subscription."""

    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self._subscriptions: List[StandingsSubscription] = []
        self.published = 0
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, tournament_id: Optional[int] = None) -> StandingsSubscription:
        subscription = StandingsSubscription(self, tournament_id, self.queue_size)
        self._subscriptions.append(subscription)
        logger.debug("New standings subscriber (tournament=%s)", tournament_id)
        return subscription

    def unsubscribe(self, subscription: StandingsSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: StandingsUpdateEvent) -> int:
        """Offer an event to all matching subscribers.

        Returns:
            Number of subscribers the event was delivered to
        """
        self.published += 1
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.wants(event):
                continue
            if subscription.offer(event):
                delivered += 1
            else:
                self.dropped += 1
                logger.warning(
                    "Dropped %s event for tournament %s: subscriber queue full",
                    event.event_type.value,
                    event.tournament_id,
                )
        return delivered

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.close()
