"""Real-time standings: caching, invalidation and update broadcasting.

The service keeps at most one computed result per tournament. A cached
result is served only while it was computed from the ledger version the
source currently reports, it has not been invalidated, and it is younger
than the configured cache duration. Computation for a tournament is single
flight: concurrent readers wait on a per-tournament lock and reuse the
result computed by whoever got there first.
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
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from pawnstandings.engine.standings import compute_standings
from pawnstandings.exceptions import PawnStandingsException
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.standings import (
    StandingsCalculationResult,
    StandingsEventType,
    StandingsUpdateEvent,
)
from pawnstandings.service.broadcast import StandingsBroadcaster, StandingsSubscription
from pawnstandings.service.config import RealTimeStandingsConfig
from pawnstandings.utils import setup_logger, utc_timestamp

logger = setup_logger(__name__)


class StandingsSource(Protocol):
    """Where the service reads ledgers and tiebreak configurations from."""

    async def load_ledger(self, tournament_id: int) -> GameLedger: ...

    async def load_config(self, tournament_id: int) -> TiebreakConfig: ...

    async def get_version(self, tournament_id: int) -> int: ...


class CacheState(Enum):
    EMPTY = "empty"
    COMPUTING = "computing"
    CACHED = "cached"
    INVALIDATED = "invalidated"


@dataclass
class _CacheEntry:
    result: StandingsCalculationResult
    version: int
    computed_at: float
    invalidated: bool = False


@dataclass
class PerformanceMetrics:
    """Calculation timings and cache activity for one tournament."""

    tournament_id: int
    calculation_count: int = 0
    failure_count: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    last_calculation_ms: float = 0.0
    total_calculation_ms: float = 0.0
    max_calculation_ms: float = 0.0
    last_calculated_at: Optional[str] = None

    @property
    def average_calculation_ms(self) -> float:
        if not self.calculation_count:
            return 0.0
        return self.total_calculation_ms / self.calculation_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "calculation_count": self.calculation_count,
            "failure_count": self.failure_count,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "last_calculation_ms": self.last_calculation_ms,
            "average_calculation_ms": self.average_calculation_ms,
            "max_calculation_ms": self.max_calculation_ms,
            "last_calculated_at": self.last_calculated_at,
        }


@dataclass
class CacheStats:
    total_entries: int
    cached_entries: int
    invalidated_entries: int
    cache_hits: int
    cache_misses: int
    subscribers: int
    events_published: int
    events_dropped: int

    @property
    def hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "cached_entries": self.cached_entries,
            "invalidated_entries": self.invalidated_entries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "subscribers": self.subscribers,
            "events_published": self.events_published,
            "events_dropped": self.events_dropped,
        }


class RealTimeStandingsService:
    """Cached, invalidation-aware standings with push updates.

    Args:
        source: Provides ledgers, configurations and ledger versions
        config: Service settings
        clock: Monotonic clock used for cache expiry
    """

    def __init__(
        self,
        source: StandingsSource,
        config: Optional[RealTimeStandingsConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.config = config if config is not None else RealTimeStandingsConfig()
        self._clock = clock
        self._entries: Dict[int, _CacheEntry] = {}
        self._states: Dict[int, CacheState] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._metrics: Dict[int, PerformanceMetrics] = {}
        self._broadcaster = StandingsBroadcaster(self.config.subscriber_queue_size)
        self._auto_update_task: Optional["asyncio.Task[None]"] = None

    # ========== Reads ==========

    async def get_standings(self, tournament_id: int) -> StandingsCalculationResult:
        """Return current standings, recomputing only when needed.

        Raises:
            Whatever the source or the computation raises; failures are
            never cached.
        """
        version = await self.source.get_version(tournament_id)
        cached = self._fresh_result(tournament_id, version)
        if cached is not None:
            return cached

        async with self._lock(tournament_id):
            # Another reader may have finished computing while we waited.
            version = await self.source.get_version(tournament_id)
            cached = self._fresh_result(tournament_id, version)
            if cached is not None:
                return cached
            self._metrics_for(tournament_id).cache_misses += 1
            return await self._recalculate(tournament_id)

    def state(self, tournament_id: int) -> CacheState:
        return self._states.get(tournament_id, CacheState.EMPTY)

    def _fresh_result(
        self, tournament_id: int, version: int
    ) -> Optional[StandingsCalculationResult]:
        entry = self._entries.get(tournament_id)
        if entry is None or entry.invalidated or entry.version != version:
            return None
        if self._clock() - entry.computed_at >= self.config.cache_duration_seconds:
            logger.debug("Cached standings for tournament %s expired", tournament_id)
            return None
        self._metrics_for(tournament_id).cache_hits += 1
        logger.debug("Cache hit for tournament %s (version %s)", tournament_id, version)
        return entry.result

    # ========== Computation ==========

    def _lock(self, tournament_id: int) -> asyncio.Lock:
        lock = self._locks.get(tournament_id)
        if lock is None:
            lock = self._locks[tournament_id] = asyncio.Lock()
        return lock

    def _metrics_for(self, tournament_id: int) -> PerformanceMetrics:
        metrics = self._metrics.get(tournament_id)
        if metrics is None:
            metrics = self._metrics[tournament_id] = PerformanceMetrics(tournament_id)
        return metrics

    async def _recalculate(self, tournament_id: int) -> StandingsCalculationResult:
        """Compute and cache standings. Caller holds the tournament lock."""
        metrics = self._metrics_for(tournament_id)
        self._states[tournament_id] = CacheState.COMPUTING
        started = time.perf_counter()
        try:
            version = await self.source.get_version(tournament_id)
            ledger = await self.source.load_ledger(tournament_id)
            tiebreak_config = await self.source.load_config(tournament_id)
            result = await asyncio.to_thread(
                compute_standings, tournament_id, ledger, tiebreak_config
            )
        except Exception as e:
            metrics.failure_count += 1
            entry = self._entries.get(tournament_id)
            if entry is not None:
                entry.invalidated = True
                self._states[tournament_id] = CacheState.INVALIDATED
            else:
                self._states[tournament_id] = CacheState.EMPTY
            logger.error("Standings calculation failed for tournament %s: %s", tournament_id, e)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        self._entries[tournament_id] = _CacheEntry(
            result=result, version=version, computed_at=self._clock()
        )
        self._states[tournament_id] = CacheState.CACHED

        metrics.calculation_count += 1
        metrics.last_calculation_ms = elapsed_ms
        metrics.total_calculation_ms += elapsed_ms
        metrics.max_calculation_ms = max(metrics.max_calculation_ms, elapsed_ms)
        metrics.last_calculated_at = result.last_updated

        if elapsed_ms > self.config.slow_calculation_ms:
            logger.warning(
                "Slow standings calculation for tournament %s: %.0f ms",
                tournament_id,
                elapsed_ms,
            )
        logger.info(
            "Recalculated standings for tournament %s (version %s) in %.1f ms",
            tournament_id,
            result.ledger_version,
            elapsed_ms,
        )
        return result

    async def _refresh(self, tournament_id: int) -> StandingsCalculationResult:
        async with self._lock(tournament_id):
            return await self._recalculate(tournament_id)

    async def force_recalculate(self, tournament_id: int) -> StandingsCalculationResult:
        """Recompute regardless of cache state and broadcast the result."""
        result = await self._refresh(tournament_id)
        self._broadcast(tournament_id, StandingsEventType.MANUAL, [], result)
        return result

    # ========== Invalidation ==========

    def _mark_invalidated(self, tournament_id: int) -> None:
        entry = self._entries.get(tournament_id)
        if entry is not None:
            entry.invalidated = True
        if self._states.get(tournament_id) in (CacheState.CACHED, CacheState.COMPUTING):
            self._states[tournament_id] = CacheState.INVALIDATED

    def invalidate(self, tournament_id: int, affected_players: Iterable[int] = ()) -> None:
        """Mark a tournament's standings stale and tell subscribers.

        Safe to call from a synchronous change listener.
        """
        self._mark_invalidated(tournament_id)
        logger.debug("Invalidated standings for tournament %s", tournament_id)
        self._broadcast(tournament_id, StandingsEventType.INVALIDATED, list(affected_players))

    def on_ledger_change(self, change: Any) -> None:
        """Listener for source change notifications (``LedgerChange``)."""
        self.invalidate(change.tournament_id, change.affected_players)

    def clear_cache(self, tournament_id: int) -> None:
        self._entries.pop(tournament_id, None)
        self._states.pop(tournament_id, None)
        logger.info("Cleared standings cache for tournament %s", tournament_id)

    def clear_all_cache(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        self._states.clear()
        logger.info("Cleared standings cache (%d entries)", count)

    # ========== Change handlers ==========

    async def handle_game_result_update(
        self, tournament_id: int, affected_players: Iterable[int] = ()
    ) -> Optional[StandingsCalculationResult]:
        """React to a committed game result.

        Returns:
            The new standings when auto update is enabled, else None
        """
        return await self._handle_change(
            tournament_id, StandingsEventType.GAME_RESULT_UPDATED, list(affected_players)
        )

    async def handle_player_update(
        self,
        tournament_id: int,
        player_id: int,
        event_type: StandingsEventType = StandingsEventType.PLAYER_STATUS_CHANGED,
    ) -> Optional[StandingsCalculationResult]:
        return await self._handle_change(tournament_id, event_type, [player_id])

    async def handle_round_completion(
        self, tournament_id: int, round_number: int
    ) -> StandingsCalculationResult:
        """A completed round always produces fresh standings."""
        self._mark_invalidated(tournament_id)
        result = await self._refresh(tournament_id)
        logger.info("Round %s completed for tournament %s", round_number, tournament_id)
        self._broadcast(
            tournament_id,
            StandingsEventType.ROUND_COMPLETED,
            [s.player_id for s in result.standings],
            result,
        )
        return result

    async def _handle_change(
        self,
        tournament_id: int,
        event_type: StandingsEventType,
        affected_players: List[int],
    ) -> Optional[StandingsCalculationResult]:
        self._mark_invalidated(tournament_id)
        if not self.config.auto_update_enabled:
            self._broadcast(tournament_id, StandingsEventType.INVALIDATED, affected_players)
            return None
        result = await self._refresh(tournament_id)
        self._broadcast(tournament_id, event_type, affected_players, result)
        return result

    # ========== Background refresh ==========

    def start(self) -> None:
        """Start periodically recomputing invalidated tournaments."""
        if self._auto_update_task is None and self.config.auto_update_enabled:
            self._auto_update_task = asyncio.create_task(self._auto_update_loop())

    async def stop(self) -> None:
        task, self._auto_update_task = self._auto_update_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._broadcaster.close()

    async def refresh_invalidated(self) -> List[int]:
        """Recompute every invalidated tournament once.

        Returns:
            Ids of the tournaments that were refreshed
        """
        refreshed = []
        stale = [
            tid for tid, state in self._states.items() if state is CacheState.INVALIDATED
        ]
        for tournament_id in stale:
            try:
                result = await self._refresh(tournament_id)
            except PawnStandingsException as e:
                logger.error("Background refresh of tournament %s failed: %s", tournament_id, e)
                continue
            except Exception:
                # Source errors (I/O and the like) must not end the update loop
                logger.exception("Unexpected error refreshing tournament %s", tournament_id)
                continue
            self._broadcast(
                tournament_id, StandingsEventType.GAME_RESULT_UPDATED, [], result
            )
            refreshed.append(tournament_id)
        return refreshed

    async def _auto_update_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.update_interval_seconds)
            await self.refresh_invalidated()

    # ========== Subscriptions ==========

    def subscribe(self, tournament_id: Optional[int] = None) -> StandingsSubscription:
        """Subscribe to update events, optionally for a single tournament."""
        return self._broadcaster.subscribe(tournament_id)

    def _broadcast(
        self,
        tournament_id: int,
        event_type: StandingsEventType,
        affected_players: List[int],
        result: Optional[StandingsCalculationResult] = None,
    ) -> None:
        if not self.config.broadcast_to_clients:
            return
        event = StandingsUpdateEvent(
            tournament_id=tournament_id,
            event_type=event_type,
            affected_players=affected_players,
            timestamp=utc_timestamp(),
            standings=list(result.standings) if result is not None else [],
        )
        delivered = self._broadcaster.publish(event)
        logger.debug(
            "Broadcast %s for tournament %s to %d subscribers",
            event_type.value,
            tournament_id,
            delivered,
        )

    # ========== Introspection ==========

    def get_performance_metrics(self, tournament_id: int) -> PerformanceMetrics:
        return self._metrics_for(tournament_id)

    def get_cache_stats(self) -> CacheStats:
        invalidated = sum(1 for e in self._entries.values() if e.invalidated)
        metrics = self._metrics.values()
        return CacheStats(
            total_entries=len(self._entries),
            cached_entries=len(self._entries) - invalidated,
            invalidated_entries=invalidated,
            cache_hits=sum(m.cache_hits for m in metrics),
            cache_misses=sum(m.cache_misses for m in metrics),
            subscribers=self._broadcaster.subscriber_count,
            events_published=self._broadcaster.published,
            events_dropped=self._broadcaster.dropped,
        )
