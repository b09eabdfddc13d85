"""RealTimeStandingsConfig data class."""

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

from dataclasses import dataclass
from typing import Any, Dict

from pawnstandings.constants import (
    DEFAULT_CACHE_DURATION_SECONDS,
    DEFAULT_UPDATE_INTERVAL_SECONDS,
    SLOW_CALCULATION_MS,
    SUBSCRIBER_QUEUE_SIZE,
)
from pawnstandings.exceptions import ConfigurationError


@dataclass
class RealTimeStandingsConfig:
    """Settings for the real-time standings service.

    Attributes
    ----------
    auto_update_enabled : bool
        Recompute immediately when a result or player change is reported.
        When False, changes only invalidate and the next read recomputes.
    update_interval_seconds : int
        Period of the background refresh of invalidated tournaments.
    broadcast_to_clients : bool
        Push update events to subscribers.
    cache_duration_seconds : int
        Maximum age of a cached result, even when nothing changed.
    slow_calculation_ms : int
        Computations slower than this are logged as warnings.
    subscriber_queue_size : int
        Events buffered per subscriber before new ones are dropped.
    """

    auto_update_enabled: bool = True
    update_interval_seconds: int = DEFAULT_UPDATE_INTERVAL_SECONDS
    broadcast_to_clients: bool = True
    cache_duration_seconds: int = DEFAULT_CACHE_DURATION_SECONDS
    slow_calculation_ms: int = SLOW_CALCULATION_MS
    subscriber_queue_size: int = SUBSCRIBER_QUEUE_SIZE

    def __post_init__(self) -> None:
        for name in (
            "update_interval_seconds",
            "cache_duration_seconds",
            "slow_calculation_ms",
            "subscriber_queue_size",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_update_enabled": self.auto_update_enabled,
            "update_interval_seconds": self.update_interval_seconds,
            "broadcast_to_clients": self.broadcast_to_clients,
            "cache_duration_seconds": self.cache_duration_seconds,
            "slow_calculation_ms": self.slow_calculation_ms,
            "subscriber_queue_size": self.subscriber_queue_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RealTimeStandingsConfig":
        defaults = cls()
        return cls(
            **{key: data.get(key, value) for key, value in defaults.to_dict().items()}
        )
