"""Real-time standings service."""

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

from pawnstandings.service.broadcast import StandingsBroadcaster, StandingsSubscription
from pawnstandings.service.cache import (
    CacheState,
    CacheStats,
    PerformanceMetrics,
    RealTimeStandingsService,
    StandingsSource,
)
from pawnstandings.service.config import RealTimeStandingsConfig

__all__ = [
    "RealTimeStandingsService",
    "RealTimeStandingsConfig",
    "StandingsSource",
    "CacheState",
    "CacheStats",
    "PerformanceMetrics",
    "StandingsBroadcaster",
    "StandingsSubscription",
]
