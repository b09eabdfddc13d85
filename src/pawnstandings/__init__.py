"""Pawn Standings: chess tournament standings and tiebreaks.

Standings are derived from a game ledger on demand. The engine is pure; the
real-time service adds caching, invalidation and push updates on top.
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

from pawnstandings.engine.standings import (
    compute_standings,
    generate_cross_table,
    get_tiebreak_breakdown,
)
from pawnstandings.models import (
    Game,
    GameLedger,
    Player,
    PlayerStanding,
    StandingsCalculationResult,
    TiebreakBreakdown,
    TiebreakConfig,
)

__version__ = "0.1.0"

__all__ = [
    "compute_standings",
    "get_tiebreak_breakdown",
    "generate_cross_table",
    "Game",
    "GameLedger",
    "Player",
    "PlayerStanding",
    "StandingsCalculationResult",
    "TiebreakBreakdown",
    "TiebreakConfig",
]
