"""Data model: players, games, the ledger, configuration and results."""

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

from pawnstandings.models.config import TiebreakConfig, normalize_tiebreak_id
from pawnstandings.models.game import Game, parse_result
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import Player, RatingHistoryEntry, apply_rating_history
from pawnstandings.models.standings import (
    CrossTable,
    CrossTableEntry,
    CrossTableRow,
    OpponentContribution,
    PlayerStanding,
    StandingsCalculationResult,
    StandingsEventType,
    StandingsUpdateEvent,
    TiebreakBreakdown,
    TiebreakCalculationStep,
    TiebreakScore,
)

__all__ = [
    "Player",
    "RatingHistoryEntry",
    "apply_rating_history",
    "Game",
    "parse_result",
    "GameLedger",
    "TiebreakConfig",
    "normalize_tiebreak_id",
    "TiebreakScore",
    "PlayerStanding",
    "StandingsCalculationResult",
    "TiebreakCalculationStep",
    "OpponentContribution",
    "TiebreakBreakdown",
    "CrossTableEntry",
    "CrossTableRow",
    "CrossTable",
    "StandingsEventType",
    "StandingsUpdateEvent",
]
