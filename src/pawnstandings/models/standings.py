"""Derived standings types.

These mirror the response shapes consumed by the standings table, the
tiebreak breakdown dialog and the real-time standings view. They are derived
and recomputed on demand; nothing here is a source of truth.
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

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.player import Player


@dataclass(frozen=True)
class TiebreakScore:
    """One tiebreak value for one player.

    ``value`` is None when the method is undefined for the player (for
    example a performance rating without rated opponents).
    """

    tiebreak_type: str
    value: Optional[float]
    display_value: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tiebreak_type": self.tiebreak_type,
            "value": self.value,
            "display_value": self.display_value,
        }


@dataclass
class PlayerStanding:
    """A player's row in the standings table."""

    rank: int
    player: Player
    points: float
    games_played: int
    wins: int
    draws: int
    losses: int
    tiebreak_scores: List[TiebreakScore] = field(default_factory=list)
    performance_rating: Optional[int] = None
    rating_change: Optional[int] = None

    @property
    def player_id(self) -> int:
        return self.player.id

    def tiebreak_value(self, tiebreak_type: str) -> Optional[float]:
        for score in self.tiebreak_scores:
            if score.tiebreak_type == tiebreak_type:
                return score.value
        raise KeyError(tiebreak_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "rank": self.rank,
            "points": self.points,
            "games_played": self.games_played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "tiebreak_scores": [s.to_dict() for s in self.tiebreak_scores],
            "performance_rating": self.performance_rating,
            "rating_change": self.rating_change,
        }


@dataclass
class StandingsCalculationResult:
    """Standings plus the configuration and time they were computed with."""

    standings: List[PlayerStanding]
    last_updated: str
    tiebreak_config: TiebreakConfig
    ledger_version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "standings": [s.to_dict() for s in self.standings],
            "last_updated": self.last_updated,
            "tiebreak_config": self.tiebreak_config.to_dict(),
        }


@dataclass(frozen=True)
class TiebreakCalculationStep:
    """One step of a tiebreak derivation."""

    step_number: int
    description: str
    calculation: str
    intermediate_result: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "description": self.description,
            "calculation": self.calculation,
            "intermediate_result": self.intermediate_result,
        }


@dataclass(frozen=True)
class OpponentContribution:
    """An opponent's share of a tiebreak value."""

    opponent_id: int
    opponent_name: str
    opponent_rating: Optional[int]
    contribution_value: float
    game_result: Optional[str]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opponent_id": self.opponent_id,
            "opponent_name": self.opponent_name,
            "opponent_rating": self.opponent_rating,
            "contribution_value": self.contribution_value,
            "game_result": self.game_result,
            "explanation": self.explanation,
        }


@dataclass
class TiebreakBreakdown:
    """Step-by-step derivation of a single tiebreak value."""

    tiebreak_type: str
    value: Optional[float]
    display_value: str
    explanation: str
    calculation_details: List[TiebreakCalculationStep] = field(default_factory=list)
    opponents_involved: List[OpponentContribution] = field(default_factory=list)

    @property
    def final_value(self) -> Optional[float]:
        """Value of the last calculation step."""
        if not self.calculation_details:
            return None
        return self.calculation_details[-1].intermediate_result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tiebreak_type": self.tiebreak_type,
            "value": self.value,
            "display_value": self.display_value,
            "explanation": self.explanation,
            "calculation_details": [s.to_dict() for s in self.calculation_details],
            "opponents_involved": [o.to_dict() for o in self.opponents_involved],
        }


# ========== Cross table ==========


@dataclass(frozen=True)
class CrossTableEntry:
    player_id: int
    opponent_id: int
    result: Optional[float]  # None for no game, else points scored
    color: Optional[str]
    round: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "opponent_id": self.opponent_id,
            "result": self.result,
            "color": self.color,
            "round": self.round,
        }


@dataclass
class CrossTableRow:
    player: Player
    results: List[CrossTableEntry]
    total_points: float
    games_played: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "total_points": self.total_points,
            "games_played": self.games_played,
        }


@dataclass
class CrossTable:
    tournament_id: int
    players: List[Player]
    rows: List[CrossTableRow]
    last_updated: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "players": [p.to_dict() for p in self.players],
            "rows": [r.to_dict() for r in self.rows],
            "last_updated": self.last_updated,
        }


# ========== Update events ==========


class StandingsEventType(Enum):
    """Why a standings update was pushed to subscribers."""

    GAME_RESULT_UPDATED = "game_result_updated"
    PLAYER_ADDED = "player_added"
    PLAYER_REMOVED = "player_removed"
    PLAYER_STATUS_CHANGED = "player_status_changed"
    ROUND_COMPLETED = "round_completed"
    TOURNAMENT_STARTED = "tournament_started"
    MANUAL = "manual"
    INVALIDATED = "invalidated"


@dataclass
class StandingsUpdateEvent:
    """Pushed to subscribers when a tournament's standings change or go stale.

    ``standings`` is empty for ``INVALIDATED`` events: the consumer should
    re-read through the cache.
    """

    tournament_id: int
    event_type: StandingsEventType
    affected_players: List[int]
    timestamp: str
    standings: List[PlayerStanding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "event_type": self.event_type.value,
            "affected_players": list(self.affected_players),
            "timestamp": self.timestamp,
            "standings": [s.to_dict() for s in self.standings],
        }
