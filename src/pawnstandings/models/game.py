"""Game data class: one row of the game ledger."""

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

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil.parser import isoparse

from pawnstandings.constants import (
    DRAW_SCORE,
    FORFEIT_RESULT_TYPES,
    GAME_RESULTS,
    LOSS_SCORE,
    PGN_TO_RESULT,
    RESULT_BLACK_WINS,
    RESULT_DRAW,
    RESULT_TO_PGN,
    RESULT_TYPE_BYE,
    RESULT_TYPE_NORMAL,
    RESULT_TYPES,
    RESULT_WHITE_WINS,
    WIN_SCORE,
)
from pawnstandings.exceptions import DataIntegrityError, InvalidResultException
from pawnstandings.type_hints import BLACK, WHITE, Colour


@dataclass(frozen=True)
class Game:
    """A single game (or bye) in a tournament round.

    A bye is stored as a row with no black player. Its result scores for the
    white slot only: ``white_wins`` is a full-point bye, ``draw`` a half-point
    bye and ``black_wins`` a zero-point bye.

    Attributes
    ----------
    id : int
        Game identifier.
    tournament_id : int
        Tournament the game belongs to.
    round_number : int
        Round number (1-indexed).
    white_player_id : int
        Player with the white pieces (or the bye recipient).
    black_player_id : int or None
        Player with the black pieces, None for a bye.
    result : str or None
        ``white_wins``, ``black_wins``, ``draw``, or None while ongoing.
    result_type : str
        ``normal``, ``forfeit``, ``timeout`` or ``bye``.
    """

    id: int
    tournament_id: int
    round_number: int
    white_player_id: int
    black_player_id: Optional[int]
    result: Optional[str] = None
    result_type: str = RESULT_TYPE_NORMAL
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.round_number < 1:
            raise DataIntegrityError(
                f"Game {self.id}: round number must be >= 1, got {self.round_number}"
            )
        if self.white_player_id == self.black_player_id:
            raise DataIntegrityError(
                f"Game {self.id}: player {self.white_player_id} cannot play themselves"
            )
        if self.result is not None and self.result not in GAME_RESULTS:
            raise InvalidResultException(f"Game {self.id}: unknown result {self.result!r}")
        if self.result_type not in RESULT_TYPES:
            raise InvalidResultException(
                f"Game {self.id}: unknown result type {self.result_type!r}"
            )
        if (self.black_player_id is None) != (self.result_type == RESULT_TYPE_BYE):
            raise DataIntegrityError(
                f"Game {self.id}: a bye must have exactly one player"
            )

    # ========== Queries ==========

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    @property
    def is_bye(self) -> bool:
        return self.result_type == RESULT_TYPE_BYE

    @property
    def is_forfeit(self) -> bool:
        """Forfeit or timeout, the result types that may be scored differently."""
        return self.result_type in FORFEIT_RESULT_TYPES

    def involves(self, player_id: int) -> bool:
        return player_id in (self.white_player_id, self.black_player_id)

    def opponent_of(self, player_id: int) -> Optional[int]:
        """Return the opponent id, None for a bye."""
        if player_id == self.white_player_id:
            return self.black_player_id
        if player_id == self.black_player_id:
            return self.white_player_id
        raise DataIntegrityError(f"Player {player_id} did not play game {self.id}")

    def color_of(self, player_id: int) -> Optional[Colour]:
        """Return the colour played, None for a bye."""
        if self.is_bye:
            return None
        if player_id == self.white_player_id:
            return WHITE
        if player_id == self.black_player_id:
            return BLACK
        raise DataIntegrityError(f"Player {player_id} did not play game {self.id}")

    def points_for(self, player_id: int) -> Optional[float]:
        """Points earned by ``player_id`` in this game, None while ongoing."""
        if self.result is None:
            return None
        if self.result == RESULT_DRAW:
            return DRAW_SCORE
        colour = self.color_of(player_id)
        if colour is None or colour == WHITE:
            return WIN_SCORE if self.result == RESULT_WHITE_WINS else LOSS_SCORE
        return WIN_SCORE if self.result == RESULT_BLACK_WINS else LOSS_SCORE

    @property
    def total_points(self) -> float:
        """Points distributed by this row (0 while ongoing)."""
        if self.result is None:
            return 0.0
        if self.is_bye:
            return self.points_for(self.white_player_id) or 0.0
        return WIN_SCORE

    @property
    def pgn_result(self) -> str:
        """Result in PGN notation (``1-0``, ``0-1``, ``1/2-1/2``, ``*``)."""
        return RESULT_TO_PGN[self.result]

    def with_result(self, result: Optional[str], result_type: Optional[str] = None) -> "Game":
        """Return a copy with a new result (and optionally a new result type)."""
        return replace(
            self,
            result=result,
            result_type=result_type if result_type is not None else self.result_type,
        )

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize game to dictionary."""
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "round_number": self.round_number,
            "white_player_id": self.white_player_id,
            "black_player_id": self.black_player_id,
            "result": self.result,
            "result_type": self.result_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Game":
        """Deserialize game from dictionary.

        Accepts PGN-style results (``1-0``, ``0-1``, ``1/2-1/2``, ``*``) as
        well as the native result names.
        """
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = isoparse(created_at)

        black_id = data.get("black_player_id")
        return cls(
            id=int(data["id"]),
            tournament_id=int(data["tournament_id"]),
            round_number=int(data["round_number"]),
            white_player_id=int(data["white_player_id"]),
            black_player_id=int(black_id) if black_id is not None else None,
            result=parse_result(data.get("result")),
            result_type=data.get(
                "result_type",
                RESULT_TYPE_BYE if black_id is None else RESULT_TYPE_NORMAL,
            ),
            created_at=created_at,
        )


def parse_result(value: Optional[str]) -> Optional[str]:
    """Normalise a result string to a native result name or None."""
    if value is None:
        return None
    if value in GAME_RESULTS:
        return value
    if value in PGN_TO_RESULT:
        return PGN_TO_RESULT[value]
    raise InvalidResultException(f"Unknown game result: {value!r}")
