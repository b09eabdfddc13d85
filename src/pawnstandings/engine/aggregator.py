"""Score aggregation from the game ledger.

This module turns a tournament's ledger into per-player raw scores
(points, wins, draws, losses) and the round-by-round history the tiebreak
engine works from.
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
from typing import Dict, List, Optional

from pawnstandings.constants import DRAW_SCORE, WIN_SCORE
from pawnstandings.exceptions import InconsistentScoreError, UnknownPlayerError
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.game import Game
from pawnstandings.models.ledger import GameLedger
from pawnstandings.type_hints import Colour
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class RoundRecord:
    """What one finished ledger row meant for one player.

    Attributes:
        round_number: Round the game was played in
        game_id: Ledger row the record came from
        opponent_id: Opponent, None for a bye
        color: Colour played, None for a bye
        points: Points earned (1.0, 0.5, 0.0)
        result_type: Result type of the row
        pgn_result: Result of the row in PGN notation
    """

    round_number: int
    game_id: int
    opponent_id: Optional[int]
    color: Optional[Colour]
    points: float
    result_type: str
    pgn_result: str

    @property
    def is_bye(self) -> bool:
        return self.opponent_id is None


@dataclass
class PlayerScore:
    """Raw score and history for a single player.

    Attributes:
        player_id: Player the score belongs to
        points: Total points (wins + 0.5 * draws)
        games_played: Finished rows that scored, byes included
        wins: Rounds with win points (full-point byes included)
        draws: Rounds with draw points (half-point byes included)
        losses: Rounds with no points (zero-point byes included)
        rounds: One record per finished row, ordered by round
        running_scores: Cumulative points after each record
    """

    player_id: int
    points: float = 0.0
    games_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    rounds: List[RoundRecord] = field(default_factory=list)
    running_scores: List[float] = field(default_factory=list)

    @property
    def opponent_ids(self) -> List[int]:
        """Opponents faced, byes excluded, in round order."""
        return [r.opponent_id for r in self.rounds if r.opponent_id is not None]

    @property
    def results(self) -> List[float]:
        return [r.points for r in self.rounds]

    def add_round(self, record: RoundRecord) -> None:
        self.rounds.append(record)
        self.games_played += 1
        self.points += record.points
        if record.points == WIN_SCORE:
            self.wins += 1
        elif record.points == DRAW_SCORE:
            self.draws += 1
        else:
            self.losses += 1
        self.running_scores.append(self.points)


def aggregate_scores(
    ledger: GameLedger, config: Optional[TiebreakConfig] = None
) -> Dict[int, PlayerScore]:
    """Compute each player's raw score from the ledger.

    Games without a result are skipped. Forfeit and timeout rows score like
    normal rows unless ``config.score_forfeits`` is False, in which case
    they are skipped as if never played.

    Args:
        ledger: The tournament's game ledger
        config: Scoring switches; defaults apply when omitted

    Returns:
        Mapping from player id to PlayerScore, one entry per registered player

    Raises:
        UnknownPlayerError: If a game references an unregistered player
    """
    score_forfeits = config.score_forfeits if config is not None else True
    scores: Dict[int, PlayerScore] = {
        player_id: PlayerScore(player_id=player_id) for player_id in ledger.players
    }

    for game in sorted(ledger.games, key=lambda g: (g.round_number, g.id)):
        for player_id in (game.white_player_id, game.black_player_id):
            if player_id is not None and player_id not in scores:
                raise UnknownPlayerError(player_id, game.id)

        if not game.is_finished:
            continue
        if game.is_forfeit and not score_forfeits:
            logger.debug("Skipping forfeit game %s (forfeits not scored)", game.id)
            continue

        _record(scores, game, game.white_player_id)
        if game.black_player_id is not None:
            _record(scores, game, game.black_player_id)

    return scores


def _record(scores: Dict[int, PlayerScore], game: Game, player_id: int) -> None:
    scores[player_id].add_round(
        RoundRecord(
            round_number=game.round_number,
            game_id=game.id,
            opponent_id=game.opponent_of(player_id),
            color=game.color_of(player_id),
            points=game.points_for(player_id),
            result_type=game.result_type,
            pgn_result=game.pgn_result,
        )
    )


def check_consistency(
    scores: Dict[int, PlayerScore],
    ledger: GameLedger,
    config: Optional[TiebreakConfig] = None,
) -> None:
    """Verify aggregated totals against the points the ledger distributes.

    Raises:
        InconsistentScoreError: If totals disagree or a player's points are
            not ``wins + 0.5 * draws``
    """
    score_forfeits = config.score_forfeits if config is not None else True
    expected = sum(
        g.total_points
        for g in ledger.games
        if g.is_finished and (score_forfeits or not g.is_forfeit)
    )
    actual = sum(s.points for s in scores.values())
    if expected != actual:
        raise InconsistentScoreError(
            f"Tournament {ledger.tournament_id}: players hold {actual} points "
            f"but finished games distribute {expected}"
        )

    for score in scores.values():
        if score.points != score.wins + DRAW_SCORE * score.draws:
            raise InconsistentScoreError(
                f"Player {score.player_id}: {score.points} points does not match "
                f"{score.wins} wins and {score.draws} draws"
            )
