"""Standings computation: ledger in, ranked standings out.

These functions are pure and uncached; the real-time service layers caching
and invalidation on top of them.
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

from typing import List, Optional

from pawnstandings.engine.aggregator import aggregate_scores, check_consistency
from pawnstandings.engine.explainer import BreakdownExplainer
from pawnstandings.engine.ranker import rank_standings
from pawnstandings.engine.tiebreaks import (
    TiebreakCalculator,
    performance_rating,
    rating_change,
)
from pawnstandings.exceptions import DataIntegrityError
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.standings import (
    CrossTable,
    CrossTableEntry,
    CrossTableRow,
    PlayerStanding,
    StandingsCalculationResult,
    TiebreakBreakdown,
)
from pawnstandings.utils import setup_logger, utc_timestamp

logger = setup_logger(__name__)


def _check_tournament(tournament_id: int, ledger: GameLedger) -> None:
    if ledger.tournament_id != tournament_id:
        raise DataIntegrityError(
            f"Ledger belongs to tournament {ledger.tournament_id}, not {tournament_id}"
        )
    ledger.validate()


def _resolve_config(tournament_id: int, config: Optional[TiebreakConfig]) -> TiebreakConfig:
    if config is None:
        return TiebreakConfig(tournament_id=tournament_id)
    return config


def compute_standings(
    tournament_id: int, ledger: GameLedger, config: Optional[TiebreakConfig] = None
) -> StandingsCalculationResult:
    """Compute ranked standings for a tournament.

    The configuration is validated before the ledger is touched, so a bad
    tiebreak identifier fails fast regardless of the data. Withdrawn players
    keep their row and their results.

    Args:
        tournament_id: Tournament to compute
        ledger: Snapshot of the tournament's players and games
        config: Tiebreak configuration; federation defaults when omitted

    Returns:
        Ranked standings with the configuration and ledger version used

    Raises:
        ConfigurationError: If the tiebreak configuration is invalid
        DataIntegrityError: If the ledger is inconsistent or belongs to
            another tournament
    """
    config = _resolve_config(tournament_id, config)
    calculator = TiebreakCalculator(config)
    order = calculator.validate_tiebreaks(config.validate())

    _check_tournament(tournament_id, ledger)
    scores = aggregate_scores(ledger, config)
    check_consistency(scores, ledger, config)

    rows: List[PlayerStanding] = []
    for player in ledger.players.values():
        score = scores[player.id]
        rated = calculator.rated_opponents(player.id, ledger, scores)
        ratings = [rating for _, rating in rated]
        rows.append(
            PlayerStanding(
                rank=0,
                player=player,
                points=score.points,
                games_played=score.games_played,
                wins=score.wins,
                draws=score.draws,
                losses=score.losses,
                tiebreak_scores=calculator.calculate_vector(player.id, order, ledger, scores),
                performance_rating=performance_rating(
                    ratings, sum(record.points for record, _ in rated)
                ),
                rating_change=rating_change(
                    player.rating, [(rating, record.points) for record, rating in rated]
                ),
            )
        )

    ranked = rank_standings(
        rows,
        order,
        lambda player_id, block: calculator.direct_encounter_within(
            player_id, block, scores
        ),
    )
    logger.debug(
        "Computed standings for tournament %s: %d players, %d games, version %s",
        tournament_id,
        len(ranked),
        len(ledger.games),
        ledger.version,
    )
    return StandingsCalculationResult(
        standings=ranked,
        last_updated=utc_timestamp(),
        tiebreak_config=config,
        ledger_version=ledger.version,
    )


def get_tiebreak_breakdown(
    tournament_id: int,
    player_id: int,
    tiebreak_type: str,
    ledger: GameLedger,
    config: Optional[TiebreakConfig] = None,
) -> TiebreakBreakdown:
    """Explain one tiebreak value for one player.

    Raises:
        PlayerNotFoundError: If the player is not registered
        TiebreakNotFoundError: If the tiebreak is not supported
        DataIntegrityError: If the ledger is inconsistent
    """
    config = _resolve_config(tournament_id, config)
    config.validate()
    _check_tournament(tournament_id, ledger)
    scores = aggregate_scores(ledger, config)
    explainer = BreakdownExplainer(TiebreakCalculator(config))
    return explainer.explain(player_id, tiebreak_type, ledger, scores)


def generate_cross_table(
    tournament_id: int, ledger: GameLedger, config: Optional[TiebreakConfig] = None
) -> CrossTable:
    """Build a cross table with one row per player, ordered by player id.

    Each row holds one entry per finished game against each other player,
    or a single empty entry when the two never met. Byes have no column.
    """
    config = _resolve_config(tournament_id, config)
    _check_tournament(tournament_id, ledger)
    scores = aggregate_scores(ledger, config)
    players = sorted(ledger.players.values(), key=lambda p: p.id)

    rows = []
    for player in players:
        score = scores[player.id]
        entries = []
        for opponent in players:
            if opponent.id == player.id:
                continue
            records = [r for r in score.rounds if r.opponent_id == opponent.id]
            if not records:
                entries.append(CrossTableEntry(player.id, opponent.id, None, None, None))
            for record in records:
                entries.append(
                    CrossTableEntry(
                        player.id,
                        opponent.id,
                        record.points,
                        record.color,
                        record.round_number,
                    )
                )
        rows.append(CrossTableRow(player, entries, score.points, score.games_played))

    return CrossTable(
        tournament_id=tournament_id,
        players=players,
        rows=rows,
        last_updated=utc_timestamp(),
    )
