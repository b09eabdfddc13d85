"""Tiebreak calculation for tournaments.

This module handles calculation of the tiebreak systems used in chess
tournament standings. Every method is a pure function of the ledger and the
aggregated scores.
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

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pawnstandings.constants import (
    DRAW_SCORE,
    ELO_SCALE,
    FORFEIT_RESULT_TYPES,
    MATCH_POINTS_DRAW,
    MATCH_POINTS_WIN,
    PERFORMANCE_DP_CAP,
    TB_ARO,
    TB_AROC_CUT_1,
    TB_AROC_CUT_2,
    TB_BLACK_GAMES,
    TB_BLACK_WINS,
    TB_BOARD_POINTS,
    TB_BUCHHOLZ_CUT_1,
    TB_BUCHHOLZ_CUT_2,
    TB_BUCHHOLZ_FULL,
    TB_BUCHHOLZ_MEDIAN,
    TB_CUMULATIVE,
    TB_DIRECT_ENCOUNTER,
    TB_GAME_POINTS,
    TB_KOYA,
    TB_MATCH_POINTS,
    TB_PROGRESSIVE,
    TB_SONNEBORN_BERGER,
    TB_TPR,
    TB_WINS,
    VIRTUAL_OPPONENT_IGNORE,
    VIRTUAL_OPPONENT_OWN_SCORE,
    WIN_SCORE,
)
from pawnstandings.engine.aggregator import PlayerScore, RoundRecord
from pawnstandings.exceptions import PlayerNotFoundError, UnknownTiebreakError
from pawnstandings.models.config import TiebreakConfig, normalize_tiebreak_id
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.standings import TiebreakScore
from pawnstandings.type_hints import BLACK, Scores
from pawnstandings.utils import format_count, format_points, format_rating, setup_logger

logger = setup_logger(__name__)

TiebreakMethod = Callable[[int, GameLedger, Scores], TiebreakScore]


@dataclass(frozen=True)
class OpponentEntry:
    """One entry in a Buchholz-style opponent score list.

    ``opponent_id`` is None for a virtual opponent standing in for an
    unplayed round.
    """

    opponent_id: Optional[int]
    value: float
    record: RoundRecord

    @property
    def is_virtual(self) -> bool:
        return self.opponent_id is None


# ========== Rating formulas ==========


def round_half_away(value: float) -> int:
    """Round to the nearest whole number, halves away from zero.

    ``2.5`` becomes 3 and ``-2.5`` becomes -3.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def performance_difference(percentage: float) -> float:
    """Rating difference ``dp`` for a scoring percentage.

    Inverse of the Elo expected score, ``400 * log10(p / (1 - p))``, capped
    at +/-800 (which is also the value for a perfect or zero score).
    """
    if percentage >= 1.0:
        return float(PERFORMANCE_DP_CAP)
    if percentage <= 0.0:
        return float(-PERFORMANCE_DP_CAP)
    dp = ELO_SCALE * math.log10(percentage / (1.0 - percentage))
    return max(-PERFORMANCE_DP_CAP, min(PERFORMANCE_DP_CAP, dp))


def performance_rating(ratings: Sequence[int], score: float) -> Optional[int]:
    """Tournament performance rating: rounded ARO plus ``dp``.

    Args:
        ratings: Ratings of the rated opponents faced (one per game)
        score: Points scored in those games

    Returns:
        The performance rating, None when there are no rated opponents
    """
    if not ratings:
        return None
    aro = round_half_away(sum(ratings) / len(ratings))
    dp = performance_difference(score / len(ratings))
    return round_half_away(aro + dp)


def expected_score(rating: int, opponent_rating: int) -> float:
    """Elo expected score against a single opponent."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / ELO_SCALE))


def k_factor(rating: int, games_played: int) -> float:
    """FIDE development coefficient."""
    if rating >= 2400:
        return 10.0
    if rating < 2300 and games_played < 30:
        return 40.0
    return 20.0


def rating_change(
    rating: Optional[int], games: Iterable[Tuple[int, float]]
) -> Optional[int]:
    """Elo rating change over a set of rated games.

    Args:
        rating: The player's own rating, None for unrated players
        games: (opponent_rating, points) pairs

    Returns:
        Rounded rating change, None for unrated players or no rated games
    """
    if rating is None or rating <= 0:
        return None
    games = list(games)
    if not games:
        return None
    expected = sum(expected_score(rating, opp) for opp, _ in games)
    actual = sum(points for _, points in games)
    return round_half_away(k_factor(rating, len(games)) * (actual - expected))


def cut_lowest(values: Sequence[float], count: int) -> List[float]:
    """Drop the ``count`` lowest values, always keeping at least one."""
    ordered = sorted(values)
    drop = min(count, max(len(ordered) - 1, 0))
    return ordered[drop:]


class TiebreakCalculator:
    """Calculates tiebreak scores for tournament standings.

    Supported systems:

    Buchholz family:
    - Buchholz: sum of opponents' final scores
    - Buchholz Cut-1 / Cut-2: Buchholz dropping the 1 / 2 lowest entries
    - Median Buchholz: Buchholz dropping the highest and lowest entries

    Result based:
    - Sonneborn-Berger: sum of (opponent score x result against them)
    - Progressive: sum of the running score after each round
    - Cumulative: progressive score less points from unplayed rounds
    - Direct Encounter: points scored against players tied on points
    - Koya: points scored against opponents on 50% or more

    Rating based:
    - Average Rating of Opponents, 0.5 rounds up
    - AROC Cut-1 / Cut-2: ARO dropping the 1 / 2 lowest-rated opponents
    - Tournament Performance Rating

    Counts:
    - Number of wins (byes with win points included)
    - Games with black, wins with black (over the board only)
    - Match points (2/1/0), game points, board points

    Unplayed rounds (byes, plus forfeits when ``forfeits_in_tiebreaks`` is
    False) contribute to the Buchholz family according to the configured
    virtual opponent policy and are ignored by every other opponent-based
    method.
    """

    def __init__(self, config: Optional[TiebreakConfig] = None) -> None:
        self.config = config if config is not None else TiebreakConfig()
        self._methods: Dict[str, TiebreakMethod] = {
            TB_BUCHHOLZ_FULL: self.buchholz_full,
            TB_BUCHHOLZ_CUT_1: self.buchholz_cut_1,
            TB_BUCHHOLZ_CUT_2: self.buchholz_cut_2,
            TB_BUCHHOLZ_MEDIAN: self.buchholz_median,
            TB_SONNEBORN_BERGER: self.sonneborn_berger,
            TB_PROGRESSIVE: self.progressive_score,
            TB_CUMULATIVE: self.cumulative_score,
            TB_DIRECT_ENCOUNTER: self.direct_encounter,
            TB_ARO: self.average_rating_of_opponents,
            TB_TPR: self.tournament_performance_rating,
            TB_WINS: self.number_of_wins,
            TB_BLACK_GAMES: self.number_of_games_with_black,
            TB_BLACK_WINS: self.number_of_wins_with_black,
            TB_KOYA: self.koya_system,
            TB_AROC_CUT_1: self.aroc_cut_1,
            TB_AROC_CUT_2: self.aroc_cut_2,
            TB_MATCH_POINTS: self.match_points,
            TB_GAME_POINTS: self.game_points,
            TB_BOARD_POINTS: self.board_points,
        }

    @property
    def supported_tiebreaks(self) -> Tuple[str, ...]:
        return tuple(self._methods)

    def validate_tiebreaks(self, tiebreaks: Iterable[str]) -> List[str]:
        """Resolve every identifier before any calculation starts.

        Raises:
            UnknownTiebreakError: On the first identifier the engine does not
                implement
        """
        resolved = []
        for tiebreak in tiebreaks:
            key = normalize_tiebreak_id(tiebreak)
            if key not in self._methods:
                raise UnknownTiebreakError(tiebreak)
            resolved.append(key)
        return resolved

    def calculate(
        self, tiebreak_type: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Calculate a single tiebreak for a single player."""
        key = normalize_tiebreak_id(tiebreak_type)
        method = self._methods.get(key)
        if method is None:
            raise UnknownTiebreakError(tiebreak_type)
        return method(player_id, ledger, scores)

    def calculate_vector(
        self,
        player_id: int,
        order: Sequence[str],
        ledger: GameLedger,
        scores: Scores,
    ) -> List[TiebreakScore]:
        """Calculate the tiebreak vector for a player in configured order."""
        return [self.calculate(tb, player_id, ledger, scores) for tb in order]

    # ========== Shared building blocks ==========

    def player_score(self, player_id: int, scores: Scores) -> PlayerScore:
        try:
            return scores[player_id]
        except KeyError:
            raise PlayerNotFoundError(f"No score for player {player_id}") from None

    def counts_as_played(self, record: RoundRecord) -> bool:
        """Whether a round counts as a game against a real opponent."""
        if record.is_bye:
            return False
        if record.result_type in FORFEIT_RESULT_TYPES:
            return self.config.forfeits_in_tiebreaks
        return True

    def played_rounds(self, player_id: int, scores: Scores) -> List[RoundRecord]:
        return [
            r for r in self.player_score(player_id, scores).rounds if self.counts_as_played(r)
        ]

    def unplayed_rounds(self, player_id: int, scores: Scores) -> List[RoundRecord]:
        return [
            r
            for r in self.player_score(player_id, scores).rounds
            if not self.counts_as_played(r)
        ]

    def opponent_entries(self, player_id: int, scores: Scores) -> List[OpponentEntry]:
        """Opponent score list used by the Buchholz family, in round order."""
        own = self.player_score(player_id, scores)
        entries = []
        for record in own.rounds:
            if self.counts_as_played(record):
                opponent = self.player_score(record.opponent_id, scores)
                entries.append(OpponentEntry(record.opponent_id, opponent.points, record))
            elif self.config.virtual_opponent == VIRTUAL_OPPONENT_IGNORE:
                continue
            elif self.config.virtual_opponent == VIRTUAL_OPPONENT_OWN_SCORE:
                entries.append(OpponentEntry(None, own.points, record))
            else:
                entries.append(OpponentEntry(None, 0.0, record))
        return entries

    def rated_opponents(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> List[Tuple[RoundRecord, int]]:
        """Played rounds against rated opponents with the opponent's rating."""
        rated = []
        for record in self.played_rounds(player_id, scores):
            opponent = ledger.player(record.opponent_id)
            if opponent.is_rated:
                rated.append((record, opponent.rating))
        return rated

    def tied_player_ids(self, player_id: int, scores: Scores) -> List[int]:
        """Other players on the same points as ``player_id``."""
        points = self.player_score(player_id, scores).points
        return [
            pid for pid, s in scores.items() if pid != player_id and s.points == points
        ]

    def koya_threshold(self, ledger: GameLedger) -> float:
        """Half of the maximum possible score so far.

        Rounds that are paired but have no result yet do not count.
        """
        return DRAW_SCORE * ledger.last_played_round

    def points_against(
        self, player_id: int, opponent_ids: Iterable[int], scores: Scores
    ) -> float:
        """Points ``player_id`` scored in played games against ``opponent_ids``."""
        opponents = set(opponent_ids)
        return sum(
            r.points
            for r in self.played_rounds(player_id, scores)
            if r.opponent_id in opponents
        )

    def _points(self, tiebreak_type: str, value: float) -> TiebreakScore:
        return TiebreakScore(tiebreak_type, value, format_points(value))

    def _count(self, tiebreak_type: str, value: float) -> TiebreakScore:
        return TiebreakScore(tiebreak_type, value, format_count(value))

    def _rating(self, tiebreak_type: str, value: Optional[int]) -> TiebreakScore:
        return TiebreakScore(
            tiebreak_type,
            float(value) if value is not None else None,
            format_rating(value),
        )

    # ========== Buchholz family ==========

    def buchholz_full(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Sum of the final scores of all opponents faced."""
        entries = self.opponent_entries(player_id, scores)
        return self._points(TB_BUCHHOLZ_FULL, sum(e.value for e in entries))

    def buchholz_cut_1(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Buchholz without the lowest entry."""
        values = [e.value for e in self.opponent_entries(player_id, scores)]
        return self._points(TB_BUCHHOLZ_CUT_1, sum(cut_lowest(values, 1)))

    def buchholz_cut_2(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Buchholz without the two lowest entries."""
        values = [e.value for e in self.opponent_entries(player_id, scores)]
        return self._points(TB_BUCHHOLZ_CUT_2, sum(cut_lowest(values, 2)))

    def buchholz_median(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Buchholz without the highest and lowest entries.

        With two entries or fewer nothing is dropped.
        """
        values = sorted(e.value for e in self.opponent_entries(player_id, scores))
        if len(values) > 2:
            values = values[1:-1]
        return self._points(TB_BUCHHOLZ_MEDIAN, sum(values))

    # ========== Result based ==========

    def sonneborn_berger(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Sum over games of opponent's final score times points earned."""
        total = 0.0
        for record in self.played_rounds(player_id, scores):
            total += self.player_score(record.opponent_id, scores).points * record.points
        return self._points(TB_SONNEBORN_BERGER, total)

    def progressive_score(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Sum of the running score after each round."""
        running = self.player_score(player_id, scores).running_scores
        return self._points(TB_PROGRESSIVE, sum(running))

    def cumulative_score(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Progressive score reduced by the points of unplayed rounds (USCF)."""
        running = self.player_score(player_id, scores).running_scores
        unplayed = sum(r.points for r in self.unplayed_rounds(player_id, scores))
        return self._points(TB_CUMULATIVE, sum(running) - unplayed)

    def direct_encounter(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Points scored against players tied on points.

        The ranker scores the same thing against the smaller block still tied
        when the direct encounter position is reached, see
        :meth:`direct_encounter_within`.
        """
        total = self.points_against(
            player_id, self.tied_player_ids(player_id, scores), scores
        )
        return self._points(TB_DIRECT_ENCOUNTER, total)

    def direct_encounter_within(
        self, player_id: int, block_ids: Iterable[int], scores: Scores
    ) -> float:
        """Points scored against the other members of a tied block."""
        others = [pid for pid in block_ids if pid != player_id]
        return self.points_against(player_id, others, scores)

    def koya_system(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Points scored against opponents finishing on 50% or more."""
        threshold = self.koya_threshold(ledger)
        total = 0.0
        for record in self.played_rounds(player_id, scores):
            if self.player_score(record.opponent_id, scores).points >= threshold:
                total += record.points
        return self._points(TB_KOYA, total)

    # ========== Rating based ==========

    def average_rating_of_opponents(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Average rating of rated opponents, rounded with 0.5 up."""
        ratings = [rating for _, rating in self.rated_opponents(player_id, ledger, scores)]
        return self._rating(TB_ARO, self._average_rating(ratings, 0))

    def aroc_cut_1(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        ratings = [rating for _, rating in self.rated_opponents(player_id, ledger, scores)]
        return self._rating(TB_AROC_CUT_1, self._average_rating(ratings, 1))

    def aroc_cut_2(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        ratings = [rating for _, rating in self.rated_opponents(player_id, ledger, scores)]
        return self._rating(TB_AROC_CUT_2, self._average_rating(ratings, 2))

    def _average_rating(self, ratings: List[int], cut: int) -> Optional[int]:
        if not ratings:
            return None
        kept = cut_lowest(ratings, cut)
        return round_half_away(sum(kept) / len(kept))

    def tournament_performance_rating(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        """Performance rating over games against rated opponents.

        Undefined (None) without rated opponents; the ranker sorts that last.
        """
        rated = self.rated_opponents(player_id, ledger, scores)
        ratings = [rating for _, rating in rated]
        points = sum(record.points for record, _ in rated)
        return self._rating(TB_TPR, performance_rating(ratings, points))

    # ========== Counts ==========

    def number_of_wins(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Rounds with win points, byes and forfeits included."""
        return self._count(TB_WINS, float(self.player_score(player_id, scores).wins))

    def number_of_games_with_black(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        count = sum(1 for r in self.played_rounds(player_id, scores) if r.color == BLACK)
        return self._count(TB_BLACK_GAMES, float(count))

    def number_of_wins_with_black(
        self, player_id: int, ledger: GameLedger, scores: Scores
    ) -> TiebreakScore:
        count = sum(
            1
            for r in self.played_rounds(player_id, scores)
            if r.color == BLACK and r.points == WIN_SCORE
        )
        return self._count(TB_BLACK_WINS, float(count))

    def match_points(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Two points per win, one per draw."""
        score = self.player_score(player_id, scores)
        value = MATCH_POINTS_WIN * score.wins + MATCH_POINTS_DRAW * score.draws
        return self._count(TB_MATCH_POINTS, value)

    def game_points(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        return self._points(TB_GAME_POINTS, self.player_score(player_id, scores).points)

    def board_points(self, player_id: int, ledger: GameLedger, scores: Scores) -> TiebreakScore:
        """Points scored over the board; byes and forfeits excluded."""
        total = sum(
            r.points
            for r in self.player_score(player_id, scores).rounds
            if not r.is_bye and r.result_type not in FORFEIT_RESULT_TYPES
        )
        return self._points(TB_BOARD_POINTS, total)
