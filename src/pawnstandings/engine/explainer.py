"""Step-by-step explanations of tiebreak values.

Each supported tiebreak has a dedicated breakdown that walks through the
same inputs the calculator uses, so the last step of a breakdown always
lands on the value shown in the standings table.
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

from typing import Callable, Dict, List, Optional, Tuple

from pawnstandings.constants import (
    MATCH_POINTS_DRAW,
    MATCH_POINTS_WIN,
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
    TIEBREAK_NAMES,
    WIN_SCORE,
    FORFEIT_RESULT_TYPES,
)
from pawnstandings.engine.aggregator import RoundRecord
from pawnstandings.engine.tiebreaks import (
    TiebreakCalculator,
    cut_lowest,
    performance_difference,
    round_half_away,
)
from pawnstandings.exceptions import (
    PlayerNotFoundError,
    TiebreakNotFoundError,
    UnknownTiebreakError,
)
from pawnstandings.models.config import normalize_tiebreak_id
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.standings import (
    OpponentContribution,
    TiebreakBreakdown,
    TiebreakCalculationStep,
)
from pawnstandings.type_hints import BLACK, Scores
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)

Explanation = Tuple[str, List[TiebreakCalculationStep], List[OpponentContribution]]


class _Steps:
    """Accumulates numbered calculation steps."""

    def __init__(self) -> None:
        self.steps: List[TiebreakCalculationStep] = []

    def add(self, description: str, calculation: str, result: Optional[float]) -> None:
        self.steps.append(
            TiebreakCalculationStep(len(self.steps) + 1, description, calculation, result)
        )


def _join(values) -> str:
    return " + ".join(f"{v:.1f}" for v in values) or "0"


class BreakdownExplainer:
    """Produces a TiebreakBreakdown for any supported tiebreak."""

    def __init__(self, calculator: Optional[TiebreakCalculator] = None) -> None:
        self.calculator = calculator if calculator is not None else TiebreakCalculator()
        self._builders: Dict[str, Callable[..., Explanation]] = {
            TB_BUCHHOLZ_FULL: self._buchholz,
            TB_BUCHHOLZ_CUT_1: self._buchholz,
            TB_BUCHHOLZ_CUT_2: self._buchholz,
            TB_BUCHHOLZ_MEDIAN: self._buchholz,
            TB_SONNEBORN_BERGER: self._sonneborn_berger,
            TB_PROGRESSIVE: self._progressive,
            TB_CUMULATIVE: self._progressive,
            TB_DIRECT_ENCOUNTER: self._direct_encounter,
            TB_KOYA: self._koya,
            TB_ARO: self._average_rating,
            TB_AROC_CUT_1: self._average_rating,
            TB_AROC_CUT_2: self._average_rating,
            TB_TPR: self._performance_rating,
            TB_WINS: self._wins,
            TB_BLACK_GAMES: self._black_games,
            TB_BLACK_WINS: self._black_games,
            TB_MATCH_POINTS: self._match_points,
            TB_GAME_POINTS: self._game_points,
            TB_BOARD_POINTS: self._board_points,
        }

    def explain(
        self, player_id: int, tiebreak_type: str, ledger: GameLedger, scores: Scores
    ) -> TiebreakBreakdown:
        """Explain how a player's tiebreak value was reached.

        Raises:
            PlayerNotFoundError: If the player has no score in this tournament
            TiebreakNotFoundError: If the tiebreak is not supported
        """
        try:
            key = normalize_tiebreak_id(tiebreak_type)
        except UnknownTiebreakError:
            raise TiebreakNotFoundError(f"Unsupported tiebreak {tiebreak_type!r}") from None
        builder = self._builders.get(key)
        if builder is None:
            raise TiebreakNotFoundError(f"Unsupported tiebreak {tiebreak_type!r}")
        if player_id not in scores:
            raise PlayerNotFoundError(
                f"Player {player_id} is not registered in tournament {ledger.tournament_id}"
            )

        score = self.calculator.calculate(key, player_id, ledger, scores)
        explanation, steps, opponents = builder(key, player_id, ledger, scores)
        logger.debug("Explained %s for player %s in %d steps", key, player_id, len(steps))
        return TiebreakBreakdown(
            tiebreak_type=key,
            value=score.value,
            display_value=score.display_value,
            explanation=explanation,
            calculation_details=steps,
            opponents_involved=opponents,
        )

    # ========== Helpers ==========

    def _contribution(
        self, ledger: GameLedger, record: RoundRecord, value: float, explanation: str
    ) -> OpponentContribution:
        opponent = ledger.player(record.opponent_id)
        return OpponentContribution(
            opponent_id=opponent.id,
            opponent_name=opponent.name,
            opponent_rating=opponent.rating,
            contribution_value=value,
            game_result=record.pgn_result,
            explanation=explanation,
        )

    def _opponent_label(self, ledger: GameLedger, record: RoundRecord) -> str:
        if record.opponent_id is None:
            return f"bye (round {record.round_number})"
        return f"vs {ledger.player(record.opponent_id).name} (round {record.round_number})"

    # ========== Buchholz family ==========

    def _buchholz(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        calc = self.calculator
        entries = calc.opponent_entries(player_id, scores)
        steps = _Steps()
        opponents = []

        steps.add(
            "Identify all opponents played",
            f"{len(entries)} entries ({sum(1 for e in entries if e.is_virtual)} virtual)",
            float(len(entries)),
        )
        for entry in entries:
            if entry.is_virtual:
                steps.add(
                    self._opponent_label(ledger, entry.record),
                    f"Unplayed round counts as {entry.value:.1f} "
                    f"({calc.config.virtual_opponent} policy)",
                    entry.value,
                )
                continue
            steps.add(
                self._opponent_label(ledger, entry.record),
                f"Opponent scored {entry.value:.1f} points",
                entry.value,
            )
            opponents.append(
                self._contribution(
                    ledger, entry.record, entry.value, f"Opponent scored {entry.value:.1f} points"
                )
            )

        values = [e.value for e in entries]
        total = sum(values)
        steps.add("Sum all opponent scores", _join(values), total)

        if key == TB_BUCHHOLZ_CUT_1:
            kept = cut_lowest(values, 1)
            steps.add("Remove lowest opponent score", _join(kept), sum(kept))
        elif key == TB_BUCHHOLZ_CUT_2:
            kept = cut_lowest(values, 2)
            steps.add("Remove two lowest opponent scores", _join(kept), sum(kept))
        elif key == TB_BUCHHOLZ_MEDIAN:
            ordered = sorted(values)
            if len(ordered) > 2:
                kept = ordered[1:-1]
                steps.add("Remove highest and lowest opponent scores", _join(kept), sum(kept))
            else:
                steps.add(
                    "Keep all scores (two entries or fewer)", _join(ordered), sum(ordered)
                )

        explanation = (
            f"{TIEBREAK_NAMES[key]} sums the final scores of all your opponents"
        )
        if key != TB_BUCHHOLZ_FULL:
            explanation += ", after removing the entries shown"
        return explanation, steps.steps, opponents

    # ========== Result based ==========

    def _sonneborn_berger(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        calc = self.calculator
        steps = _Steps()
        opponents = []
        records = calc.played_rounds(player_id, scores)
        steps.add("Calculate Sonneborn-Berger for each game", f"{len(records)} games", None)

        total = 0.0
        for record in records:
            opponent_total = calc.player_score(record.opponent_id, scores).points
            contribution = opponent_total * record.points
            total += contribution
            text = f"{record.points:.1f} × {opponent_total:.1f} = {contribution:.1f}"
            steps.add(self._opponent_label(ledger, record), text, contribution)
            opponents.append(self._contribution(ledger, record, contribution, text))

        steps.add("Sum all contributions", f"Total = {total:.1f}", total)
        explanation = (
            "Sonneborn-Berger multiplies your score from each game by your "
            "opponent's total tournament score, then sums all results"
        )
        return explanation, steps.steps, opponents

    def _progressive(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        calc = self.calculator
        score = calc.player_score(player_id, scores)
        steps = _Steps()
        for record, running in zip(score.rounds, score.running_scores):
            steps.add(
                f"After round {record.round_number}",
                f"{record.points:+.1f} -> {running:.1f}",
                running,
            )
        progressive = sum(score.running_scores)
        steps.add("Sum running scores", _join(score.running_scores), progressive)

        if key == TB_CUMULATIVE:
            unplayed = sum(r.points for r in calc.unplayed_rounds(player_id, scores))
            steps.add(
                "Subtract points from unplayed rounds",
                f"{progressive:.1f} - {unplayed:.1f}",
                progressive - unplayed,
            )
            explanation = (
                "Cumulative Score adds your running score after each round, "
                "less points earned without playing"
            )
        else:
            explanation = (
                "Progressive Score adds your running score after each round, "
                "rewarding early wins"
            )
        return explanation, steps.steps, []

    def _direct_encounter(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        calc = self.calculator
        tied = calc.tied_player_ids(player_id, scores)
        steps = _Steps()
        opponents = []
        steps.add(
            "Identify players tied on same points",
            ", ".join(ledger.player(pid).name for pid in sorted(tied)) or "none",
            float(len(tied)),
        )

        tied_set = set(tied)
        total = 0.0
        for record in calc.played_rounds(player_id, scores):
            if record.opponent_id not in tied_set:
                continue
            total += record.points
            text = f"Head-to-head: {record.points:.1f} points"
            steps.add(
                f"vs {ledger.player(record.opponent_id).name} (tied player)", text, record.points
            )
            opponents.append(self._contribution(ledger, record, record.points, text))

        steps.add("Sum head-to-head results", f"Total = {total:.1f}", total)
        explanation = (
            "Direct Encounter sums your scores from games played against other "
            "players who finished with the same number of points"
        )
        return explanation, steps.steps, opponents

    def _koya(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        calc = self.calculator
        threshold = calc.koya_threshold(ledger)
        steps = _Steps()
        opponents = []
        steps.add(
            "Determine the 50% threshold",
            f"{ledger.last_played_round} rounds played / 2 = {threshold:.1f}",
            threshold,
        )

        total = 0.0
        for record in calc.played_rounds(player_id, scores):
            opponent_points = calc.player_score(record.opponent_id, scores).points
            if opponent_points < threshold:
                continue
            total += record.points
            text = f"Opponent on {opponent_points:.1f}, you scored {record.points:.1f}"
            steps.add(self._opponent_label(ledger, record), text, record.points)
            opponents.append(self._contribution(ledger, record, record.points, text))

        steps.add("Sum points against qualifying opponents", f"Total = {total:.1f}", total)
        explanation = (
            "Koya System counts the points you scored against opponents who "
            "finished with at least half of the maximum possible score"
        )
        return explanation, steps.steps, opponents

    # ========== Rating based ==========

    def _collect_ratings(
        self, player_id: int, ledger: GameLedger, scores: Scores, steps: _Steps
    ) -> Tuple[List[Tuple[RoundRecord, int]], List[OpponentContribution]]:
        rated = self.calculator.rated_opponents(player_id, ledger, scores)
        opponents = []
        for record, rating in rated:
            text = f"Rating: {rating}, Score: {record.points:.1f}"
            opponents.append(self._contribution(ledger, record, float(rating), text))
        steps.add(
            "Collect opponent ratings",
            ", ".join(str(rating) for _, rating in rated) or "no rated opponents",
            float(len(rated)),
        )
        return rated, opponents

    def _average_rating(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        steps = _Steps()
        rated, opponents = self._collect_ratings(player_id, ledger, scores, steps)
        ratings = [rating for _, rating in rated]

        cut = {TB_ARO: 0, TB_AROC_CUT_1: 1, TB_AROC_CUT_2: 2}[key]
        if ratings and cut:
            ratings = cut_lowest(ratings, cut)
            steps.add(
                "Remove lowest rating" if cut == 1 else "Remove two lowest ratings",
                ", ".join(str(r) for r in ratings),
                float(len(ratings)),
            )

        if ratings:
            average = round_half_away(sum(ratings) / len(ratings))
            steps.add(
                "Calculate average rating",
                f"{sum(ratings)} / {len(ratings)} = {average}",
                float(average),
            )
        else:
            steps.add("Calculate average rating", "Undefined without rated opponents", None)

        explanation = (
            f"{TIEBREAK_NAMES[key]} calculates the mean rating of the rated "
            "opponents you played against"
        )
        return explanation, steps.steps, opponents

    def _performance_rating(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        steps = _Steps()
        rated, opponents = self._collect_ratings(player_id, ledger, scores, steps)
        explanation = (
            "Tournament Performance Rating (TPR) estimates what your rating would "
            "be based on your performance against the opponents you faced"
        )
        if not rated:
            steps.add("Apply ELO formula", "Undefined without rated opponents", None)
            return explanation, steps.steps, opponents

        ratings = [rating for _, rating in rated]
        points = sum(record.points for record, _ in rated)
        aro = round_half_away(sum(ratings) / len(ratings))
        percentage = points / len(ratings)
        dp = performance_difference(percentage)
        tpr = round_half_away(aro + dp)

        steps.add(
            "Calculate average opponent rating",
            f"{sum(ratings)} / {len(ratings)} = {aro}",
            float(aro),
        )
        steps.add(
            "Calculate performance percentage",
            f"{points:.1f} / {len(ratings)} = {percentage:.3f}",
            percentage,
        )
        steps.add("Apply ELO formula", f"{aro} + {dp:.1f} = {tpr}", float(tpr))
        return explanation, steps.steps, opponents

    # ========== Counts ==========

    def _wins(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        score = self.calculator.player_score(player_id, scores)
        steps = _Steps()
        count = 0
        for record in score.rounds:
            if record.points != WIN_SCORE:
                continue
            count += 1
            label = "Bye" if record.is_bye else "Win"
            steps.add(
                f"{label} in round {record.round_number}",
                self._opponent_label(ledger, record),
                float(count),
            )
        steps.add("Total wins", f"{count} wins", float(count))
        explanation = (
            "Number of Wins counts rounds in which you scored a full point "
            "(excludes draws and losses)"
        )
        return explanation, steps.steps, []

    def _black_games(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        wins_only = key == TB_BLACK_WINS
        steps = _Steps()
        opponents = []
        count = 0
        for record in self.calculator.played_rounds(player_id, scores):
            if record.color != BLACK or (wins_only and record.points != WIN_SCORE):
                continue
            count += 1
            text = f"Black in round {record.round_number}, scored {record.points:.1f}"
            steps.add(self._opponent_label(ledger, record), text, float(count))
            opponents.append(self._contribution(ledger, record, 1.0, text))

        if wins_only:
            steps.add("Total wins with black", f"{count} wins", float(count))
            explanation = "Wins with Black counts the games you won with the black pieces"
        else:
            steps.add("Total games with black", f"{count} games", float(count))
            explanation = "Games with Black counts the games you played with the black pieces"
        return explanation, steps.steps, opponents

    def _match_points(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        score = self.calculator.player_score(player_id, scores)
        steps = _Steps()
        win_points = MATCH_POINTS_WIN * score.wins
        draw_points = MATCH_POINTS_DRAW * score.draws
        steps.add("Points for wins", f"{score.wins} × {MATCH_POINTS_WIN:.0f}", win_points)
        steps.add("Points for draws", f"{score.draws} × {MATCH_POINTS_DRAW:.0f}", draw_points)
        steps.add(
            "Total match points", f"{win_points:.0f} + {draw_points:.0f}", win_points + draw_points
        )
        explanation = "Match Points award two points for each win and one for each draw"
        return explanation, steps.steps, []

    def _game_points(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        score = self.calculator.player_score(player_id, scores)
        steps = _Steps()
        for record in score.rounds:
            steps.add(self._opponent_label(ledger, record), record.pgn_result, record.points)
        steps.add("Sum points from each round", _join(score.results), score.points)
        explanation = "Game Points is your total score: one per win and a half per draw"
        return explanation, steps.steps, []

    def _board_points(
        self, key: str, player_id: int, ledger: GameLedger, scores: Scores
    ) -> Explanation:
        score = self.calculator.player_score(player_id, scores)
        steps = _Steps()
        opponents = []
        counted = []
        for record in score.rounds:
            if record.is_bye or record.result_type in FORFEIT_RESULT_TYPES:
                continue
            counted.append(record.points)
            text = f"Scored {record.points:.1f} over the board"
            steps.add(self._opponent_label(ledger, record), text, record.points)
            opponents.append(self._contribution(ledger, record, record.points, text))
        steps.add("Sum points from games played", _join(counted), sum(counted))
        explanation = (
            "Board Points counts only points scored over the board; byes and "
            "forfeits are left out"
        )
        return explanation, steps.steps, opponents
