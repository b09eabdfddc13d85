"""Standings engine: aggregation, tiebreaks, ranking and explanations."""

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

from pawnstandings.engine.aggregator import PlayerScore, RoundRecord, aggregate_scores
from pawnstandings.engine.explainer import BreakdownExplainer
from pawnstandings.engine.ranker import StandingsRanker, rank_standings
from pawnstandings.engine.standings import (
    compute_standings,
    generate_cross_table,
    get_tiebreak_breakdown,
)
from pawnstandings.engine.tiebreaks import (
    TiebreakCalculator,
    performance_rating,
    rating_change,
)

__all__ = [
    "aggregate_scores",
    "PlayerScore",
    "RoundRecord",
    "TiebreakCalculator",
    "performance_rating",
    "rating_change",
    "StandingsRanker",
    "rank_standings",
    "BreakdownExplainer",
    "compute_standings",
    "get_tiebreak_breakdown",
    "generate_cross_table",
]
