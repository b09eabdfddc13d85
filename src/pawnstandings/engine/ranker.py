"""Standings ordering and rank assignment."""

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

import itertools
from typing import Callable, List, Optional, Sequence, Tuple

from pawnstandings.constants import TB_DIRECT_ENCOUNTER
from pawnstandings.models.standings import PlayerStanding
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)

# (player_id, ids of the block still tied) -> points scored against that block
DirectEncounter = Callable[[int, Sequence[int]], float]


def _sort_key(value: Optional[float]) -> Tuple[bool, float]:
    """Higher is better; an undefined value loses to any defined one."""
    return (value is not None, value if value is not None else 0.0)


class StandingsRanker:
    """Orders standings rows and assigns competition ranks.

    Rows are grouped by points, then each group is split by the tiebreaks in
    the configured order. Direct encounter is scored across the block of
    players still tied when its position is reached, so a cycle of results
    inside the block cannot separate anyone. Rows still together after every
    tiebreak share a rank ("1, 2, 2, 4") and are listed by ascending player id.
    """

    def __init__(
        self, order: Sequence[str], direct_encounter: Optional[DirectEncounter] = None
    ) -> None:
        self.order = list(order)
        self.direct_encounter = direct_encounter

    def block_values(
        self, tb_key: str, block: Sequence[PlayerStanding]
    ) -> List[Optional[float]]:
        """Values deciding ``block`` at one tiebreak position."""
        if tb_key == TB_DIRECT_ENCOUNTER and self.direct_encounter is not None:
            ids = [row.player_id for row in block]
            return [self.direct_encounter(row.player_id, ids) for row in block]
        return [row.tiebreak_value(tb_key) for row in block]

    def split(
        self, block: Sequence[PlayerStanding], position: int = 0
    ) -> List[List[PlayerStanding]]:
        """Split rows tied on points into blocks that stay tied, best first."""
        if len(block) < 2 or position >= len(self.order):
            return [sorted(block, key=lambda row: row.player_id)]

        values = self.block_values(self.order[position], block)
        keyed = sorted(
            zip(block, values), key=lambda pair: _sort_key(pair[1]), reverse=True
        )

        blocks = []
        for _, group in itertools.groupby(keyed, key=lambda pair: _sort_key(pair[1])):
            blocks.extend(self.split([row for row, _ in group], position + 1))
        return blocks

    def rank(self, rows: Sequence[PlayerStanding]) -> List[PlayerStanding]:
        """Sort rows best first and assign ranks in place."""
        by_points = sorted(rows, key=lambda row: row.points, reverse=True)

        ordered: List[PlayerStanding] = []
        for _, group in itertools.groupby(by_points, key=lambda row: row.points):
            for block in self.split(list(group)):
                rank = len(ordered) + 1
                for row in block:
                    row.rank = rank
                ordered.extend(block)

        logger.debug("Ranked %d rows by %s", len(ordered), ", ".join(self.order) or "points")
        return ordered


def rank_standings(
    rows: Sequence[PlayerStanding],
    order: Sequence[str],
    direct_encounter: Optional[DirectEncounter] = None,
) -> List[PlayerStanding]:
    """Sort standings rows and assign competition ranks.

    Args:
        rows: Unranked standings rows carrying their tiebreak vectors
        order: Tiebreak identifiers in precedence order
        direct_encounter: Scores a player against the block still tied at the
            direct encounter position; when omitted the rows' scalar value is
            compared

    Returns:
        Rows ordered best first with ``rank`` filled in
    """
    return StandingsRanker(order, direct_encounter).rank(rows)
