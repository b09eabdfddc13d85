"""TiebreakConfig data class."""

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
from typing import Any, Dict, List

from pawnstandings.constants import (
    ALL_TIEBREAKS,
    DEFAULT_FIDE_TIEBREAK_ORDER,
    DEFAULT_VIRTUAL_OPPONENT,
    TIEBREAK_NAMES,
    VIRTUAL_OPPONENT_POLICIES,
)
from pawnstandings.exceptions import ConfigurationError, UnknownTiebreakError

_DISPLAY_NAME_LOOKUP = {name.lower(): key for key, name in TIEBREAK_NAMES.items()}


def normalize_tiebreak_id(value: str) -> str:
    """Resolve a tiebreak identifier or display name to its identifier.

    Raises:
        UnknownTiebreakError: If the value matches no known tiebreak
    """
    if not isinstance(value, str):
        raise UnknownTiebreakError(repr(value))
    key = value.strip()
    if key in ALL_TIEBREAKS:
        return key
    lowered = key.lower()
    if lowered in ALL_TIEBREAKS:
        return lowered
    if lowered in _DISPLAY_NAME_LOOKUP:
        return _DISPLAY_NAME_LOOKUP[lowered]
    raise UnknownTiebreakError(value)


@dataclass
class TiebreakConfig:
    """Tiebreak configuration for a tournament.

    Attributes
    ----------
    tournament_id : int
        Tournament the configuration belongs to.
    tiebreaks : list of str
        Tiebreak identifiers in precedence order, highest first.
    use_fide_defaults : bool
        Use the federation default order when ``tiebreaks`` is empty.
    score_forfeits : bool
        Score forfeit and timeout results like normal results. When False
        they are left out of points and W/D/L entirely.
    forfeits_in_tiebreaks : bool
        Treat forfeit and timeout results as played games in opponent-based
        tiebreaks. When False they count as unplayed rounds.
    virtual_opponent : str
        Contribution of an unplayed round to the Buchholz family:
        ``ignore``, ``zero`` or ``own_score``.
    """

    tournament_id: int = 0
    tiebreaks: List[str] = field(default_factory=list)
    use_fide_defaults: bool = True
    score_forfeits: bool = True
    forfeits_in_tiebreaks: bool = True
    virtual_opponent: str = DEFAULT_VIRTUAL_OPPONENT

    @classmethod
    def fide_default(cls, tournament_id: int = 0) -> "TiebreakConfig":
        """Configuration with the federation default order spelled out."""
        return cls(
            tournament_id=tournament_id,
            tiebreaks=list(DEFAULT_FIDE_TIEBREAK_ORDER),
            use_fide_defaults=True,
        )

    @property
    def effective_tiebreaks(self) -> List[str]:
        """The order actually applied, after defaults and name resolution."""
        if not self.tiebreaks and self.use_fide_defaults:
            return list(DEFAULT_FIDE_TIEBREAK_ORDER)
        return [normalize_tiebreak_id(tb) for tb in self.tiebreaks]

    def validate(self) -> List[str]:
        """Validate the whole configuration up front.

        Returns:
            The effective tiebreak order

        Raises:
            ConfigurationError: On unknown or duplicate identifiers or an
                unknown virtual opponent policy
        """
        if self.virtual_opponent not in VIRTUAL_OPPONENT_POLICIES:
            raise ConfigurationError(
                f"Unknown virtual opponent policy {self.virtual_opponent!r}; "
                f"expected one of {', '.join(VIRTUAL_OPPONENT_POLICIES)}"
            )
        order = self.effective_tiebreaks
        duplicates = sorted({tb for tb in order if order.count(tb) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate tiebreaks: {', '.join(duplicates)}")
        return order

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "tournament_id": self.tournament_id,
            "tiebreaks": list(self.tiebreaks),
            "use_fide_defaults": self.use_fide_defaults,
            "score_forfeits": self.score_forfeits,
            "forfeits_in_tiebreaks": self.forfeits_in_tiebreaks,
            "virtual_opponent": self.virtual_opponent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TiebreakConfig":
        """Deserialize configuration from dictionary."""
        tiebreaks = data.get("tiebreaks", [])
        if not isinstance(tiebreaks, list):
            raise ConfigurationError("'tiebreaks' must be a list of identifiers")
        return cls(
            tournament_id=int(data.get("tournament_id", 0)),
            tiebreaks=list(tiebreaks),
            use_fide_defaults=data.get("use_fide_defaults", True),
            score_forfeits=data.get("score_forfeits", True),
            forfeits_in_tiebreaks=data.get("forfeits_in_tiebreaks", True),
            virtual_opponent=data.get("virtual_opponent", DEFAULT_VIRTUAL_OPPONENT),
        )
