"""A registered tournament player and rating history entries."""

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

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from dateutil.parser import isoparse

from pawnstandings.constants import STATUS_ACTIVE, STATUS_WITHDRAWN
from pawnstandings.exceptions import DataIntegrityError
from pawnstandings.utils import setup_logger
from pawnstandings.utils.validation import (
    validate_country_code,
    validate_rating,
    validate_status,
    validate_title,
)

logger = setup_logger(__name__)


@dataclass(frozen=True)
class Player:
    """Represents a player registered in a tournament.

    Identity is immutable. A rating update produces a new Player through
    :func:`apply_rating_history` or :meth:`with_rating`.

    Attributes:
        id: Unique identifier within the tournament
        name: Player's full name
        rating: Player's rating, None for unrated players
        country_code: Federation or ISO country code (upper case)
        title: Chess title (GM, IM, ...)
        status: ``active`` or ``withdrawn``
    """

    id: int
    name: str
    rating: Optional[int] = None
    country_code: Optional[str] = None
    title: Optional[str] = None
    status: str = STATUS_ACTIVE

    def __post_init__(self) -> None:
        # Sanitize through the validation helpers; frozen, so use object.__setattr__
        for field_name, validator in (
            ("rating", validate_rating),
            ("country_code", validate_country_code),
            ("title", validate_title),
            ("status", validate_status),
        ):
            result = validator(getattr(self, field_name))
            if not result:
                raise DataIntegrityError(
                    f"Player {self.id} ({self.name}): {result.error_message}"
                )
            object.__setattr__(self, field_name, result.sanitized_value)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def is_rated(self) -> bool:
        return self.rating is not None and self.rating > 0

    def with_rating(self, rating: Optional[int]) -> "Player":
        """Return a copy of this player with a new rating."""
        return replace(self, rating=rating)

    def withdraw(self) -> "Player":
        """Return a copy of this player marked as withdrawn."""
        return replace(self, status=STATUS_WITHDRAWN)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize player to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "rating": self.rating,
            "country_code": self.country_code,
            "title": self.title,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Deserialize player from dictionary."""
        return cls(
            id=int(data["id"]),
            name=data["name"],
            rating=data.get("rating"),
            country_code=data.get("country_code"),
            title=data.get("title"),
            status=data.get("status", STATUS_ACTIVE),
        )

    def __str__(self) -> str:
        if self.rating is None:
            return self.name
        return f"{self.name} ({self.rating})"


@dataclass(frozen=True)
class RatingHistoryEntry:
    """A rating published for a player, effective from a given round.

    Attributes:
        player_id: Player the rating belongs to
        rating: New rating value
        recorded_at: When the rating was published
        round_number: First round the rating applies to (None = from the start)
    """

    player_id: int
    rating: int
    recorded_at: datetime
    round_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "rating": self.rating,
            "recorded_at": self.recorded_at.isoformat(),
            "round_number": self.round_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RatingHistoryEntry":
        recorded_at = data["recorded_at"]
        if isinstance(recorded_at, str):
            recorded_at = isoparse(recorded_at)
        return cls(
            player_id=int(data["player_id"]),
            rating=int(data["rating"]),
            recorded_at=recorded_at,
            round_number=data.get("round_number"),
        )


def apply_rating_history(
    players: Iterable[Player],
    entries: Iterable[RatingHistoryEntry],
    up_to_round: Optional[int] = None,
) -> List[Player]:
    """Apply the latest applicable rating entry to each player.

    Entries are ordered by ``recorded_at``; the last one wins. Entries
    effective after ``up_to_round`` are ignored.

    Args:
        players: Players to update
        entries: Rating history entries for any of those players
        up_to_round: Only apply entries effective on or before this round

    Returns:
        New list of players, in the input order
    """
    latest: Dict[int, RatingHistoryEntry] = {}
    for entry in sorted(entries, key=lambda e: e.recorded_at):
        if (
            up_to_round is not None
            and entry.round_number is not None
            and entry.round_number > up_to_round
        ):
            continue
        latest[entry.player_id] = entry

    updated = []
    for player in players:
        entry = latest.get(player.id)
        if entry is not None and entry.rating != player.rating:
            logger.debug(
                "Rating update for %s: %s -> %s", player.name, player.rating, entry.rating
            )
            player = player.with_rating(entry.rating)
        updated.append(player)
    return updated
