"""The game ledger: immutable record of a tournament's players and games."""

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

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pawnstandings.exceptions import (
    DataIntegrityError,
    GameNotFoundError,
    PlayerNotFoundError,
    ResultOverwriteError,
    UnknownPlayerError,
)
from pawnstandings.models.game import Game, parse_result
from pawnstandings.models.player import Player
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class GameLedger:
    """Snapshot of a tournament's players and games.

    The ledger is the source of truth for every derived statistic. It is never
    modified in place: each mutation returns a new ledger whose ``version`` is
    one higher, which is what the standings cache keys on.

    Attributes:
        tournament_id: Tournament the ledger belongs to
        players: Registered players by id
        games: All games, in creation order
        version: Monotonic counter bumped by every committed mutation
    """

    tournament_id: int
    players: Mapping[int, Player] = field(default_factory=dict)
    games: Tuple[Game, ...] = ()
    version: int = 0

    @classmethod
    def create(
        cls,
        tournament_id: int,
        players: Iterable[Player],
        games: Iterable[Game] = (),
        version: int = 0,
    ) -> "GameLedger":
        """Build a ledger from plain iterables."""
        player_map: Dict[int, Player] = {}
        for player in players:
            if player.id in player_map:
                raise DataIntegrityError(f"Duplicate player id {player.id}")
            player_map[player.id] = player
        ledger = cls(
            tournament_id=tournament_id,
            players=player_map,
            games=tuple(games),
            version=version,
        )
        ledger._check_game_ids()
        return ledger

    # ========== Queries ==========

    def player(self, player_id: int) -> Player:
        """Return a registered player.

        Raises:
            PlayerNotFoundError: If the id is not registered
        """
        try:
            return self.players[player_id]
        except KeyError:
            raise PlayerNotFoundError(
                f"Player {player_id} is not registered in tournament {self.tournament_id}"
            ) from None

    def game(self, game_id: int) -> Game:
        for game in self.games:
            if game.id == game_id:
                return game
        raise GameNotFoundError(
            f"Game {game_id} not found in tournament {self.tournament_id}"
        )

    def games_for(self, player_id: int) -> List[Game]:
        """All games involving a player, ordered by round then game id."""
        return sorted(
            (g for g in self.games if g.involves(player_id)),
            key=lambda g: (g.round_number, g.id),
        )

    def finished_games(self) -> List[Game]:
        return [g for g in self.games if g.is_finished]

    def games_between(self, player_a: int, player_b: int) -> List[Game]:
        """Mutual games between two players, ordered by round."""
        return [
            g
            for g in self.games_for(player_a)
            if g.black_player_id is not None and g.involves(player_b)
        ]

    @property
    def max_round(self) -> int:
        return max((g.round_number for g in self.games), default=0)

    @property
    def last_played_round(self) -> int:
        """Highest round number with at least one result."""
        return max((g.round_number for g in self.games if g.is_finished), default=0)

    @property
    def completed_rounds(self) -> int:
        """Highest round number whose games all have results."""
        completed = 0
        for round_number in sorted({g.round_number for g in self.games}):
            if all(g.is_finished for g in self.games if g.round_number == round_number):
                completed = round_number
            else:
                break
        return completed

    # ========== Validation ==========

    def validate(self) -> None:
        """Check referential integrity of every game.

        Raises:
            DataIntegrityError: If a game belongs to another tournament or
                references a player that is not registered
        """
        for game in self.games:
            if game.tournament_id != self.tournament_id:
                raise DataIntegrityError(
                    f"Game {game.id} belongs to tournament {game.tournament_id}, "
                    f"not {self.tournament_id}"
                )
            for player_id in (game.white_player_id, game.black_player_id):
                if player_id is not None and player_id not in self.players:
                    raise UnknownPlayerError(player_id, game.id)

    def _check_game_ids(self) -> None:
        seen = set()
        for game in self.games:
            if game.id in seen:
                raise DataIntegrityError(f"Duplicate game id {game.id}")
            seen.add(game.id)

    # ========== Mutations (return a new ledger) ==========

    def with_player(self, player: Player) -> "GameLedger":
        """Add or replace a player."""
        players = dict(self.players)
        players[player.id] = player
        return replace(self, players=players, version=self.version + 1)

    def add_games(self, games: Iterable[Game]) -> "GameLedger":
        """Append games, e.g. a round's pairings converted to games."""
        new_games = tuple(games)
        for game in new_games:
            if game.tournament_id != self.tournament_id:
                raise DataIntegrityError(
                    f"Game {game.id} belongs to tournament {game.tournament_id}"
                )
        ledger = replace(self, games=self.games + new_games, version=self.version + 1)
        ledger._check_game_ids()
        return ledger

    def submit_result(
        self, game_id: int, result: Optional[str], result_type: Optional[str] = None
    ) -> "GameLedger":
        """Record the result of a game that has no terminal result yet.

        Raises:
            ResultOverwriteError: If the game already has a result; use
                :meth:`correct_result` to change it
        """
        game = self.game(game_id)
        if game.is_finished:
            raise ResultOverwriteError(
                f"Game {game_id} already has result {game.result!r}; "
                "use correct_result to change it"
            )
        return self._replace_game(game.with_result(parse_result(result), result_type))

    def correct_result(
        self, game_id: int, result: Optional[str], result_type: Optional[str] = None
    ) -> "GameLedger":
        """Explicit correction path: overwrite (or clear) any result."""
        game = self.game(game_id)
        corrected = game.with_result(parse_result(result), result_type)
        logger.info(
            "Correcting game %s: %s -> %s", game_id, game.result, corrected.result
        )
        return self._replace_game(corrected)

    def _replace_game(self, new_game: Game) -> "GameLedger":
        games = tuple(new_game if g.id == new_game.id else g for g in self.games)
        return replace(self, games=games, version=self.version + 1)

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "version": self.version,
            "players": [p.to_dict() for p in self.players.values()],
            "games": [g.to_dict() for g in self.games],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameLedger":
        tournament_id = int(data["tournament_id"])
        games = []
        for game_data in data.get("games", []):
            game_data = dict(game_data)
            game_data.setdefault("tournament_id", tournament_id)
            games.append(Game.from_dict(game_data))
        return cls.create(
            tournament_id=tournament_id,
            players=[Player.from_dict(p) for p in data.get("players", [])],
            games=games,
            version=int(data.get("version", 0)),
        )
