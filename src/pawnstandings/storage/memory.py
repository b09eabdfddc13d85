"""In-memory tournament store.

Holds the current ledger snapshot and tiebreak configuration of each
tournament. Every committed mutation swaps in a new snapshot with a higher
version and then notifies listeners, so a listener that reads back always
sees the change it was told about.
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
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pawnstandings.constants import RESULT_TYPE_BYE, STATUS_WITHDRAWN
from pawnstandings.exceptions import DataIntegrityError, TournamentNotFoundError
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.game import Game, parse_result
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import Player
from pawnstandings.type_hints import Pairing
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)

# Change kinds
CHANGE_PLAYER_ADDED = "player_added"
CHANGE_PLAYER_STATUS = "player_status_changed"
CHANGE_ROUND_ADDED = "round_added"
CHANGE_RESULT = "game_result_updated"
CHANGE_CONFIG = "config_changed"


@dataclass(frozen=True)
class LedgerChange:
    """Notification sent to listeners after a mutation commits."""

    tournament_id: int
    version: int
    kind: str
    affected_players: Tuple[int, ...] = field(default_factory=tuple)


Listener = Callable[[LedgerChange], None]


class InMemoryTournamentStore:
    """Tournament ledgers and configurations kept in memory.

    Implements the read side the standings service needs (``load_ledger``,
    ``load_config``, ``get_version``) plus the mutations a tournament
    director performs.
    """

    def __init__(self) -> None:
        self._ledgers: Dict[int, GameLedger] = {}
        self._configs: Dict[int, TiebreakConfig] = {}
        # Config changes bump this separately from the ledger version.
        self._config_versions: Dict[int, int] = {}
        self._listeners: List[Listener] = []
        self._next_game_id = 1

    # ========== Listeners ==========

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, tournament_id: int, kind: str, affected: Iterable[int] = ()) -> None:
        change = LedgerChange(
            tournament_id=tournament_id,
            version=self.version(tournament_id),
            kind=kind,
            affected_players=tuple(affected),
        )
        logger.debug("Tournament %s changed: %s (version %s)", tournament_id, kind, change.version)
        for listener in list(self._listeners):
            listener(change)

    # ========== StandingsSource ==========

    async def load_ledger(self, tournament_id: int) -> GameLedger:
        return self.ledger(tournament_id)

    async def load_config(self, tournament_id: int) -> TiebreakConfig:
        return self.config(tournament_id)

    async def get_version(self, tournament_id: int) -> int:
        return self.version(tournament_id)

    # ========== Synchronous reads ==========

    def ledger(self, tournament_id: int) -> GameLedger:
        try:
            return self._ledgers[tournament_id]
        except KeyError:
            raise TournamentNotFoundError(f"Tournament {tournament_id} not found") from None

    def config(self, tournament_id: int) -> TiebreakConfig:
        self.ledger(tournament_id)
        return self._configs[tournament_id]

    def version(self, tournament_id: int) -> int:
        """Combined version of ledger and configuration."""
        return self.ledger(tournament_id).version + self._config_versions[tournament_id]

    @property
    def tournament_ids(self) -> List[int]:
        return sorted(self._ledgers)

    # ========== Mutations ==========

    def register_tournament(
        self,
        tournament_id: int,
        players: Iterable[Player] = (),
        config: Optional[TiebreakConfig] = None,
        games: Iterable[Game] = (),
    ) -> GameLedger:
        if tournament_id in self._ledgers:
            raise DataIntegrityError(f"Tournament {tournament_id} already registered")
        ledger = GameLedger.create(tournament_id, players, games)
        ledger.validate()
        self._ledgers[tournament_id] = ledger
        self._configs[tournament_id] = config or TiebreakConfig(tournament_id=tournament_id)
        self._config_versions[tournament_id] = 0
        self._next_game_id = max([self._next_game_id] + [g.id + 1 for g in ledger.games])
        logger.info("Registered tournament %s with %d players", tournament_id, len(ledger.players))
        return ledger

    def _commit(self, ledger: GameLedger, kind: str, affected: Iterable[int]) -> GameLedger:
        self._ledgers[ledger.tournament_id] = ledger
        self._notify(ledger.tournament_id, kind, affected)
        return ledger

    def add_player(self, tournament_id: int, player: Player) -> GameLedger:
        ledger = self.ledger(tournament_id)
        if player.id in ledger.players:
            raise DataIntegrityError(f"Player {player.id} already registered")
        return self._commit(ledger.with_player(player), CHANGE_PLAYER_ADDED, [player.id])

    def set_player_status(self, tournament_id: int, player_id: int, status: str) -> GameLedger:
        ledger = self.ledger(tournament_id)
        player = ledger.player(player_id)
        if status == STATUS_WITHDRAWN:
            updated = player.withdraw()
        else:
            updated = Player.from_dict({**player.to_dict(), "status": status})
        return self._commit(ledger.with_player(updated), CHANGE_PLAYER_STATUS, [player_id])

    def add_round(
        self,
        tournament_id: int,
        round_number: int,
        pairings: Iterable[Pairing],
        bye_player_id: Optional[int] = None,
        bye_result: str = "1-0",
    ) -> List[Game]:
        """Create unfinished games for a round's pairings.

        Args:
            pairings: (white_id, black_id) tuples
            bye_player_id: Player receiving a bye this round, if any
            bye_result: Bye value, ``1-0`` full, ``1/2-1/2`` half, ``0-1`` zero

        Returns:
            The games created
        """
        ledger = self.ledger(tournament_id)
        games = []
        for white_id, black_id in pairings:
            games.append(
                Game(
                    id=self._take_game_id(),
                    tournament_id=tournament_id,
                    round_number=round_number,
                    white_player_id=white_id,
                    black_player_id=black_id,
                )
            )
        if bye_player_id is not None:
            bye = Game(
                id=self._take_game_id(),
                tournament_id=tournament_id,
                round_number=round_number,
                white_player_id=bye_player_id,
                black_player_id=None,
                result_type=RESULT_TYPE_BYE,
            )
            games.append(bye.with_result(parse_result(bye_result)))

        new_ledger = ledger.add_games(games)
        new_ledger.validate()
        affected = sorted(
            {
                pid
                for g in games
                for pid in (g.white_player_id, g.black_player_id)
                if pid is not None
            }
        )
        self._commit(new_ledger, CHANGE_ROUND_ADDED, affected)
        return games

    def _take_game_id(self) -> int:
        game_id = self._next_game_id
        self._next_game_id += 1
        return game_id

    def submit_result(
        self,
        tournament_id: int,
        game_id: int,
        result: Optional[str],
        result_type: Optional[str] = None,
    ) -> GameLedger:
        ledger = self.ledger(tournament_id).submit_result(game_id, result, result_type)
        return self._commit(ledger, CHANGE_RESULT, self._players_of(ledger, game_id))

    def correct_result(
        self,
        tournament_id: int,
        game_id: int,
        result: Optional[str],
        result_type: Optional[str] = None,
    ) -> GameLedger:
        ledger = self.ledger(tournament_id).correct_result(game_id, result, result_type)
        return self._commit(ledger, CHANGE_RESULT, self._players_of(ledger, game_id))

    def _players_of(self, ledger: GameLedger, game_id: int) -> List[int]:
        game = ledger.game(game_id)
        return [pid for pid in (game.white_player_id, game.black_player_id) if pid is not None]

    def set_config(self, tournament_id: int, config: TiebreakConfig) -> None:
        """Replace the tiebreak configuration, validated up front."""
        self.ledger(tournament_id)
        config.validate()
        self._configs[tournament_id] = config
        self._config_versions[tournament_id] += 1
        self._notify(tournament_id, CHANGE_CONFIG)
