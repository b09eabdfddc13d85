import pytest

from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.game import Game, parse_result
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import Player


def make_game(game_id, round_number, white, black, result, result_type=None, tournament_id=1):
    if result_type is None:
        result_type = "bye" if black is None else "normal"
    return Game(
        id=game_id,
        tournament_id=tournament_id,
        round_number=round_number,
        white_player_id=white,
        black_player_id=black,
        result=parse_result(result),
        result_type=result_type,
    )


def make_ledger(players, games, tournament_id=1):
    return GameLedger.create(
        tournament_id,
        [p if isinstance(p, Player) else Player(id=p[0], name=p[1], rating=p[2]) for p in players],
        games,
    )


@pytest.fixture
def round_robin_three():
    """1 beats 2, 1 draws 3, 2 beats 3. Points: 1.5 / 1.0 / 0.5."""
    return make_ledger(
        [(1, "Alice", 2000), (2, "Bob", 1800), (3, "Carol", 1600)],
        [
            make_game(1, 1, 1, 2, "1-0"),
            make_game(2, 2, 1, 3, "1/2-1/2"),
            make_game(3, 3, 2, 3, "1-0"),
        ],
    )


@pytest.fixture
def round_robin_four():
    """Full 3-round round robin. Points: 2.5 / 1.0 / 2.0 / 0.5; player 4 unrated."""
    return make_ledger(
        [(1, "Alice", 2000), (2, "Bob", 1800), (3, "Carol", 1900), (4, "Dave", None)],
        [
            make_game(1, 1, 1, 2, "1-0"),
            make_game(2, 1, 3, 4, "1/2-1/2"),
            make_game(3, 2, 1, 3, "1/2-1/2"),
            make_game(4, 2, 2, 4, "1-0"),
            make_game(5, 3, 1, 4, "1-0"),
            make_game(6, 3, 2, 3, "0-1"),
        ],
    )


@pytest.fixture
def tied_pair_scenario():
    """A=1.5 (win + half-point bye), B=1, C=0.5, D=0.5; C and D drew."""
    return make_ledger(
        [(1, "A", 2100), (2, "B", 2000), (3, "C", 1900), (4, "D", 1800)],
        [
            make_game(1, 1, 1, 3, "1-0"),
            make_game(2, 1, 2, 4, "1-0"),
            make_game(3, 2, 3, 4, "1/2-1/2"),
            make_game(4, 2, 1, None, "1/2-1/2"),
        ],
    )


@pytest.fixture
def forfeit_and_bye():
    """Round 1: 1 beats 2 by forfeit, 3 has a full-point bye. Round 2: 1 draws 3."""
    return make_ledger(
        [(1, "Alice", 2000), (2, "Bob", 1800), (3, "Carol", 1600)],
        [
            make_game(1, 1, 1, 2, "1-0", "forfeit"),
            make_game(2, 1, 3, None, "1-0"),
            make_game(3, 2, 1, 3, "1/2-1/2"),
        ],
    )


@pytest.fixture
def default_config():
    return TiebreakConfig(tournament_id=1)
