import pytest

from pawnstandings.engine.standings import (
    compute_standings,
    generate_cross_table,
    get_tiebreak_breakdown,
)
from pawnstandings.exceptions import (
    ConfigurationError,
    DataIntegrityError,
    PlayerNotFoundError,
    TiebreakNotFoundError,
    UnknownPlayerError,
)
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import Player

from conftest import make_game, make_ledger


def _order(result):
    return [row.player_id for row in result.standings]


def _ranks(result):
    return {row.player_id: row.rank for row in result.standings}


def test_four_player_round_robin(round_robin_four):
    result = compute_standings(1, round_robin_four)

    assert _order(result) == [1, 3, 2, 4]
    assert [row.rank for row in result.standings] == [1, 2, 3, 4]
    assert [row.points for row in result.standings] == [2.5, 2.0, 1.0, 0.5]
    assert result.ledger_version == round_robin_four.version
    assert result.tiebreak_config.effective_tiebreaks == [
        "buchholz_full",
        "buchholz_cut1",
        "number_of_wins",
        "direct_encounter",
    ]

    leader = result.standings[0]
    assert (leader.wins, leader.draws, leader.losses) == (2, 1, 0)
    assert [s.tiebreak_type for s in leader.tiebreak_scores] == [
        "buchholz_full",
        "buchholz_cut1",
        "number_of_wins",
        "direct_encounter",
    ]
    assert leader.tiebreak_value("buchholz_full") == 3.5
    assert leader.performance_rating == 2041
    assert leader.rating_change == 4

    unrated = result.standings[-1]
    assert unrated.rating_change is None
    assert unrated.performance_rating == 1620


def test_direct_encounter_breaks_the_tie_before_buchholz(tied_pair_scenario):
    config = TiebreakConfig(tiebreaks=["direct_encounter", "buchholz_full"])
    result = compute_standings(1, tied_pair_scenario, config)
    assert _order(result) == [1, 2, 3, 4]
    assert _ranks(result) == {1: 1, 2: 2, 3: 3, 4: 4}


def test_unresolved_tie_shares_rank(tied_pair_scenario):
    config = TiebreakConfig(tiebreaks=["direct_encounter"])
    result = compute_standings(1, tied_pair_scenario, config)
    assert _order(result) == [1, 2, 3, 4]
    assert _ranks(result) == {1: 1, 2: 2, 3: 3, 4: 3}


def test_direct_encounter_cycle_shares_the_rank():
    ledger = make_ledger(
        [(1, "A", None), (2, "B", None), (3, "C", None)],
        [
            make_game(1, 1, 1, 2, "1-0"),
            make_game(2, 2, 2, 3, "1-0"),
            make_game(3, 3, 3, 1, "1-0"),
        ],
    )
    result = compute_standings(1, ledger, TiebreakConfig(tiebreaks=["direct_encounter"]))
    assert _order(result) == [1, 2, 3]
    assert _ranks(result) == {1: 1, 2: 1, 3: 1}


def test_two_round_scenario_as_written():
    """A beats B, C draws D; then A draws C, B beats D."""
    ledger = make_ledger(
        [(1, "A", None), (2, "B", None), (3, "C", None), (4, "D", None)],
        [
            make_game(1, 1, 1, 2, "1-0"),
            make_game(2, 1, 3, 4, "1/2-1/2"),
            make_game(3, 2, 1, 3, "1/2-1/2"),
            make_game(4, 2, 2, 4, "1-0"),
        ],
    )
    config = TiebreakConfig(tiebreaks=["direct_encounter", "buchholz_full"])
    result = compute_standings(1, ledger, config)

    assert {row.player_id: row.points for row in result.standings} == {
        1: 1.5,
        2: 1.0,
        3: 1.0,
        4: 0.5,
    }
    # B and C never met and have equal Buchholz
    assert _order(result) == [1, 2, 3, 4]
    assert _ranks(result) == {1: 1, 2: 2, 3: 2, 4: 4}


def test_no_tiebreaks_ranks_by_points_alone(round_robin_three):
    config = TiebreakConfig(use_fide_defaults=False)
    result = compute_standings(1, round_robin_three, config)
    assert _order(result) == [1, 2, 3]
    assert result.standings[0].tiebreak_scores == []


def test_config_is_validated_before_the_ledger():
    broken = GameLedger(
        tournament_id=1,
        players={1: Player(id=1, name="A")},
        games=(make_game(1, 1, 1, 99, "1-0"),),
    )
    with pytest.raises(ConfigurationError):
        compute_standings(1, broken, TiebreakConfig(tiebreaks=["coin_flip"]))
    with pytest.raises(UnknownPlayerError):
        compute_standings(1, broken)


def test_ledger_from_another_tournament_is_rejected(round_robin_three):
    with pytest.raises(DataIntegrityError):
        compute_standings(2, round_robin_three)


def test_withdrawn_players_keep_their_row():
    ledger = make_ledger(
        [
            Player(id=1, name="A", rating=1900),
            Player(id=2, name="B", rating=1800, status="withdrawn"),
            Player(id=3, name="C", rating=1700),
        ],
        [make_game(1, 1, 1, 2, "0-1"), make_game(2, 2, 1, 3, "1-0")],
    )
    result = compute_standings(1, ledger)
    assert sorted(_order(result)) == [1, 2, 3]
    withdrawn = next(row for row in result.standings if row.player_id == 2)
    assert withdrawn.points == 1.0
    assert withdrawn.player.status == "withdrawn"


def test_unfinished_games_leave_standings_unchanged(round_robin_three):
    pending = round_robin_three.add_games([make_game(10, 4, 3, 1, None)])
    before = compute_standings(1, round_robin_three)
    after = compute_standings(1, pending)
    assert [r.to_dict() for r in before.standings] == [r.to_dict() for r in after.standings]


def test_standings_are_deterministic(round_robin_four):
    first = compute_standings(1, round_robin_four)
    second = compute_standings(1, round_robin_four)
    assert [r.to_dict() for r in first.standings] == [r.to_dict() for r in second.standings]


def test_forfeit_switches_flow_through(forfeit_and_bye):
    result = compute_standings(1, forfeit_and_bye, TiebreakConfig(score_forfeits=False))
    assert {row.player_id: row.points for row in result.standings} == {1: 0.5, 2: 0.0, 3: 1.5}


def test_breakdown_matches_standings_value(round_robin_four):
    result = compute_standings(1, round_robin_four)
    leader = result.standings[0]
    breakdown = get_tiebreak_breakdown(1, leader.player_id, "buchholz_full", round_robin_four)
    assert breakdown.value == leader.tiebreak_value("buchholz_full")
    assert breakdown.final_value == breakdown.value


def test_breakdown_errors(round_robin_four):
    with pytest.raises(PlayerNotFoundError):
        get_tiebreak_breakdown(1, 42, "buchholz_full", round_robin_four)
    with pytest.raises(TiebreakNotFoundError):
        get_tiebreak_breakdown(1, 1, "coin_flip", round_robin_four)


def test_cross_table(tied_pair_scenario):
    table = generate_cross_table(1, tied_pair_scenario)

    assert [row.player.id for row in table.rows] == [1, 2, 3, 4]
    first = table.rows[0]
    assert first.total_points == 1.5
    assert [(e.opponent_id, e.result) for e in first.results] == [
        (2, None),
        (3, 1.0),
        (4, None),
    ]
    assert first.results[1].color == "white"
    assert first.results[1].round == 1

    third = table.rows[2]
    assert [(e.opponent_id, e.result) for e in third.results] == [
        (1, 0.0),
        (2, None),
        (4, 0.5),
    ]


def test_cross_table_lists_repeat_games():
    ledger = make_ledger(
        [(1, "A", None), (2, "B", None)],
        [make_game(1, 1, 1, 2, "1-0"), make_game(2, 2, 2, 1, "1/2-1/2")],
    )
    table = generate_cross_table(1, ledger)
    assert [(e.round, e.result, e.color) for e in table.rows[0].results] == [
        (1, 1.0, "white"),
        (2, 0.5, "black"),
    ]
