import math

import pytest

from pawnstandings.constants import ALL_TIEBREAKS
from pawnstandings.engine.aggregator import aggregate_scores
from pawnstandings.engine.tiebreaks import (
    TiebreakCalculator,
    cut_lowest,
    k_factor,
    performance_difference,
    performance_rating,
    rating_change,
    round_half_away,
)
from pawnstandings.exceptions import ConfigurationError, UnknownTiebreakError
from pawnstandings.models.config import TiebreakConfig

from conftest import make_game, make_ledger


def _values(ledger, tiebreak, config=None):
    calculator = TiebreakCalculator(config)
    scores = aggregate_scores(ledger, config)
    return {
        pid: calculator.calculate(tiebreak, pid, ledger, scores).value for pid in ledger.players
    }


def _score(ledger, tiebreak, player_id, config=None):
    calculator = TiebreakCalculator(config)
    scores = aggregate_scores(ledger, config)
    return calculator.calculate(tiebreak, player_id, ledger, scores)


def test_every_identifier_is_supported():
    assert set(TiebreakCalculator().supported_tiebreaks) == set(ALL_TIEBREAKS)
    assert len(ALL_TIEBREAKS) == 19


def test_validate_tiebreaks_resolves_names():
    calculator = TiebreakCalculator()
    assert calculator.validate_tiebreaks(["Buchholz", "koya_system"]) == [
        "buchholz_full",
        "koya_system",
    ]
    with pytest.raises(ConfigurationError):
        calculator.validate_tiebreaks(["buchholz_full", "bogus"])
    with pytest.raises(UnknownTiebreakError):
        calculator.calculate("bogus", 1, None, {})


# ========== Buchholz family ==========


def test_buchholz_three_player_round_robin(round_robin_three):
    assert _values(round_robin_three, "buchholz_full") == {1: 1.5, 2: 2.0, 3: 2.5}


def test_buchholz_family_four_players(round_robin_four):
    assert _values(round_robin_four, "buchholz_full") == {1: 3.5, 2: 5.0, 3: 4.0, 4: 5.5}
    assert _values(round_robin_four, "buchholz_cut1") == {1: 3.0, 2: 4.5, 3: 3.5, 4: 4.5}
    assert _values(round_robin_four, "buchholz_cut2")[1] == 2.0
    assert _values(round_robin_four, "buchholz_median") == {1: 1.0, 2: 2.0, 3: 1.0, 4: 2.0}


def test_cut_never_drops_the_last_entry():
    assert cut_lowest([1.5], 1) == [1.5]
    assert cut_lowest([1.0, 2.0], 2) == [2.0]
    assert cut_lowest([], 2) == []
    assert cut_lowest([3.0, 1.0, 2.0], 1) == [2.0, 3.0]


def test_median_with_two_entries_keeps_both(round_robin_three):
    assert _values(round_robin_three, "buchholz_median") == {1: 1.5, 2: 2.0, 3: 2.5}


@pytest.mark.parametrize(
    "policy, expected",
    [("ignore", 1.5), ("zero", 1.5), ("own_score", 3.0)],
)
def test_virtual_opponent_policies(forfeit_and_bye, policy, expected):
    config = TiebreakConfig(virtual_opponent=policy)
    assert _score(forfeit_and_bye, "buchholz_full", 3, config).value == expected


def test_zero_virtual_opponent_is_the_cut_entry(forfeit_and_bye):
    config = TiebreakConfig(virtual_opponent="zero")
    assert _score(forfeit_and_bye, "buchholz_cut1", 3, config).value == 1.5
    calculator = TiebreakCalculator(config)
    entries = calculator.opponent_entries(3, aggregate_scores(forfeit_and_bye))
    assert [e.is_virtual for e in entries] == [True, False]


def test_forfeits_can_count_as_unplayed(forfeit_and_bye):
    default = TiebreakConfig()
    unplayed = TiebreakConfig(forfeits_in_tiebreaks=False)
    assert _score(forfeit_and_bye, "buchholz_full", 2, default).value == 1.5
    assert _score(forfeit_and_bye, "buchholz_full", 2, unplayed).value == 0.0

    own = TiebreakConfig(forfeits_in_tiebreaks=False, virtual_opponent="own_score")
    assert _score(forfeit_and_bye, "buchholz_full", 1, own).value == 3.0


# ========== Result based ==========


def test_sonneborn_berger(round_robin_three, round_robin_four):
    assert _values(round_robin_three, "sonneborn_berger") == {1: 1.25, 2: 0.5, 3: 0.75}
    assert _values(round_robin_four, "sonneborn_berger") == {1: 2.5, 2: 0.5, 3: 2.5, 4: 1.0}


def test_sonneborn_berger_skips_byes(forfeit_and_bye):
    assert _score(forfeit_and_bye, "sonneborn_berger", 3).value == 0.75


def test_progressive_and_cumulative(round_robin_four, forfeit_and_bye):
    assert _values(round_robin_four, "progressive_score") == {1: 5.0, 2: 2.0, 3: 3.5, 4: 1.5}
    assert _values(round_robin_four, "cumulative_score") == {1: 5.0, 2: 2.0, 3: 3.5, 4: 1.5}

    assert _score(forfeit_and_bye, "progressive_score", 3).value == 2.5
    assert _score(forfeit_and_bye, "cumulative_score", 3).value == 1.5
    assert _score(forfeit_and_bye, "cumulative_score", 1).value == 2.5
    unplayed = TiebreakConfig(forfeits_in_tiebreaks=False)
    assert _score(forfeit_and_bye, "cumulative_score", 1, unplayed).value == 1.5


def test_direct_encounter_scalar_and_within_block(tied_pair_scenario):
    assert _score(tied_pair_scenario, "direct_encounter", 3).value == 0.5
    assert _score(tied_pair_scenario, "direct_encounter", 1).value == 0.0

    calculator = TiebreakCalculator()
    scores = aggregate_scores(tied_pair_scenario)
    assert calculator.direct_encounter_within(3, [3, 4], scores) == 0.5
    assert calculator.direct_encounter_within(4, [3, 4], scores) == 0.5
    assert calculator.direct_encounter_within(1, [1, 3], scores) == 1.0
    assert calculator.direct_encounter_within(3, [1, 3], scores) == 0.0
    assert calculator.direct_encounter_within(1, [1, 2], scores) == 0.0


def test_koya_uses_half_of_maximum_score(round_robin_four):
    assert _values(round_robin_four, "koya_system") == {1: 0.5, 2: 0.0, 3: 0.5, 4: 0.5}


def test_koya_ignores_rounds_without_results():
    ledger = make_ledger(
        [(1, "A", None), (2, "B", None), (3, "C", None), (4, "D", None)],
        [
            make_game(1, 1, 1, 2, "1-0"),
            make_game(2, 1, 3, 4, "1-0"),
            make_game(3, 2, 1, 3, "1-0"),
            make_game(4, 2, 2, 4, "1-0"),
            make_game(5, 3, 1, 4, None),
            make_game(6, 3, 2, 3, None),
        ],
    )
    assert ledger.max_round == 3
    assert ledger.last_played_round == 2
    assert TiebreakCalculator().koya_threshold(ledger) == 1.0
    assert _values(ledger, "koya_system") == {1: 2.0, 2: 0.0, 3: 0.0, 4: 0.0}


# ========== Rating based ==========


def test_average_rating_of_opponents(round_robin_four):
    assert _values(round_robin_four, "average_rating_of_opponents") == {
        1: 1850.0,
        2: 1950.0,
        3: 1900.0,
        4: 1900.0,
    }
    assert _values(round_robin_four, "aroc_cut1")[4] == 1950.0
    assert _values(round_robin_four, "aroc_cut2")[4] == 2000.0
    assert _values(round_robin_four, "aroc_cut2")[1] == 1900.0


def test_average_rating_rounds_half_up():
    ledger = make_ledger(
        [(1, "A", 1500), (2, "B", 1500), (3, "C", 1501)],
        [make_game(1, 1, 1, 2, "1-0"), make_game(2, 2, 1, 3, "1-0")],
    )
    assert _score(ledger, "average_rating_of_opponents", 1).value == 1501.0


def test_performance_rating(round_robin_four):
    tpr = _values(round_robin_four, "tournament_performance_rating")
    assert tpr[1] == 2041.0
    assert tpr[2] == 1150.0
    assert tpr[4] == 1620.0
    assert _score(round_robin_four, "tournament_performance_rating", 1).display_value == "2041"


def test_rating_methods_undefined_without_rated_opponents():
    ledger = make_ledger(
        [(1, "A", 2000), (2, "B", None)], [make_game(1, 1, 1, 2, "1/2-1/2")]
    )
    tpr = _score(ledger, "tournament_performance_rating", 1)
    aro = _score(ledger, "average_rating_of_opponents", 1)
    assert tpr.value is None and tpr.display_value == "-"
    assert aro.value is None and aro.display_value == "-"


def test_performance_difference_is_capped():
    assert performance_difference(1.0) == 800
    assert performance_difference(0.0) == -800
    assert performance_difference(0.5) == 0.0
    assert performance_difference(0.999999) == 800
    assert math.isclose(performance_difference(0.75), 400 * math.log10(3))


def test_performance_rating_helper():
    assert performance_rating([], 0.0) is None
    assert performance_rating([2000, 2000], 2.0) == 2800
    assert performance_rating([2000, 2000], 1.0) == 2000


def test_round_half_away():
    assert round_half_away(1850.5) == 1851
    assert round_half_away(1850.49) == 1850
    assert round_half_away(2.5) == 3
    assert round_half_away(-2.5) == -3
    assert round_half_away(-2.49) == -2
    assert round_half_away(0.0) == 0


def test_rating_change_k_factors():
    assert k_factor(2450, 5) == 10.0
    assert k_factor(2000, 5) == 40.0
    assert k_factor(2000, 30) == 20.0
    assert k_factor(2350, 5) == 20.0
    assert rating_change(2000, [(1800, 1.0), (1900, 0.5)]) == 4
    assert rating_change(None, [(1800, 1.0)]) is None
    assert rating_change(2000, []) is None
    assert rating_change(2000, [(2000, 0.5)]) == 0


# ========== Counts ==========


def test_counts(round_robin_four):
    assert _values(round_robin_four, "number_of_wins") == {1: 2.0, 2: 1.0, 3: 1.0, 4: 0.0}
    assert _values(round_robin_four, "number_of_games_with_black") == {
        1: 0.0,
        2: 1.0,
        3: 2.0,
        4: 3.0,
    }
    assert _values(round_robin_four, "number_of_wins_with_black") == {
        1: 0.0,
        2: 0.0,
        3: 1.0,
        4: 0.0,
    }
    assert _values(round_robin_four, "match_points") == {1: 5.0, 2: 2.0, 3: 4.0, 4: 1.0}
    assert _values(round_robin_four, "game_points") == {1: 2.5, 2: 1.0, 3: 2.0, 4: 0.5}
    assert _values(round_robin_four, "board_points") == {1: 2.5, 2: 1.0, 3: 2.0, 4: 0.5}


def test_counts_with_byes_and_forfeits(forfeit_and_bye):
    assert _score(forfeit_and_bye, "number_of_wins", 3).value == 1.0
    assert _score(forfeit_and_bye, "board_points", 3).value == 0.5
    assert _score(forfeit_and_bye, "board_points", 1).value == 0.5
    assert _score(forfeit_and_bye, "number_of_games_with_black", 2).value == 1.0
    unplayed = TiebreakConfig(forfeits_in_tiebreaks=False)
    assert _score(forfeit_and_bye, "number_of_games_with_black", 2, unplayed).value == 0.0


def test_display_values(round_robin_four):
    assert _score(round_robin_four, "buchholz_full", 1).display_value == "3.5"
    assert _score(round_robin_four, "game_points", 2).display_value == "1.0"
    assert _score(round_robin_four, "number_of_wins", 1).display_value == "2"
    assert _score(round_robin_four, "match_points", 1).display_value == "5"
    assert _score(round_robin_four, "average_rating_of_opponents", 1).display_value == "1850"


def test_methods_are_pure(round_robin_four):
    calculator = TiebreakCalculator()
    scores = aggregate_scores(round_robin_four)
    first = [calculator.calculate(tb, 1, round_robin_four, scores) for tb in ALL_TIEBREAKS]
    second = [calculator.calculate(tb, 1, round_robin_four, scores) for tb in ALL_TIEBREAKS]
    assert first == second
    assert scores == aggregate_scores(round_robin_four)
