import json

import pytest

from pawnstandings.cli import create_parser, main
from pawnstandings.storage import save_tournament_file

from conftest import make_game, make_ledger


@pytest.fixture
def tournament_file(tmp_path, round_robin_four):
    path = tmp_path / "tournament.json"
    save_tournament_file(path, round_robin_four)
    return str(path)


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        create_parser().parse_args([])


def test_standings_table(tournament_file, capsys):
    assert main(["standings", tournament_file]) == 0
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert "Buch" in lines[0] and "Pts" in lines[0]
    assert "Alice" in lines[2]
    assert "2041" in lines[2]


def test_standings_json_with_override(tournament_file, capsys):
    assert main(["standings", tournament_file, "--json", "-t", "sonneborn_berger"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [row["player"]["id"] for row in data["standings"]] == [1, 3, 2, 4]
    assert data["tiebreak_config"]["tiebreaks"] == ["sonneborn_berger"]
    assert data["standings"][0]["tiebreak_scores"][0]["value"] == 2.5


def test_breakdown(tournament_file, capsys):
    assert main(["breakdown", tournament_file, "--player", "1", "--tiebreak", "buchholz_full"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Buchholz: 3.5")
    assert "Opponents:" in out


def test_breakdown_json(tournament_file, capsys):
    args = ["breakdown", tournament_file, "--player", "3", "--tiebreak", "koya_system", "--json"]
    assert main(args) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["value"] == 0.5


def test_cross_table(tournament_file, capsys):
    assert main(["crosstable", tournament_file]) == 0
    out = capsys.readouterr().out
    assert "Pts" in out.splitlines()[0]
    assert len(out.splitlines()) == 5


def test_list_tiebreaks(capsys):
    assert main(["tiebreaks"]) == 0
    out = capsys.readouterr().out
    assert len(out.splitlines()) == 19
    assert "sonneborn_berger" in out


def test_unknown_tiebreak_is_a_usage_error(tournament_file, capsys):
    assert main(["standings", tournament_file, "-t", "coin_flip"]) == 2
    assert "error" in capsys.readouterr().err


def test_unknown_player_is_a_usage_error(tournament_file):
    args = ["breakdown", tournament_file, "--player", "42", "--tiebreak", "buchholz_full"]
    assert main(args) == 2


def test_unreadable_file_is_an_error(tmp_path, capsys):
    assert main(["standings", str(tmp_path / "missing.json")]) == 1
    assert "error" in capsys.readouterr().err


def test_inconsistent_ledger_is_an_error(tmp_path):
    ledger = make_ledger(
        [(1, "A", None), (2, "B", None)],
        [make_game(1, 1, 1, 2, "1-0", tournament_id=5)],
    )
    path = tmp_path / "foreign.json"
    save_tournament_file(path, ledger)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["games"][0]["tournament_id"] == 5
    assert main(["standings", str(path)]) == 1
