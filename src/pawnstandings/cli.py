"""Command-line interface for standings calculation.

This module provides the ``pawn-standings`` command: standings tables,
tiebreak breakdowns and cross tables for tournament files.
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

import argparse
import json
import logging
import sys
from typing import List, Optional

from pawnstandings.constants import ALL_TIEBREAKS, TIEBREAK_NAMES, TIEBREAK_SHORT_NAMES
from pawnstandings.engine.standings import (
    compute_standings,
    generate_cross_table,
    get_tiebreak_breakdown,
)
from pawnstandings.exceptions import ConfigurationError, NotFoundError, PawnStandingsException
from pawnstandings.models.standings import (
    CrossTable,
    StandingsCalculationResult,
    TiebreakBreakdown,
)
from pawnstandings.storage.files import load_tournament_file
from pawnstandings.utils import format_points, format_rating, setup_logger

logger = setup_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def print_standings(result: StandingsCalculationResult) -> None:
    """Print a standings table to the console."""
    order = result.tiebreak_config.effective_tiebreaks
    headers = ["#", "Name", "Rtg", "Pts"] + [TIEBREAK_SHORT_NAMES[tb] for tb in order]
    headers += ["Perf", "+/-"]

    rows = []
    for standing in result.standings:
        change = standing.rating_change
        rows.append(
            [
                str(standing.rank),
                standing.player.name,
                format_rating(standing.player.rating),
                format_points(standing.points),
            ]
            + [score.display_value for score in standing.tiebreak_scores]
            + [
                format_rating(standing.performance_rating),
                f"{change:+d}" if change is not None else "-",
            ]
        )

    widths = [max(len(row[i]) for row in [headers] + rows) for i in range(len(headers))]
    line = "  ".join(
        h.ljust(w) if i == 1 else h.rjust(w) for i, (h, w) in enumerate(zip(headers, widths))
    )
    print(line)
    print("-" * len(line))
    for row in rows:
        print(
            "  ".join(
                cell.ljust(w) if i == 1 else cell.rjust(w)
                for i, (cell, w) in enumerate(zip(row, widths))
            )
        )


def print_breakdown(breakdown: TiebreakBreakdown) -> None:
    """Print a tiebreak breakdown to the console."""
    print(f"{TIEBREAK_NAMES[breakdown.tiebreak_type]}: {breakdown.display_value}")
    print(breakdown.explanation)
    print()
    for step in breakdown.calculation_details:
        result = "" if step.intermediate_result is None else f" = {step.intermediate_result:g}"
        print(f"  {step.step_number}. {step.description}: {step.calculation}{result}")
    if breakdown.opponents_involved:
        print("\nOpponents:")
        for opponent in breakdown.opponents_involved:
            print(
                f"  {opponent.opponent_name} ({format_rating(opponent.opponent_rating)}) "
                f"{opponent.game_result}: {opponent.explanation}"
            )


def print_cross_table(table: CrossTable) -> None:
    """Print a cross table with one column per player."""
    name_width = max((len(p.name) for p in table.players), default=4)
    header = " " * (name_width + 6) + " ".join(f"{p.id:>4}" for p in table.players)
    print(header + "   Pts")
    for row in table.rows:
        cells = {}
        for entry in row.results:
            if entry.result is None:
                continue
            mark = {1.0: "1", 0.5: "½", 0.0: "0"}.get(entry.result, "?")
            cells[entry.opponent_id] = cells.get(entry.opponent_id, "") + mark
        line = " ".join(
            f"{'X' if p.id == row.player.id else cells.get(p.id, '.'):>4}" for p in table.players
        )
        print(
            f"{row.player.id:>4}  {row.player.name:<{name_width}}{line}"
            f"   {format_points(row.total_points)}"
        )


def run_standings(args: argparse.Namespace) -> int:
    ledger, config = load_tournament_file(args.file)
    if args.tiebreak:
        config.tiebreaks = list(args.tiebreak)
    result = compute_standings(ledger.tournament_id, ledger, config)
    if args.json:
        _print_json(result.to_dict())
    else:
        print_standings(result)
    return EXIT_OK


def run_breakdown(args: argparse.Namespace) -> int:
    ledger, config = load_tournament_file(args.file)
    breakdown = get_tiebreak_breakdown(
        ledger.tournament_id, args.player, args.tiebreak, ledger, config
    )
    if args.json:
        _print_json(breakdown.to_dict())
    else:
        print_breakdown(breakdown)
    return EXIT_OK


def run_cross_table(args: argparse.Namespace) -> int:
    ledger, config = load_tournament_file(args.file)
    table = generate_cross_table(ledger.tournament_id, ledger, config)
    if args.json:
        _print_json(table.to_dict())
    else:
        print_cross_table(table)
    return EXIT_OK


def run_list_tiebreaks(args: argparse.Namespace) -> int:
    for tiebreak in ALL_TIEBREAKS:
        print(f"{tiebreak:<32} {TIEBREAK_SHORT_NAMES[tiebreak]:<6} {TIEBREAK_NAMES[tiebreak]}")
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="pawn-standings",
        description="Compute chess tournament standings and tiebreaks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Standings with the tiebreak order stored in the file
  pawn-standings standings tournament.json

  # Override the tiebreak order
  pawn-standings standings tournament.json -t buchholz_cut1 -t sonneborn_berger

  # How was a player's Buchholz computed?
  pawn-standings breakdown tournament.json --player 3 --tiebreak buchholz_full
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    standings = subparsers.add_parser("standings", help="Print the standings table")
    standings.add_argument("file", help="Tournament JSON file")
    standings.add_argument(
        "-t",
        "--tiebreak",
        action="append",
        help="Tiebreak identifier, repeat in precedence order (default: from file)",
    )
    standings.add_argument("--json", action="store_true", help="Print JSON output")
    standings.set_defaults(handler=run_standings)

    breakdown = subparsers.add_parser("breakdown", help="Explain one tiebreak value")
    breakdown.add_argument("file", help="Tournament JSON file")
    breakdown.add_argument("--player", type=int, required=True, help="Player id")
    breakdown.add_argument("--tiebreak", required=True, help="Tiebreak identifier")
    breakdown.add_argument("--json", action="store_true", help="Print JSON output")
    breakdown.set_defaults(handler=run_breakdown)

    crosstable = subparsers.add_parser("crosstable", help="Print the cross table")
    crosstable.add_argument("file", help="Tournament JSON file")
    crosstable.add_argument("--json", action="store_true", help="Print JSON output")
    crosstable.set_defaults(handler=run_cross_table)

    tiebreaks = subparsers.add_parser("tiebreaks", help="List supported tiebreaks")
    tiebreaks.set_defaults(handler=run_list_tiebreaks)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code: 0 on success, 1 on errors, 2 on bad identifiers or ids
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("pawnstandings").setLevel(logging.DEBUG)

    try:
        return args.handler(args)
    except (ConfigurationError, NotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except PawnStandingsException as e:
        logger.error("Standings calculation failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
