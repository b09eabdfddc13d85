"""Load and save tournament files (JSON)."""

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

import json
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from pawnstandings.exceptions import (
    FileLoadException,
    FileSaveException,
    PawnStandingsException,
)
from pawnstandings.models.config import TiebreakConfig
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import (
    Player,
    RatingHistoryEntry,
    apply_rating_history,
)
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)

PathLike = Union[str, Path]


def load_tournament_file(
    path: PathLike, up_to_round: Optional[int] = None
) -> Tuple[GameLedger, TiebreakConfig]:
    """Load a ledger and its tiebreak configuration from a JSON file.

    The file holds ``tournament_id``, ``players``, ``games`` and optionally
    ``tiebreak_config`` and ``rating_history``. Rating history entries are
    applied to the players before the ledger is built.

    Args:
        path: File to read
        up_to_round: Ignore rating history effective after this round

    Raises:
        FileLoadException: If the file cannot be read or does not describe a
            valid tournament
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FileLoadException(f"Cannot read tournament file {path}: {e}") from e

    if not isinstance(data, dict) or "tournament_id" not in data:
        raise FileLoadException(f"{path} is not a tournament file (no tournament_id)")

    try:
        history = [RatingHistoryEntry.from_dict(e) for e in data.get("rating_history", [])]
        if history:
            data = dict(data)
            players = [Player.from_dict(p) for p in data.get("players", [])]
            data["players"] = [
                p.to_dict() for p in apply_rating_history(players, history, up_to_round)
            ]
        ledger = GameLedger.from_dict(data)
        config_data = dict(data.get("tiebreak_config") or {})
        config_data.setdefault("tournament_id", ledger.tournament_id)
        config = TiebreakConfig.from_dict(config_data)
    except (KeyError, TypeError, ValueError, PawnStandingsException) as e:
        raise FileLoadException(f"Invalid tournament file {path}: {e}") from e

    logger.info(
        "Loaded tournament %s from %s: %d players, %d games",
        ledger.tournament_id,
        path,
        len(ledger.players),
        len(ledger.games),
    )
    return ledger, config


def save_tournament_file(
    path: PathLike,
    ledger: GameLedger,
    config: Optional[TiebreakConfig] = None,
    rating_history: Iterable[RatingHistoryEntry] = (),
) -> None:
    """Write a ledger and its configuration to a JSON file.

    Raises:
        FileSaveException: If the file cannot be written
    """
    path = Path(path)
    data = ledger.to_dict()
    if config is not None:
        data["tiebreak_config"] = config.to_dict()
    history = [entry.to_dict() for entry in rating_history]
    if history:
        data["rating_history"] = history

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=4)
    except OSError as e:
        raise FileSaveException(f"Cannot write tournament file {path}: {e}") from e
    logger.info("Saved tournament %s to %s", ledger.tournament_id, path)
