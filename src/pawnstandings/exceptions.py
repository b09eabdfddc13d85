"""Exceptions for use in Pawn Standings"""

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


# ========== Base Application Exception ==========


class PawnStandingsException(Exception):
    """Base exception for all Pawn Standings errors.

    All custom exceptions in the library inherit from this class.
    This enables catching all library-specific errors with a single except clause.
    """

    pass


# ========== Data Integrity Exceptions ==========


class DataIntegrityError(PawnStandingsException):
    """Raised when the game ledger is internally inconsistent.

    Never retried; surfaced to the caller immediately.
    """

    pass


class UnknownPlayerError(DataIntegrityError):
    """Raised when a game references a player id that is not registered."""

    def __init__(self, player_id: int, game_id: int) -> None:
        self.player_id = player_id
        self.game_id = game_id
        super().__init__(f"Game {game_id} references unknown player {player_id}")


class InconsistentScoreError(DataIntegrityError):
    """Raised when aggregated point totals do not match the ledger."""

    pass


# ========== Configuration Exceptions ==========


class ConfigurationError(PawnStandingsException):
    """Raised when a tiebreak configuration is invalid.

    Detected before any calculation starts.
    """

    pass


class UnknownTiebreakError(ConfigurationError):
    """Raised when a tiebreak identifier is not recognised."""

    def __init__(self, tiebreak: str) -> None:
        self.tiebreak = tiebreak
        super().__init__(f"Unknown tiebreak identifier: {tiebreak!r}")


# ========== Lookup Exceptions ==========


class NotFoundError(PawnStandingsException):
    """Base exception for failed lookups."""

    pass


class PlayerNotFoundError(NotFoundError):
    """Raised when a requested player cannot be found."""

    pass


class GameNotFoundError(NotFoundError):
    """Raised when a requested game cannot be found."""

    pass


class TiebreakNotFoundError(NotFoundError):
    """Raised when a breakdown is requested for an unsupported tiebreak."""

    pass


class TournamentNotFoundError(NotFoundError):
    """Raised when a requested tournament is not registered."""

    pass


# ========== Result Exceptions ==========


class ResultException(PawnStandingsException):
    """Base exception for result recording errors."""

    pass


class InvalidResultException(ResultException):
    """Raised when a result or result type is not recognised."""

    pass


class ResultOverwriteError(ResultException):
    """Raised when submitting over a terminal result outside the correction path."""

    pass


# ========== File/Resource Exceptions ==========


class ResourceException(PawnStandingsException):
    """Base exception for resource-related errors."""

    pass


class FileLoadException(ResourceException):
    """Raised when a tournament file cannot be loaded."""

    pass


class FileSaveException(ResourceException):
    """Raised when a tournament file cannot be saved."""

    pass
