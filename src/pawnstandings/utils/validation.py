"""Validation utilities for Pawn Standings.

This module provides reusable validation functions for player fields with
consistent error reporting.
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

import re
from typing import Any, Optional

from pawnstandings.constants import (
    MAX_RATING,
    MIN_RATING,
    PLAYER_STATUSES,
    PLAYER_TITLES,
)


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Any = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


# ========== Rating Validation ==========


def validate_rating(rating: Any) -> ValidationResult:
    """Validate a player rating.

    ``None`` is valid (unrated player).

    Example:
        >>> validate_rating("2150").sanitized_value
        2150
    """
    if rating is None:
        return ValidationResult(True, sanitized_value=None)

    if isinstance(rating, bool):
        return ValidationResult(False, f"Rating must be a number, got {rating!r}")

    try:
        value = int(rating)
    except (TypeError, ValueError):
        return ValidationResult(False, f"Rating must be a number, got {rating!r}")

    if isinstance(rating, float) and not rating.is_integer():
        return ValidationResult(False, f"Rating must be a whole number, got {rating}")

    if not (MIN_RATING <= value <= MAX_RATING):
        return ValidationResult(
            False, f"Rating {value} outside range {MIN_RATING}-{MAX_RATING}"
        )

    return ValidationResult(True, sanitized_value=value)


# ========== Country Code Validation ==========

_COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2,3}$")


def validate_country_code(code: Optional[str]) -> ValidationResult:
    """Validate an ISO 3166 alpha-2/alpha-3 or FIDE federation code."""
    if code is None or not str(code).strip():
        return ValidationResult(True, sanitized_value=None)

    cleaned = str(code).strip().upper()
    if not _COUNTRY_CODE_PATTERN.match(cleaned):
        return ValidationResult(False, f"Invalid country code: {code!r}")
    return ValidationResult(True, sanitized_value=cleaned)


# ========== Title / Status Validation ==========


def validate_title(title: Optional[str]) -> ValidationResult:
    """Validate a chess title such as ``GM`` or ``WIM``."""
    if title is None or not str(title).strip():
        return ValidationResult(True, sanitized_value=None)

    cleaned = str(title).strip().upper()
    if cleaned not in PLAYER_TITLES:
        return ValidationResult(False, f"Unknown title: {title!r}")
    return ValidationResult(True, sanitized_value=cleaned)


def validate_status(status: Optional[str]) -> ValidationResult:
    if status is None:
        return ValidationResult(False, "Player status is required")
    cleaned = str(status).strip().lower()
    if cleaned not in PLAYER_STATUSES:
        return ValidationResult(False, f"Unknown player status: {status!r}")
    return ValidationResult(True, sanitized_value=cleaned)
