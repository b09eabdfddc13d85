"""Shared helpers: logging setup and display formatting."""

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

import logging
from datetime import datetime, timezone
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a module logger, configuring the package root logger once.

    Args:
        name: Logger name, normally ``__name__``
        level: Optional level override for this logger

    Returns:
        The configured logger
    """
    global _configured
    if not _configured:
        root = logging.getLogger("pawnstandings")
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
            root.setLevel(logging.WARNING)
        _configured = True

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def utc_timestamp() -> str:
    """Current UTC time as an RFC 3339 string."""
    return datetime.now(timezone.utc).isoformat()


def format_points(value: float) -> str:
    """Format a score with one decimal (``1.5``, ``2.0``)."""
    return f"{value:.1f}"


def format_count(value: float) -> str:
    """Format an integral count without decimals."""
    return str(int(value))


def format_rating(value: Optional[float]) -> str:
    """Format a rating as an integer, ``-`` when undefined."""
    if value is None:
        return "-"
    return str(int(round(value)))
