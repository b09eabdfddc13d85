"""Random Tournament Generator - seeded ledgers for standings tests.

This module generates realistic tournament ledgers (players, pairings,
results, byes and forfeits) for property-style tests of the standings
engine. The same seed always yields the same ledger.
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

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from pawnstandings.constants import (
    DRAW_SCORE,
    LOSS_SCORE,
    RESULT_BLACK_WINS,
    RESULT_DRAW,
    RESULT_TYPE_BYE,
    RESULT_TYPE_FORFEIT,
    RESULT_TYPE_NORMAL,
    RESULT_WHITE_WINS,
    WIN_SCORE,
)
from pawnstandings.models.game import Game
from pawnstandings.models.ledger import GameLedger
from pawnstandings.models.player import Player
from pawnstandings.utils import setup_logger

logger = setup_logger(__name__)


class RatingDistribution(Enum):
    """Rating distribution patterns for realistic tournaments."""

    UNIFORM = "uniform"
    NORMAL = "normal"
    CLUB = "club"


class ResultPattern(Enum):
    """Result generation patterns for tournaments."""

    REALISTIC = "realistic"
    RANDOM = "random"
    DRAWISH = "drawish"


@dataclass
class GeneratorConfig:
    """Configuration for the random tournament generator.

    Rates are probabilities in [0, 1].
    """

    num_players: int
    num_rounds: int
    tournament_id: int = 1
    rating_distribution: RatingDistribution = RatingDistribution.NORMAL
    rating_range: Tuple[int, int] = (1000, 2600)
    result_pattern: ResultPattern = ResultPattern.REALISTIC
    seed: Optional[int] = None
    draw_percentage: int = 30
    unrated_rate: float = 0.1
    forfeit_rate: float = 0.05
    half_point_bye_rate: float = 0.2
    unfinished_last_round_rate: float = 0.0


class PlayerFactory:
    """Factory for creating tournament players."""

    def __init__(self, config: GeneratorConfig, rng: random.Random):
        self.config = config
        self.random = rng

    def create_players(self) -> List[Player]:
        players = []
        for i in range(self.config.num_players):
            rating = None
            if self.random.random() >= self.config.unrated_rate:
                rating = self._generate_rating()
            players.append(
                Player(id=i + 1, name=self._generate_name(i + 1, rating), rating=rating)
            )
        logger.debug(
            "Created %s players with %s distribution",
            len(players),
            self.config.rating_distribution.value,
        )
        return players

    def _generate_rating(self) -> int:
        min_rating, max_rating = self.config.rating_range
        if self.config.rating_distribution == RatingDistribution.UNIFORM:
            return self.random.randint(min_rating, max_rating)
        if self.config.rating_distribution == RatingDistribution.NORMAL:
            mean = (min_rating + max_rating) / 2
            std_dev = (max_rating - min_rating) / 6
            rating = int(self.random.gauss(mean, std_dev))
            return max(min_rating, min(max_rating, rating))
        base = self.random.choice([1000, 1200, 1400, 1600, 1800])
        return self.random.randint(base - 100, base + 100)

    def _generate_name(self, number: int, rating: Optional[int]) -> str:
        if rating is None:
            prefix = "Unrated"
        elif rating < 1400:
            prefix = "ClassC"
        elif rating < 1800:
            prefix = "ClassA"
        else:
            prefix = "Expert"
        return f"{prefix}-{number:03d}"


class ResultSimulator:
    """Simulates game results from ratings."""

    def __init__(self, config: GeneratorConfig, rng: random.Random):
        self.config = config
        self.random = rng

    def simulate(self, white: Player, black: Player) -> Tuple[str, str]:
        """Return (result, result_type) for a game."""
        if self.random.random() < self.config.forfeit_rate:
            winner = self.random.choice([RESULT_WHITE_WINS, RESULT_BLACK_WINS])
            return winner, RESULT_TYPE_FORFEIT

        if self.config.result_pattern == ResultPattern.RANDOM:
            white_score = self.random.choice([WIN_SCORE, DRAW_SCORE, LOSS_SCORE])
        elif self.config.result_pattern == ResultPattern.DRAWISH:
            if self.random.random() < 0.7:
                white_score = DRAW_SCORE
            else:
                white_score = self._realistic(white, black)
        else:
            white_score = self._realistic(white, black)
        return _RESULT_FOR_WHITE_SCORE[white_score], RESULT_TYPE_NORMAL

    def _realistic(self, white: Player, black: Player) -> float:
        white_rating = white.rating or 1500
        black_rating = black.rating or 1500
        rating_diff = abs(white_rating - black_rating)
        expected_value = math.erfc(rating_diff * (-7.0 / math.sqrt(2.0) / 2000.0)) / 2.0
        draw_probability = min(self.config.draw_percentage / 100.0, 2.0 - expected_value * 2.0)

        random_value = self.random.random()
        if random_value < draw_probability:
            return DRAW_SCORE
        stronger_wins = random_value < expected_value + draw_probability / 2.0
        white_stronger = white_rating >= black_rating
        return WIN_SCORE if stronger_wins == white_stronger else LOSS_SCORE


_RESULT_FOR_WHITE_SCORE = {
    WIN_SCORE: RESULT_WHITE_WINS,
    DRAW_SCORE: RESULT_DRAW,
    LOSS_SCORE: RESULT_BLACK_WINS,
}


class RandomTournamentGenerator:
    """Builds a complete ledger round by round.

    Pairings are a simple Swiss approximation: players are ordered by
    points then rating and paired top-down, avoiding rematches where
    possible. With an odd field the lowest player without a bye sits out.
    """

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.random = random.Random(config.seed) if config.seed is not None else random.Random()
        self.players = PlayerFactory(config, self.random).create_players()
        self.simulator = ResultSimulator(config, self.random)

    def generate(self) -> GameLedger:
        players_by_id = {p.id: p for p in self.players}
        points: Dict[int, float] = {p.id: 0.0 for p in self.players}
        met: Set[Tuple[int, int]] = set()
        had_bye: Set[int] = set()
        games: List[Game] = []

        for round_number in range(1, self.config.num_rounds + 1):
            order = sorted(
                self.players, key=lambda p: (-points[p.id], -(p.rating or 0), p.id)
            )
            pool = [p.id for p in order]

            if len(pool) % 2 == 1:
                bye_id = next(
                    (pid for pid in reversed(pool) if pid not in had_bye), pool[-1]
                )
                pool.remove(bye_id)
                had_bye.add(bye_id)
                result = (
                    RESULT_DRAW
                    if self.random.random() < self.config.half_point_bye_rate
                    else RESULT_WHITE_WINS
                )
                games.append(
                    self._game(
                        len(games) + 1, round_number, bye_id, None, result, RESULT_TYPE_BYE
                    )
                )
                points[bye_id] += WIN_SCORE if result == RESULT_WHITE_WINS else DRAW_SCORE

            last_round = round_number == self.config.num_rounds
            for white_id, black_id in self._pair(pool, met):
                if self.random.random() < 0.5:
                    white_id, black_id = black_id, white_id
                met.add((min(white_id, black_id), max(white_id, black_id)))
                if last_round and self.random.random() < self.config.unfinished_last_round_rate:
                    games.append(
                        self._game(
                            len(games) + 1,
                            round_number,
                            white_id,
                            black_id,
                            None,
                            RESULT_TYPE_NORMAL,
                        )
                    )
                    continue
                result, result_type = self.simulator.simulate(
                    players_by_id[white_id], players_by_id[black_id]
                )
                games.append(
                    self._game(
                        len(games) + 1, round_number, white_id, black_id, result, result_type
                    )
                )
                if result == RESULT_WHITE_WINS:
                    points[white_id] += WIN_SCORE
                elif result == RESULT_BLACK_WINS:
                    points[black_id] += WIN_SCORE
                else:
                    points[white_id] += DRAW_SCORE
                    points[black_id] += DRAW_SCORE

        logger.debug(
            "Generated tournament %s: %d players, %d rounds, %d games",
            self.config.tournament_id,
            len(self.players),
            self.config.num_rounds,
            len(games),
        )
        return GameLedger.create(self.config.tournament_id, self.players, games)

    def _pair(self, pool: List[int], met: Set[Tuple[int, int]]) -> List[Tuple[int, int]]:
        remaining = list(pool)
        pairs = []
        while remaining:
            first = remaining.pop(0)
            partner = next(
                (pid for pid in remaining if (min(first, pid), max(first, pid)) not in met),
                remaining[0],
            )
            remaining.remove(partner)
            pairs.append((first, partner))
        return pairs

    def _game(
        self,
        game_id: int,
        round_number: int,
        white_id: int,
        black_id: Optional[int],
        result: Optional[str],
        result_type: str,
    ) -> Game:
        return Game(
            id=game_id,
            tournament_id=self.config.tournament_id,
            round_number=round_number,
            white_player_id=white_id,
            black_player_id=black_id,
            result=result,
            result_type=result_type,
        )


def generate_ledger(
    num_players: int = 8, num_rounds: int = 5, seed: Optional[int] = None, **kwargs
) -> GameLedger:
    """Generate a ledger with the given size and seed."""
    config = GeneratorConfig(num_players=num_players, num_rounds=num_rounds, seed=seed, **kwargs)
    return RandomTournamentGenerator(config).generate()
