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


# Game outcome scores
WIN_SCORE = 1.0
DRAW_SCORE = 0.5
LOSS_SCORE = 0.0

# Match points (team-style scoring of individual games)
MATCH_POINTS_WIN = 2.0
MATCH_POINTS_DRAW = 1.0

# Game results (stored on Game.result, None while the game is ongoing)
RESULT_WHITE_WINS = "white_wins"
RESULT_BLACK_WINS = "black_wins"
RESULT_DRAW = "draw"
GAME_RESULTS = (RESULT_WHITE_WINS, RESULT_BLACK_WINS, RESULT_DRAW)

# PGN-style notation accepted on input and used for display
PGN_WHITE_WIN = "1-0"
PGN_BLACK_WIN = "0-1"
PGN_DRAW = "1/2-1/2"
PGN_ONGOING = "*"
PGN_TO_RESULT = {
    PGN_WHITE_WIN: RESULT_WHITE_WINS,
    PGN_BLACK_WIN: RESULT_BLACK_WINS,
    PGN_DRAW: RESULT_DRAW,
    PGN_ONGOING: None,
}
RESULT_TO_PGN = {value: key for key, value in PGN_TO_RESULT.items()}

# Result types. Forfeit and timeout only differ from normal for display
# unless the tiebreak config says otherwise.
RESULT_TYPE_NORMAL = "normal"
RESULT_TYPE_FORFEIT = "forfeit"
RESULT_TYPE_TIMEOUT = "timeout"
RESULT_TYPE_BYE = "bye"
RESULT_TYPES = (
    RESULT_TYPE_NORMAL,
    RESULT_TYPE_FORFEIT,
    RESULT_TYPE_TIMEOUT,
    RESULT_TYPE_BYE,
)
FORFEIT_RESULT_TYPES = frozenset({RESULT_TYPE_FORFEIT, RESULT_TYPE_TIMEOUT})

# Player status
STATUS_ACTIVE = "active"
STATUS_WITHDRAWN = "withdrawn"
PLAYER_STATUSES = (STATUS_ACTIVE, STATUS_WITHDRAWN)

# FIDE and national titles accepted on Player.title
PLAYER_TITLES = (
    "GM",
    "IM",
    "FM",
    "CM",
    "WGM",
    "WIM",
    "WFM",
    "WCM",
    "NM",
)

MIN_RATING = 0
MAX_RATING = 4000

# Virtual opponent policy for unplayed rounds in the Buchholz family
VIRTUAL_OPPONENT_IGNORE = "ignore"  # unplayed rounds add no entry
VIRTUAL_OPPONENT_ZERO = "zero"  # unplayed rounds add a 0.0 entry
VIRTUAL_OPPONENT_OWN_SCORE = "own_score"  # entry equal to the player's own points
VIRTUAL_OPPONENT_POLICIES = (
    VIRTUAL_OPPONENT_IGNORE,
    VIRTUAL_OPPONENT_ZERO,
    VIRTUAL_OPPONENT_OWN_SCORE,
)
DEFAULT_VIRTUAL_OPPONENT = VIRTUAL_OPPONENT_IGNORE

# Performance rating
PERFORMANCE_DP_CAP = 800
ELO_SCALE = 400.0

# Tiebreaker Keys - Buchholz family
TB_BUCHHOLZ_FULL = "buchholz_full"
TB_BUCHHOLZ_CUT_1 = "buchholz_cut1"
TB_BUCHHOLZ_CUT_2 = "buchholz_cut2"
TB_BUCHHOLZ_MEDIAN = "buchholz_median"

# Tiebreaker Keys - result based
TB_SONNEBORN_BERGER = "sonneborn_berger"
TB_PROGRESSIVE = "progressive_score"
TB_CUMULATIVE = "cumulative_score"
TB_DIRECT_ENCOUNTER = "direct_encounter"
TB_KOYA = "koya_system"

# Tiebreaker Keys - rating based
TB_ARO = "average_rating_of_opponents"
TB_TPR = "tournament_performance_rating"
TB_AROC_CUT_1 = "aroc_cut1"
TB_AROC_CUT_2 = "aroc_cut2"

# Tiebreaker Keys - game counts
TB_WINS = "number_of_wins"
TB_BLACK_GAMES = "number_of_games_with_black"
TB_BLACK_WINS = "number_of_wins_with_black"

# Tiebreaker Keys - team style
TB_MATCH_POINTS = "match_points"
TB_GAME_POINTS = "game_points"
TB_BOARD_POINTS = "board_points"

# Default display names for tiebreaks
TIEBREAK_NAMES = {
    TB_BUCHHOLZ_FULL: "Buchholz",
    TB_BUCHHOLZ_CUT_1: "Buchholz Cut-1",
    TB_BUCHHOLZ_CUT_2: "Buchholz Cut-2",
    TB_BUCHHOLZ_MEDIAN: "Median Buchholz",
    TB_SONNEBORN_BERGER: "Sonneborn-Berger",
    TB_PROGRESSIVE: "Progressive Score",
    TB_CUMULATIVE: "Cumulative Score",
    TB_DIRECT_ENCOUNTER: "Direct Encounter",
    TB_ARO: "Average Rating of Opponents (ARO)",
    TB_TPR: "Tournament Performance Rating (TPR)",
    TB_WINS: "Number of Wins",
    TB_BLACK_GAMES: "Games with Black",
    TB_BLACK_WINS: "Wins with Black",
    TB_KOYA: "Koya System",
    TB_AROC_CUT_1: "AROC Cut-1",
    TB_AROC_CUT_2: "AROC Cut-2",
    TB_MATCH_POINTS: "Match Points",
    TB_GAME_POINTS: "Game Points",
    TB_BOARD_POINTS: "Board Points",
}

TIEBREAK_SHORT_NAMES = {
    TB_BUCHHOLZ_FULL: "Buch",
    TB_BUCHHOLZ_CUT_1: "Buch-1",
    TB_BUCHHOLZ_CUT_2: "Buch-2",
    TB_BUCHHOLZ_MEDIAN: "Med-Buch",
    TB_SONNEBORN_BERGER: "S-B",
    TB_PROGRESSIVE: "Prog",
    TB_CUMULATIVE: "Cumul",
    TB_DIRECT_ENCOUNTER: "DE",
    TB_ARO: "ARO",
    TB_TPR: "TPR",
    TB_WINS: "Wins",
    TB_BLACK_GAMES: "Black",
    TB_BLACK_WINS: "W-Black",
    TB_KOYA: "Koya",
    TB_AROC_CUT_1: "AROC-1",
    TB_AROC_CUT_2: "AROC-2",
    TB_MATCH_POINTS: "MP",
    TB_GAME_POINTS: "GP",
    TB_BOARD_POINTS: "BP",
}

ALL_TIEBREAKS = tuple(TIEBREAK_NAMES)

# Order used when a tournament asks for federation defaults
DEFAULT_FIDE_TIEBREAK_ORDER = [
    TB_BUCHHOLZ_FULL,
    TB_BUCHHOLZ_CUT_1,
    TB_WINS,
    TB_DIRECT_ENCOUNTER,
]

# Real-time standings defaults
DEFAULT_UPDATE_INTERVAL_SECONDS = 30
DEFAULT_CACHE_DURATION_SECONDS = 300
SLOW_CALCULATION_MS = 1000
SUBSCRIBER_QUEUE_SIZE = 100
