"""Type hints used in Pawn Standings."""

from typing import Dict, Literal, Optional, Tuple

# Chess color string constants (for runtime use)
WHITE = "white"
BLACK = "black"

# Basically, white or black
Colour = Literal["white", "black"]

# Player id -> aggregated score
Scores = Dict[int, "PlayerScore"]
# (white_player_id, black_player_id or None for a bye)
Pairing = Tuple[int, Optional[int]]
