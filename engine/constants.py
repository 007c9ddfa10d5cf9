"""
Engine constants: piece values, difficulty settings, and search limits.

Both move sources share these numbers: the bundled search (search.py) and
the external UCI engine driver (bridge.py). Difficulty tokens come from the
game controller ("easy", "normal", "hard").

Piece values follow the standard centipawn convention (1 pawn = 100 cp).
"""

import chess

# ---------------------------------------------------------------------------
# Piece values (centipawns)
# ---------------------------------------------------------------------------

PAWN_VALUE: int = 100
KNIGHT_VALUE: int = 320
BISHOP_VALUE: int = 330
ROOK_VALUE: int = 500
QUEEN_VALUE: int = 900
KING_VALUE: int = 20_000  # Only used by capture ordering

PIECE_VALUES: dict[int, int] = {
    chess.PAWN:   PAWN_VALUE,
    chess.KNIGHT: KNIGHT_VALUE,
    chess.BISHOP: BISHOP_VALUE,
    chess.ROOK:   ROOK_VALUE,
    chess.QUEEN:  QUEEN_VALUE,
    chess.KING:   KING_VALUE,
}

# Small bonus for occupying one of the four centre squares.
CENTER_SQUARES: tuple[int, ...] = (chess.D4, chess.E4, chess.D5, chess.E5)
CENTER_BONUS: int = 15

# ---------------------------------------------------------------------------
# Special scores
# ---------------------------------------------------------------------------

CHECKMATE_SCORE: int = 99_999
DRAW_SCORE: int = 0

# ---------------------------------------------------------------------------
# Difficulty
# ---------------------------------------------------------------------------
# External engines (Stockfish and friends) search to these depths.

UCI_DEPTHS: dict[str, int] = {
    "easy": 8,
    "normal": 12,
    "hard": 18,
}

# The bundled search is pure Python, so its depths are much shallower and
# each search is also capped by a time budget.
BUILTIN_DEPTHS: dict[str, int] = {
    "easy": 1,
    "normal": 2,
    "hard": 3,
}
BUILTIN_TIME_LIMIT_MS: int = 2_000

# Easy play deliberately picks a weak reply: the candidates are the top
# EASY_CANDIDATES moves, and the choice is made among the weaker half.
EASY_CANDIDATES: int = 5

# How often (in nodes) the bundled search looks at the clock.
TIME_CHECK_NODES: int = 1_024
