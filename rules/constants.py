"""
Rules constants: board geometry, starting set-up, castling corners, and
game-level policy values.

Every fixed value the rules core and the orchestrator rely on lives here so
the movement, check and history modules never carry their own literals.
Squares are plain algebraic strings ("e4"); pieces are spelled out as
(kind, color) pairs and turned into Piece values by state.py.
"""

# ---------------------------------------------------------------------------
# Board geometry
# ---------------------------------------------------------------------------

FILES: str = "abcdefgh"
RANKS: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8)

# Step vectors as (file_delta, rank_delta).
ROOK_DIRECTIONS: tuple[tuple[int, int], ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))
BISHOP_DIRECTIONS: tuple[tuple[int, int], ...] = ((1, 1), (1, -1), (-1, -1), (-1, 1))
QUEEN_DIRECTIONS: tuple[tuple[int, int], ...] = ROOK_DIRECTIONS + BISHOP_DIRECTIONS
KING_OFFSETS: tuple[tuple[int, int], ...] = QUEEN_DIRECTIONS
KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (1, 2), (2, 1), (2, -1), (1, -2),
    (-1, -2), (-2, -1), (-2, 1), (-1, 2),
)

# ---------------------------------------------------------------------------
# Pawns
# ---------------------------------------------------------------------------
# Forward direction, the rank a pawn may double-step from, and the rank on
# which it promotes. Keyed by color value ("white"/"black").

PAWN_DIRECTION: dict[str, int] = {"white": 1, "black": -1}
PAWN_START_RANK: dict[str, int] = {"white": 2, "black": 7}
PROMOTION_RANK: dict[str, int] = {"white": 8, "black": 1}

# Kinds a pawn may become. The first entry is the default choice.
PROMOTION_KINDS: tuple[str, ...] = ("queen", "rook", "bishop", "knight")
DEFAULT_PROMOTION: str = "queen"

# ---------------------------------------------------------------------------
# Castling
# ---------------------------------------------------------------------------

KING_HOME: dict[str, str] = {"white": "e1", "black": "e8"}

# Right token -> (color, king destination, rook origin, rook destination).
CASTLING_LAYOUT: dict[str, tuple[str, str, str, str]] = {
    "K": ("white", "g1", "h1", "f1"),
    "Q": ("white", "c1", "a1", "d1"),
    "k": ("black", "g8", "h8", "f8"),
    "q": ("black", "c8", "a8", "d8"),
}
ALL_CASTLING_RIGHTS: frozenset[str] = frozenset(CASTLING_LAYOUT)

# ---------------------------------------------------------------------------
# Starting position
# ---------------------------------------------------------------------------

BACK_RANK: tuple[str, ...] = (
    "rook", "knight", "bishop", "queen", "king", "bishop", "knight", "rook",
)

# FEN of the standard set-up; also the fallback when a generated FEN is
# malformed.
INITIAL_FEN: str = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

FEN_LETTERS: dict[str, str] = {
    "pawn": "p",
    "knight": "n",
    "bishop": "b",
    "rook": "r",
    "queen": "q",
    "king": "k",
}

# Letter used in algebraic notation; pawns have none.
NOTATION_LETTERS: dict[str, str] = {
    "pawn": "",
    "knight": "N",
    "bishop": "B",
    "rook": "R",
    "queen": "Q",
    "king": "K",
}

# ---------------------------------------------------------------------------
# Difficulty and undo policy
# ---------------------------------------------------------------------------
# None means unlimited undos.

DIFFICULTIES: tuple[str, ...] = ("easy", "normal", "hard")
DEFAULT_DIFFICULTY: str = "normal"

UNDO_QUOTAS: dict[str, int | None] = {
    "easy": None,
    "normal": 3,
    "hard": 0,
}
