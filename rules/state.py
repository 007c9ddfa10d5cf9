"""
Board State: the single mutable record of piece placement and game metadata.

Nothing in this module decides legality. It holds the data the rest of the
rules core reads and mutates:

    pieces           - sparse mapping square -> Piece (absent = empty)
    current_player   - color to move
    captured_pieces  - captured Piece values, keyed by the capturing color
    in_check         - per-color check flag, recomputed after every move
    last_move        - most recent MoveRecord (needed for en passant)
    castling_rights  - subset of {"K", "Q", "k", "q"}; revoked as kings and
                       rooks leave their home squares

Pieces have no identity of their own: a piece "is" whatever value sits on a
square. Move records are immutable once created; undo pops them rather than
editing them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from rules.constants import ALL_CASTLING_RIGHTS, BACK_RANK, FEN_LETTERS, FILES


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    @property
    def is_slider(self) -> bool:
        """Rooks, bishops and queens move any distance until blocked."""
        return self in (PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN)


class SpecialMove(str, Enum):
    CASTLE_KINGSIDE = "castle-kingside"
    CASTLE_QUEENSIDE = "castle-queenside"
    EN_PASSANT = "en-passant"
    PROMOTION = "promotion"


@dataclass(frozen=True)
class Piece:
    kind: PieceKind
    color: Color

    @classmethod
    def parse(cls, label: str) -> "Piece":
        """Build a piece from its "kind-color" label, e.g. "rook-white"."""
        kind, color = label.split("-")
        return cls(PieceKind(kind), Color(color))

    @property
    def label(self) -> str:
        return f"{self.kind.value}-{self.color.value}"

    @property
    def symbol(self) -> str:
        """FEN letter: uppercase for white, lowercase for black."""
        letter = FEN_LETTERS[self.kind.value]
        return letter.upper() if self.color is Color.WHITE else letter

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class MoveRecord:
    """
    One completed ply.

    capture_position is only set for en passant, where the captured pawn does
    not stand on to_square. For ordinary captures the victim's square is
    to_square. rook_from/rook_to/rook_piece are only set for castling.
    prior_rights holds the castling rights in force before the move so undo
    can restore them.
    """

    from_square: str
    to_square: str
    piece: Piece
    captured_piece: Piece | None = None
    special_move: SpecialMove | None = None
    capture_position: str | None = None
    rook_from: str | None = None
    rook_to: str | None = None
    rook_piece: Piece | None = None
    promoted_to: PieceKind | None = None
    prior_rights: frozenset[str] = frozenset()
    move_number: int = 0
    notation: str = ""

    @property
    def color(self) -> Color:
        return self.piece.color

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None

    @property
    def capture_square(self) -> str:
        return self.capture_position or self.to_square

    @property
    def is_castling(self) -> bool:
        return self.special_move in (SpecialMove.CASTLE_KINGSIDE, SpecialMove.CASTLE_QUEENSIDE)

    @property
    def is_double_pawn_push(self) -> bool:
        return (
            self.piece.kind is PieceKind.PAWN
            and abs(int(self.to_square[1]) - int(self.from_square[1])) == 2
        )

    @property
    def uci(self) -> str:
        suffix = FEN_LETTERS[self.promoted_to.value] if self.promoted_to else ""
        return f"{self.from_square}{self.to_square}{suffix}"

    def with_fields(self, **changes) -> "MoveRecord":
        return replace(self, **changes)


def _empty_captures() -> dict[Color, list[Piece]]:
    return {Color.WHITE: [], Color.BLACK: []}


def _no_check() -> dict[Color, bool]:
    return {Color.WHITE: False, Color.BLACK: False}


@dataclass
class BoardState:
    pieces: dict[str, Piece] = field(default_factory=dict)
    current_player: Color = Color.WHITE
    captured_pieces: dict[Color, list[Piece]] = field(default_factory=_empty_captures)
    in_check: dict[Color, bool] = field(default_factory=_no_check)
    last_move: MoveRecord | None = None
    castling_rights: set[str] = field(default_factory=set)

    @classmethod
    def initial(cls) -> "BoardState":
        """Standard starting position, white to move, all castling rights."""
        pieces: dict[str, Piece] = {}
        for file, kind in zip(FILES, BACK_RANK):
            pieces[f"{file}1"] = Piece(PieceKind(kind), Color.WHITE)
            pieces[f"{file}2"] = Piece(PieceKind.PAWN, Color.WHITE)
            pieces[f"{file}7"] = Piece(PieceKind.PAWN, Color.BLACK)
            pieces[f"{file}8"] = Piece(PieceKind(kind), Color.BLACK)
        return cls(pieces=pieces, castling_rights=set(ALL_CASTLING_RIGHTS))

    @classmethod
    def from_layout(
        cls,
        layout: dict[str, str],
        current_player: Color | str = Color.WHITE,
        castling_rights: str = "",
    ) -> "BoardState":
        """
        Build an arbitrary position from {"e1": "king-white", ...}.

        Castling rights are empty unless given as a FEN-style string ("KQ").
        """
        pieces = {square: Piece.parse(label) for square, label in layout.items()}
        rights = {token for token in castling_rights if token in ALL_CASTLING_RIGHTS}
        return cls(pieces=pieces, current_player=Color(current_player), castling_rights=rights)

    def reset(self) -> None:
        """Return to the starting position in place."""
        fresh = BoardState.initial()
        self.pieces = fresh.pieces
        self.current_player = fresh.current_player
        self.captured_pieces = fresh.captured_pieces
        self.in_check = fresh.in_check
        self.last_move = None
        self.castling_rights = fresh.castling_rights

    def copy(self) -> "BoardState":
        """Independent clone; mutating the clone never touches this state."""
        return BoardState(
            pieces=dict(self.pieces),
            current_player=self.current_player,
            captured_pieces={color: list(items) for color, items in self.captured_pieces.items()},
            in_check=dict(self.in_check),
            last_move=self.last_move,
            castling_rights=set(self.castling_rights),
        )

    def piece_at(self, square: str) -> Piece | None:
        return self.pieces.get(square)

    def pieces_of(self, color: Color) -> list[tuple[str, Piece]]:
        return [(square, piece) for square, piece in self.pieces.items() if piece.color is color]

    def king_square(self, color: Color) -> str | None:
        for square, piece in self.pieces.items():
            if piece.kind is PieceKind.KING and piece.color is color:
                return square
        return None

    def switch_turn(self) -> Color:
        self.current_player = self.current_player.opponent
        return self.current_player
