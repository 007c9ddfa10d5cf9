"""
Piece movement rules: one predicate and one enumerator per piece kind.

Each predicate answers "does this piece's geometry and the board's occupancy
allow from -> to?" while ignoring king safety. Sliding predicates (rook,
bishop, queen) only check the line shape; the caller must also confirm the
path is clear, which is what can_reach() bundles together.

Enumerators walk outward from the piece and return every destination that
passes the same test, stopping sliders at the first occupied square.
Neither castling nor en passant is produced here: both depend on history
rather than occupancy and live in special.py.
"""

from collections.abc import Callable

from rules.constants import (
    BISHOP_DIRECTIONS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    PAWN_DIRECTION,
    PAWN_START_RANK,
    QUEEN_DIRECTIONS,
    ROOK_DIRECTIONS,
)
from rules.geometry import (
    file_index,
    get_move_distance,
    is_diagonal_move,
    is_opponent_piece,
    is_own_piece,
    is_path_clear,
    is_straight_move,
    offset,
    rank_of,
)
from rules.state import BoardState, Color, PieceKind

MovePredicate = Callable[[BoardState, str, str, Color], bool]
MoveGenerator = Callable[[BoardState, str, Color], set[str]]


# ---------------------------------------------------------------------------
# Pawn
# ---------------------------------------------------------------------------


def is_valid_pawn_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    direction = PAWN_DIRECTION[color.value]
    file_diff = file_index(to_square) - file_index(from_square)
    rank_diff = (rank_of(to_square) - rank_of(from_square)) * direction

    if rank_diff <= 0:
        return False

    occupied = to_square in board.pieces

    if file_diff == 0 and rank_diff == 1:
        return not occupied

    if file_diff == 0 and rank_diff == 2:
        if rank_of(from_square) != PAWN_START_RANK[color.value]:
            return False
        middle = offset(from_square, 0, direction)
        return middle not in board.pieces and not occupied

    # Diagonal steps are captures only; en passant is validated in special.py.
    if abs(file_diff) == 1 and rank_diff == 1:
        return is_opponent_piece(board, to_square, color)

    return False


def get_pawn_moves(board: BoardState, square: str, color: Color) -> set[str]:
    direction = PAWN_DIRECTION[color.value]
    moves: set[str] = set()

    one_forward = offset(square, 0, direction)
    if one_forward is not None and one_forward not in board.pieces:
        moves.add(one_forward)
        if rank_of(square) == PAWN_START_RANK[color.value]:
            two_forward = offset(square, 0, 2 * direction)
            if two_forward is not None and two_forward not in board.pieces:
                moves.add(two_forward)

    for file_step in (-1, 1):
        target = offset(square, file_step, direction)
        if target is not None and is_opponent_piece(board, target, color):
            moves.add(target)

    return moves


def pawn_attacks(from_square: str, target: str, color: Color) -> bool:
    """
    Pawns attack differently from how they move: one step diagonally
    forward, whether or not the target square is occupied.
    """
    direction = PAWN_DIRECTION[color.value]
    file_diff, _ = get_move_distance(from_square, target)
    return file_diff == 1 and rank_of(target) - rank_of(from_square) == direction


# ---------------------------------------------------------------------------
# Knight and king (fixed offsets)
# ---------------------------------------------------------------------------


def is_valid_knight_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    file_diff, rank_diff = get_move_distance(from_square, to_square)
    if (file_diff, rank_diff) not in ((1, 2), (2, 1)):
        return False
    return not is_own_piece(board, to_square, color)


def is_valid_king_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    file_diff, rank_diff = get_move_distance(from_square, to_square)
    if file_diff > 1 or rank_diff > 1 or from_square == to_square:
        return False
    return not is_own_piece(board, to_square, color)


def _step_moves(
    board: BoardState, square: str, color: Color, offsets: tuple[tuple[int, int], ...]
) -> set[str]:
    moves = set()
    for file_step, rank_step in offsets:
        target = offset(square, file_step, rank_step)
        if target is not None and not is_own_piece(board, target, color):
            moves.add(target)
    return moves


def get_knight_moves(board: BoardState, square: str, color: Color) -> set[str]:
    return _step_moves(board, square, color, KNIGHT_OFFSETS)


def get_king_moves(board: BoardState, square: str, color: Color) -> set[str]:
    return _step_moves(board, square, color, KING_OFFSETS)


# ---------------------------------------------------------------------------
# Sliding pieces
# ---------------------------------------------------------------------------


def is_valid_rook_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    if from_square == to_square or not is_straight_move(from_square, to_square):
        return False
    return not is_own_piece(board, to_square, color)


def is_valid_bishop_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    if from_square == to_square or not is_diagonal_move(from_square, to_square):
        return False
    return not is_own_piece(board, to_square, color)


def is_valid_queen_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    if from_square == to_square:
        return False
    if not (is_straight_move(from_square, to_square) or is_diagonal_move(from_square, to_square)):
        return False
    return not is_own_piece(board, to_square, color)


def _slide_moves(
    board: BoardState, square: str, color: Color, directions: tuple[tuple[int, int], ...]
) -> set[str]:
    moves = set()
    for file_step, rank_step in directions:
        target = offset(square, file_step, rank_step)
        while target is not None:
            occupant = board.pieces.get(target)
            if occupant is None:
                moves.add(target)
            else:
                if occupant.color is not color:
                    moves.add(target)
                break
            target = offset(target, file_step, rank_step)
    return moves


def get_rook_moves(board: BoardState, square: str, color: Color) -> set[str]:
    return _slide_moves(board, square, color, ROOK_DIRECTIONS)


def get_bishop_moves(board: BoardState, square: str, color: Color) -> set[str]:
    return _slide_moves(board, square, color, BISHOP_DIRECTIONS)


def get_queen_moves(board: BoardState, square: str, color: Color) -> set[str]:
    return _slide_moves(board, square, color, QUEEN_DIRECTIONS)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

MOVE_PREDICATES: dict[PieceKind, MovePredicate] = {
    PieceKind.PAWN: is_valid_pawn_move,
    PieceKind.KNIGHT: is_valid_knight_move,
    PieceKind.BISHOP: is_valid_bishop_move,
    PieceKind.ROOK: is_valid_rook_move,
    PieceKind.QUEEN: is_valid_queen_move,
    PieceKind.KING: is_valid_king_move,
}

MOVE_GENERATORS: dict[PieceKind, MoveGenerator] = {
    PieceKind.PAWN: get_pawn_moves,
    PieceKind.KNIGHT: get_knight_moves,
    PieceKind.BISHOP: get_bishop_moves,
    PieceKind.ROOK: get_rook_moves,
    PieceKind.QUEEN: get_queen_moves,
    PieceKind.KING: get_king_moves,
}


def is_valid_move(board: BoardState, from_square: str, to_square: str, color: Color) -> bool:
    """Shape and occupancy test for whatever piece stands on from_square."""
    piece = board.pieces.get(from_square)
    if piece is None or piece.color is not color:
        return False
    return MOVE_PREDICATES[piece.kind](board, from_square, to_square, color)


def can_reach(board: BoardState, from_square: str, to_square: str) -> bool:
    """
    Occupation-legal move: the piece's predicate holds and, for sliders,
    nothing stands in the way. King safety is not considered.
    """
    piece = board.pieces.get(from_square)
    if piece is None:
        return False
    if not MOVE_PREDICATES[piece.kind](board, from_square, to_square, piece.color):
        return False
    if piece.kind.is_slider:
        return is_path_clear(board, from_square, to_square)
    return True


def possible_moves(board: BoardState, square: str, color: Color | None = None) -> set[str]:
    """Every occupation-legal destination for the piece on `square`."""
    piece = board.pieces.get(square)
    if piece is None or (color is not None and piece.color is not color):
        return set()
    return MOVE_GENERATORS[piece.kind](board, square, piece.color)


def en_passant_targets(board: BoardState, square: str) -> dict[str, str]:
    """
    En passant captures open to the pawn on `square`, as
    {destination: square of the pawn being captured}.

    Only available immediately after an opposing pawn's two-square advance
    that landed beside this pawn.
    """
    piece = board.pieces.get(square)
    last = board.last_move
    if piece is None or piece.kind is not PieceKind.PAWN or last is None:
        return {}
    if last.color is piece.color or not last.is_double_pawn_push:
        return {}

    file_diff, rank_diff = get_move_distance(square, last.to_square)
    if file_diff != 1 or rank_diff != 0:
        return {}

    victim = board.pieces.get(last.to_square)
    if victim is None or victim.kind is not PieceKind.PAWN or victim.color is piece.color:
        return {}

    destination = offset(last.to_square, 0, PAWN_DIRECTION[piece.color.value])
    if destination is None or destination in board.pieces:
        return {}
    return {destination: last.to_square}
