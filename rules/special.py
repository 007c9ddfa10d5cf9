"""
Special moves: castling, en passant and promotion.

Each move has a validator and an executor. Executors mutate the board and
return the MoveRecord the history needs to reverse the move exactly:
castling records the rook's origin, destination and value; en passant
records capture_position, the square the captured pawn actually stood on.

Promotion happens in two steps. execute_promotion() performs the
underlying relocation (and capture), leaving a pawn on the last rank;
complete_promotion() later replaces it with the chosen piece. Until then
the orchestrator holds the game in its awaiting-promotion phase.
"""

import logging

from rules.check import is_king_in_check, simulate_move_and_check
from rules.constants import (
    CASTLING_LAYOUT,
    DEFAULT_PROMOTION,
    KING_HOME,
    PROMOTION_KINDS,
    PROMOTION_RANK,
)
from rules.execution import execute_move, revoke_castling_rights
from rules.geometry import file_index, is_path_clear, rank_of, squares_between
from rules.movement import en_passant_targets
from rules.state import BoardState, MoveRecord, Piece, PieceKind, SpecialMove

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Castling
# ---------------------------------------------------------------------------


def castling_layout(board: BoardState, from_square: str, to_square: str):
    """
    (right token, rook origin, rook destination) for a king move that has
    the shape of castling, or None.
    """
    king = board.pieces.get(from_square)
    if king is None or king.kind is not PieceKind.KING:
        return None
    for token, (color, king_to, rook_from, rook_to) in CASTLING_LAYOUT.items():
        if color == king.color.value and KING_HOME[color] == from_square and king_to == to_square:
            return token, rook_from, rook_to
    return None


def is_castling_valid(board: BoardState, from_square: str, to_square: str) -> bool:
    king = board.pieces.get(from_square)
    if king is None or king.kind is not PieceKind.KING:
        return False
    if rank_of(from_square) != rank_of(to_square):
        return False
    if abs(file_index(to_square) - file_index(from_square)) != 2:
        return False

    layout = castling_layout(board, from_square, to_square)
    if layout is None:
        return False
    token, rook_from, _rook_to = layout

    # Neither piece may have moved since the start of the game.
    if token not in board.castling_rights:
        return False
    if board.pieces.get(rook_from) != Piece(PieceKind.ROOK, king.color):
        return False
    if not is_path_clear(board, from_square, rook_from):
        return False
    if is_king_in_check(from_square, king.color, board):
        return False

    for square in squares_between(from_square, to_square) + [to_square]:
        if simulate_move_and_check(board, from_square, square, king.color):
            return False
    return True


def execute_castling(board: BoardState, from_square: str, to_square: str) -> MoveRecord | None:
    """Move king and rook together. The caller has validated the move."""
    layout = castling_layout(board, from_square, to_square)
    if layout is None:
        return None
    _token, rook_from, rook_to = layout

    king = board.pieces[from_square]
    rook = board.pieces[rook_from]
    kingside = file_index(to_square) > file_index(from_square)

    record = MoveRecord(
        from_square=from_square,
        to_square=to_square,
        piece=king,
        special_move=SpecialMove.CASTLE_KINGSIDE if kingside else SpecialMove.CASTLE_QUEENSIDE,
        rook_from=rook_from,
        rook_to=rook_to,
        rook_piece=rook,
        prior_rights=frozenset(board.castling_rights),
    )

    del board.pieces[from_square]
    board.pieces[to_square] = king
    del board.pieces[rook_from]
    board.pieces[rook_to] = rook
    revoke_castling_rights(board, from_square, rook_from)
    board.last_move = record
    return record


# ---------------------------------------------------------------------------
# En passant
# ---------------------------------------------------------------------------


def is_en_passant_valid(board: BoardState, from_square: str, to_square: str) -> str | None:
    """
    The square of the pawn that would be captured, or None when from -> to
    is not an en passant capture right now.
    """
    return en_passant_targets(board, from_square).get(to_square)


def execute_en_passant(
    board: BoardState, from_square: str, to_square: str, capture_position: str
) -> MoveRecord | None:
    pawn = board.pieces.get(from_square)
    captured = board.pieces.get(capture_position)
    if pawn is None or captured is None:
        _log.error("No pawn found at %s for en passant capture", capture_position)
        return None

    record = MoveRecord(
        from_square=from_square,
        to_square=to_square,
        piece=pawn,
        captured_piece=captured,
        special_move=SpecialMove.EN_PASSANT,
        capture_position=capture_position,
        prior_rights=frozenset(board.castling_rights),
    )

    board.captured_pieces[pawn.color].append(captured)
    del board.pieces[capture_position]
    del board.pieces[from_square]
    board.pieces[to_square] = pawn
    board.last_move = record
    _log.debug("En passant: %s captures %s on %s", pawn, captured, capture_position)
    return record


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------


def is_pawn_promotion(board: BoardState, from_square: str, to_square: str) -> bool:
    piece = board.pieces.get(from_square)
    if piece is None or piece.kind is not PieceKind.PAWN:
        return False
    return rank_of(to_square) == PROMOTION_RANK[piece.color.value]


def execute_promotion(board: BoardState, from_square: str, to_square: str) -> MoveRecord | None:
    """First half of a promotion: the pawn moves (and captures) as usual."""
    return execute_move(board, from_square, to_square, special_move=SpecialMove.PROMOTION)


def promotion_kind(choice: str | PieceKind | None) -> PieceKind:
    """Normalise a promotion choice, defaulting to a queen."""
    value = choice.value if isinstance(choice, PieceKind) else choice
    if value not in PROMOTION_KINDS:
        if value is not None:
            _log.warning("Unknown promotion choice %r; promoting to %s", value, DEFAULT_PROMOTION)
        value = DEFAULT_PROMOTION
    return PieceKind(value)


def complete_promotion(
    board: BoardState, record: MoveRecord, choice: str | PieceKind | None = None
) -> MoveRecord:
    """Second half: overwrite the pawn on the last rank with the chosen piece."""
    kind = promotion_kind(choice)
    board.pieces[record.to_square] = Piece(kind, record.color)
    promoted = record.with_fields(promoted_to=kind)
    board.last_move = promoted
    return promoted
