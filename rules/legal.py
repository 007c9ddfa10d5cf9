"""
Fully legal move queries: ordinary moves, en passant and castling, each
filtered for king safety. Used for square highlighting and for the safe
default move when the engine's reply is unusable.
"""

from rules.check import simulate_move_and_check
from rules.constants import CASTLING_LAYOUT, KING_HOME
from rules.movement import en_passant_targets, possible_moves
from rules.special import is_castling_valid
from rules.state import BoardState, Color, PieceKind


def legal_moves_from(board: BoardState, square: str) -> set[str]:
    piece = board.pieces.get(square)
    if piece is None:
        return set()

    moves = {
        target
        for target in possible_moves(board, square, piece.color)
        if not simulate_move_and_check(board, square, target, piece.color)
    }

    for target, victim in en_passant_targets(board, square).items():
        if not simulate_move_and_check(board, square, target, piece.color, also_remove=victim):
            moves.add(target)

    if piece.kind is PieceKind.KING and square == KING_HOME[piece.color.value]:
        for color, king_to, _rook_from, _rook_to in CASTLING_LAYOUT.values():
            if color == piece.color.value and is_castling_valid(board, square, king_to):
                moves.add(king_to)

    return moves


def all_legal_moves(board: BoardState, color: Color) -> list[tuple[str, str]]:
    """Every legal (from, to) pair for `color`, in a stable order."""
    return sorted(
        (square, target)
        for square, _piece in board.pieces_of(color)
        for target in legal_moves_from(board, square)
    )


def fallback_move(board: BoardState, color: Color) -> tuple[str, str] | None:
    """
    A quick legal move without any search: the first capture if there is
    one, otherwise the first legal move.
    """
    moves = all_legal_moves(board, color)
    for from_square, to_square in moves:
        if to_square in board.pieces:
            return from_square, to_square
    return moves[0] if moves else None
