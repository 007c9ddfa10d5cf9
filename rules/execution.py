"""
Move executor: applies an already-validated ordinary move to the board.

No legality or king-safety checks happen here; callers validate first.
The executor handles capture bookkeeping, castling-right revocation and
stamping last_move, and hands back the MoveRecord for the history.
"""

import logging

from rules.constants import CASTLING_LAYOUT, KING_HOME
from rules.state import BoardState, MoveRecord, PieceKind, SpecialMove

_log = logging.getLogger(__name__)


def revoke_castling_rights(board: BoardState, *squares: str) -> None:
    """
    Drop every castling right tied to one of `squares`: a king leaving its
    home square, or a rook leaving (or being captured on) its corner.
    """
    for token, (color, _king_to, rook_from, _rook_to) in CASTLING_LAYOUT.items():
        if KING_HOME[color] in squares or rook_from in squares:
            board.castling_rights.discard(token)


def execute_move(
    board: BoardState,
    from_square: str,
    to_square: str,
    special_move: SpecialMove | None = None,
) -> MoveRecord | None:
    """
    Relocate the piece on from_square to to_square, capturing whatever
    stands there. Returns None when there is nothing to move, or when the
    capture target is a king (an invariant violation that is never expected
    in valid play).
    """
    piece = board.pieces.get(from_square)
    if piece is None:
        return None

    captured = board.pieces.get(to_square)
    if captured is not None and captured.kind is PieceKind.KING:
        _log.error("Rejected capture of the %s king on %s", captured.color.value, to_square)
        return None

    record = MoveRecord(
        from_square=from_square,
        to_square=to_square,
        piece=piece,
        captured_piece=captured,
        special_move=special_move,
        prior_rights=frozenset(board.castling_rights),
    )

    if captured is not None:
        board.captured_pieces[piece.color].append(captured)

    del board.pieces[from_square]
    board.pieces[to_square] = piece
    revoke_castling_rights(board, from_square, to_square)
    board.last_move = record
    return record
