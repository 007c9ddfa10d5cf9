"""
Static evaluation for the bundled engine: material plus a small bonus for
central occupation.

The score is always returned from the perspective of the side to move, the
negamax convention: positive means the side to move is ahead.
"""

import chess

from engine.constants import CENTER_BONUS, CENTER_SQUARES, PIECE_VALUES


def evaluate(board: chess.Board) -> int:
    """
    Centipawn evaluation from the side-to-move's perspective.

    Args:
        board: The position to score. Not modified.

    Returns:
        Positive when the side to move is ahead.

    Example:
        >>> import chess
        >>> evaluate(chess.Board())
        0
    """
    score = 0  # White minus Black

    for piece_type, value in PIECE_VALUES.items():
        if piece_type == chess.KING:
            continue
        score += value * len(board.pieces(piece_type, chess.WHITE))
        score -= value * len(board.pieces(piece_type, chess.BLACK))

    for square in CENTER_SQUARES:
        piece = board.piece_at(square)
        if piece is not None:
            score += CENTER_BONUS if piece.color == chess.WHITE else -CENTER_BONUS

    return score if board.turn == chess.WHITE else -score
