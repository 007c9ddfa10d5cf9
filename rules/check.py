"""
Check detection: king safety, move simulation, checkmate and stalemate.

Attack tests reuse the movement predicates. The exception is the pawn,
which attacks one square diagonally forward regardless of how it moves.
Sliding attacks are additionally gated by is_path_clear().

Simulation never touches the caller's board: it clones the state, applies
a raw relocation (no special-move bookkeeping, since only king safety
matters) and asks whether the mover's king is attacked afterwards.

Game termination, evaluated for the side that has just been moved against:

    in_check and is_checkmate   -> game over, the other side wins
    not in_check and is_stalemate -> game over, drawn
    otherwise                   -> play continues
"""

import logging

from rules.geometry import is_path_clear, squares_between
from rules.movement import (
    MOVE_PREDICATES,
    can_reach,
    en_passant_targets,
    get_king_moves,
    pawn_attacks,
    possible_moves,
)
from rules.state import BoardState, Color, Piece, PieceKind

_log = logging.getLogger(__name__)


def attacks_square(board: BoardState, from_square: str, target: str) -> bool:
    """True if the piece on from_square attacks `target`."""
    piece = board.pieces.get(from_square)
    if piece is None or from_square == target:
        return False
    if piece.kind is PieceKind.PAWN:
        return pawn_attacks(from_square, target, piece.color)
    if not MOVE_PREDICATES[piece.kind](board, from_square, target, piece.color):
        return False
    if piece.kind.is_slider:
        return is_path_clear(board, from_square, target)
    return True


def attackers_of(board: BoardState, square: str, color: Color) -> list[tuple[str, Piece]]:
    """Opposing pieces (relative to `color`) that attack `square`."""
    return [
        (origin, piece)
        for origin, piece in board.pieces.items()
        if piece.color is not color and attacks_square(board, origin, square)
    ]


def is_king_in_check(king_square: str | None, king_color: Color, board: BoardState) -> bool:
    if king_square is None:
        # Only reachable through an upstream bug; assume the worst.
        _log.error("No %s king on the board; treating it as in check", king_color.value)
        return True
    for origin, piece in board.pieces.items():
        if piece.color is king_color:
            continue
        if attacks_square(board, origin, king_square):
            return True
    return False


def check_for_check(board: BoardState) -> dict[Color, bool]:
    """Recompute both check flags and store them on the board."""
    board.in_check = {
        color: is_king_in_check(board.king_square(color), color, board)
        for color in (Color.WHITE, Color.BLACK)
    }
    for color, checked in board.in_check.items():
        if checked:
            _log.debug("%s king is in check", color.value)
    return board.in_check


def simulate_move_and_check(
    board: BoardState,
    from_square: str,
    to_square: str,
    color: Color,
    also_remove: str | None = None,
) -> bool:
    """
    True if moving from_square -> to_square would leave `color`'s king in
    check. also_remove clears one more square in the simulation, which is
    where an en passant victim stands.
    """
    target = board.pieces.get(to_square)
    if target is not None and target.kind is PieceKind.KING:
        _log.warning("Refusing to simulate capture of the %s king on %s", target.color.value, to_square)
        return True

    clone = board.copy()
    piece = clone.pieces.pop(from_square, None)
    if piece is None:
        _log.error("Simulation asked to move from empty square %s", from_square)
        return True
    clone.pieces[to_square] = piece
    if also_remove is not None:
        clone.pieces.pop(also_remove, None)

    king_square = to_square if piece.kind is PieceKind.KING else clone.king_square(color)
    return is_king_in_check(king_square, color, clone)


def _safe_destinations(board: BoardState, square: str, color: Color) -> list[str]:
    """Ordinary and en passant destinations that keep the king safe."""
    safe = [
        target
        for target in possible_moves(board, square, color)
        if not simulate_move_and_check(board, square, target, color)
    ]
    for target, victim in en_passant_targets(board, square).items():
        if not simulate_move_and_check(board, square, target, color, also_remove=victim):
            safe.append(target)
    return safe


def has_legal_move(board: BoardState, color: Color) -> bool:
    return any(_safe_destinations(board, square, color) for square, _ in board.pieces_of(color))


def is_checkmate(board: BoardState, color: Color) -> bool:
    """
    Only meaningful while board.in_check[color] is set.

    Escape routes, in order: a king step to a safe square; with a single
    checker, capturing it or (for a sliding checker) interposing on a square
    strictly between it and the king. A double check can only be met by a
    king move.
    """
    if not board.in_check.get(color):
        return False

    king_square = board.king_square(color)
    if king_square is None:
        _log.error("Checkmate test for %s without a king on the board", color.value)
        return False

    for target in get_king_moves(board, king_square, color):
        if not simulate_move_and_check(board, king_square, target, color):
            return False

    attackers = attackers_of(board, king_square, color)
    if len(attackers) > 1:
        return True
    if not attackers:
        _log.warning("%s flagged in check but no attacker found", color.value)
        return False

    attacker_square, attacker = attackers[0]
    targets = [attacker_square]
    if attacker.kind.is_slider:
        targets.extend(squares_between(king_square, attacker_square))

    for square, piece in board.pieces_of(color):
        if piece.kind is PieceKind.KING:
            continue
        for target in targets:
            if can_reach(board, square, target) and not simulate_move_and_check(
                board, square, target, color
            ):
                return False
        if attacker.kind is PieceKind.PAWN:
            for target, victim in en_passant_targets(board, square).items():
                if victim == attacker_square and not simulate_move_and_check(
                    board, square, target, color, also_remove=victim
                ):
                    return False

    return True


def is_stalemate(board: BoardState, color: Color) -> bool:
    """Not in check, yet no piece of `color` has a legal move."""
    if board.in_check.get(color):
        return False
    return not has_legal_move(board, color)
