"""
Path and occupancy validation: geometric helpers shared by the movement
rules and check detection.

Squares are algebraic strings ("a1".."h8"). Every helper here is pure; none
of them mutate the board they are given.
"""

from rules.constants import FILES, RANKS
from rules.state import BoardState, Color


def file_index(square: str) -> int:
    """0-based file index: a -> 0, h -> 7."""
    return FILES.index(square[0])


def rank_of(square: str) -> int:
    return int(square[1])


def square_name(file_idx: int, rank: int) -> str:
    return f"{FILES[file_idx]}{rank}"


def all_squares() -> list[str]:
    return [square_name(f, r) for r in RANKS for f in range(8)]


def is_within_board(square: str | None) -> bool:
    """True for a well-formed algebraic square such as "e4"."""
    if not square or len(square) != 2:
        return False
    return square[0] in FILES and square[1] in "12345678"


def offset(square: str, file_delta: int, rank_delta: int) -> str | None:
    """The square reached by stepping from `square`, or None off the board."""
    f = file_index(square) + file_delta
    r = rank_of(square) + rank_delta
    if 0 <= f < 8 and 1 <= r <= 8:
        return square_name(f, r)
    return None


def get_move_distance(from_square: str, to_square: str) -> tuple[int, int]:
    """Absolute (file_diff, rank_diff) between two squares."""
    return (
        abs(file_index(to_square) - file_index(from_square)),
        abs(rank_of(to_square) - rank_of(from_square)),
    )


def is_straight_move(from_square: str, to_square: str) -> bool:
    return from_square[0] == to_square[0] or from_square[1] == to_square[1]


def is_diagonal_move(from_square: str, to_square: str) -> bool:
    file_diff, rank_diff = get_move_distance(from_square, to_square)
    return file_diff == rank_diff


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def squares_between(from_square: str, to_square: str) -> list[str]:
    """
    Squares strictly between two colinear squares, walking from `from_square`.

    Precondition: the squares share a file, rank or diagonal. The caller is
    responsible for that; non-colinear input gives an empty list.
    """
    if from_square == to_square:
        return []
    if not (is_straight_move(from_square, to_square) or is_diagonal_move(from_square, to_square)):
        return []

    file_step = _sign(file_index(to_square) - file_index(from_square))
    rank_step = _sign(rank_of(to_square) - rank_of(from_square))

    between = []
    current = offset(from_square, file_step, rank_step)
    while current is not None and current != to_square:
        between.append(current)
        current = offset(current, file_step, rank_step)
    return between


def is_path_clear(board: BoardState, from_square: str, to_square: str) -> bool:
    """True when no piece stands strictly between the two squares."""
    return all(square not in board.pieces for square in squares_between(from_square, to_square))


def is_opponent_piece(board: BoardState, square: str, color: Color) -> bool:
    piece = board.pieces.get(square)
    return piece is not None and piece.color is not color


def is_own_piece(board: BoardState, square: str, color: Color) -> bool:
    piece = board.pieces.get(square)
    return piece is not None and piece.color is color


def get_square_color(square: str) -> str:
    """Return "dark" or "light"; a1 is dark."""
    return "dark" if (file_index(square) + rank_of(square) - 1) % 2 == 0 else "light"
