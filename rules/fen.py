"""
FEN construction for the engine request and parsing of the engine's reply.

The engine is fed a FEN string built from the board: ranks 8 to 1,
uppercase letters for white, run-length encoded empty squares, then the
active color, castling rights and en passant target. The halfmove clock
and fullmove number are fixed at "0 1"; the engine does not need them to
choose a move.

The reply is a coordinate move token such as "e2e4" (optionally with a
promotion letter, "e7e8q"). parse_move_token() raises ValueError for
anything else; the orchestrator catches that at the boundary.
"""

import logging
import re

from rules.constants import FILES, FEN_LETTERS, INITIAL_FEN, PAWN_DIRECTION, RANKS
from rules.geometry import offset
from rules.state import BoardState, Color, PieceKind

_log = logging.getLogger(__name__)

_MOVE_TOKEN = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbn])?$")
_KIND_BY_LETTER = {letter: PieceKind(kind) for kind, letter in FEN_LETTERS.items()}
_RIGHTS_ORDER = "KQkq"


def placement_field(board: BoardState) -> str:
    rows = []
    for rank in reversed(RANKS):
        row = ""
        empty = 0
        for file in FILES:
            piece = board.pieces.get(f"{file}{rank}")
            if piece is None:
                empty += 1
                continue
            if empty:
                row += str(empty)
                empty = 0
            row += piece.symbol
        if empty:
            row += str(empty)
        rows.append(row)
    return "/".join(rows)


def castling_field(board: BoardState) -> str:
    rights = "".join(token for token in _RIGHTS_ORDER if token in board.castling_rights)
    return rights or "-"


def en_passant_field(board: BoardState) -> str:
    """The square skipped by a two-square pawn advance on the previous ply."""
    last = board.last_move
    if last is None or not last.is_double_pawn_push:
        return "-"
    skipped = offset(last.from_square, 0, PAWN_DIRECTION[last.color.value])
    return skipped or "-"


def board_to_fen(board: BoardState) -> str:
    active = "w" if board.current_player is Color.WHITE else "b"
    fen = f"{placement_field(board)} {active} {castling_field(board)} {en_passant_field(board)} 0 1"
    if len(fen.split(" ")) != 6:
        _log.warning("Generated malformed FEN %r; falling back to the initial position", fen)
        return INITIAL_FEN
    return fen


def parse_move_token(token: str) -> tuple[str, str, PieceKind | None]:
    """
    Split an engine move token into (from, to, promotion kind or None).

    Raises:
        ValueError: if the token is not a coordinate move.
    """
    match = _MOVE_TOKEN.match((token or "").strip().lower())
    if match is None:
        raise ValueError(f"Malformed engine move: {token!r}")
    from_square, to_square, promotion = match.groups()
    if from_square == to_square:
        raise ValueError(f"Engine move does not go anywhere: {token!r}")
    return from_square, to_square, _KIND_BY_LETTER[promotion] if promotion else None
