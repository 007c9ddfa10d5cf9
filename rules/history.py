"""
Move history and undo.

The history is an append-only list of MoveRecords. Each recorded move gets
the current move-pair number (one number covers a white ply and the black
reply; it advances after every black move) and its algebraic notation.

undo_last_move() pops the newest record and applies the exact inverse of
whatever the executor or special-move handler did, including the rook of a
castling move, the en passant victim on its real square, captured-piece
bookkeeping, castling rights and last_move.
"""

import logging

from rules.constants import CASTLING_LAYOUT, NOTATION_LETTERS
from rules.state import BoardState, Color, MoveRecord, Piece, PieceKind, SpecialMove

_log = logging.getLogger(__name__)


def format_notation(record: MoveRecord, check: bool = False, mate: bool = False) -> str:
    """Short algebraic notation, e.g. "Nf3", "exd6 e.p.", "O-O", "e8=Q+"."""
    if record.special_move is SpecialMove.CASTLE_KINGSIDE:
        text = "O-O"
    elif record.special_move is SpecialMove.CASTLE_QUEENSIDE:
        text = "O-O-O"
    else:
        letter = NOTATION_LETTERS[record.piece.kind.value]
        if record.is_capture:
            if record.piece.kind is PieceKind.PAWN:
                letter = record.from_square[0]
            text = f"{letter}x{record.to_square}"
        else:
            text = f"{letter}{record.to_square}"
        if record.promoted_to is not None:
            text += f"={NOTATION_LETTERS[record.promoted_to.value]}"

    if mate:
        text += "#"
    elif check:
        text += "+"

    if record.special_move is SpecialMove.EN_PASSANT:
        text += " e.p."
    return text


def _remove_captured(board: BoardState, capturer: Color, piece: Piece) -> None:
    captured = board.captured_pieces[capturer]
    for index in range(len(captured) - 1, -1, -1):
        if captured[index] == piece:
            del captured[index]
            return
    _log.error("Captured %s missing from %s's captured list", piece, capturer.value)


def _rook_squares(record: MoveRecord) -> tuple[str, str, Piece]:
    """Rook origin, destination and value for a castling record."""
    if record.rook_from and record.rook_to:
        rook = record.rook_piece or Piece(PieceKind.ROOK, record.color)
        return record.rook_from, record.rook_to, rook
    # Older records without rook fields: rebuild from color and side.
    for color, king_to, rook_from, rook_to in CASTLING_LAYOUT.values():
        if color == record.color.value and king_to == record.to_square:
            return rook_from, rook_to, Piece(PieceKind.ROOK, record.color)
    raise ValueError(f"Cannot locate the rook for castling record {record.uci}")


class MoveHistory:
    def __init__(self) -> None:
        self.records: list[MoveRecord] = []
        self.move_number: int = 1

    def __len__(self) -> int:
        return len(self.records)

    @property
    def last(self) -> MoveRecord | None:
        return self.records[-1] if self.records else None

    def clear(self) -> None:
        self.records.clear()
        self.move_number = 1

    def record_move(self, record: MoveRecord, check: bool = False, mate: bool = False) -> MoveRecord:
        stored = record.with_fields(
            move_number=self.move_number,
            notation=format_notation(record, check=check, mate=mate),
        )
        self.records.append(stored)
        if stored.color is Color.BLACK:
            self.move_number += 1
        _log.debug("Move recorded: %d. %s (%s)", stored.move_number, stored.notation, stored.uci)
        return stored

    def undo_last_move(self, board: BoardState) -> bool:
        """Reverse the newest move on `board`. False when there is nothing to undo."""
        if not self.records:
            _log.debug("No moves to undo")
            return False

        record = self.records.pop()

        if record.is_castling:
            rook_from, rook_to, rook = _rook_squares(record)
            board.pieces.pop(record.to_square, None)
            board.pieces.pop(rook_to, None)
            board.pieces[rook_from] = rook
        elif record.special_move is SpecialMove.EN_PASSANT:
            board.pieces.pop(record.to_square, None)
            board.pieces[record.capture_square] = record.captured_piece
            _remove_captured(board, record.color, record.captured_piece)
        elif record.captured_piece is not None:
            board.pieces[record.to_square] = record.captured_piece
            _remove_captured(board, record.color, record.captured_piece)
        else:
            board.pieces.pop(record.to_square, None)

        # record.piece is the pawn for promotions, not the promoted piece.
        board.pieces[record.from_square] = record.piece
        board.current_player = record.color
        board.castling_rights = set(record.prior_rights)
        board.last_move = self.last
        self.move_number = record.move_number

        _log.debug("Move undone: %s from %s to %s", record.piece, record.from_square, record.to_square)
        return True

    def rows(self) -> list[dict]:
        """One row per move pair, for the move-history table."""
        table: dict[int, dict] = {}
        for record in self.records:
            row = table.setdefault(
                record.move_number, {"number": record.move_number, "white": None, "black": None}
            )
            row[record.color.value] = record.notation
        return list(table.values())
