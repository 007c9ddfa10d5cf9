"""
Tests for move history: notation, move numbering and exact undo.

Games are played through a GameController with the engine switched off so
every ply is a hand-made move.

Test classes:
- TestNotation
- TestMoveNumbers
- TestUndoIsExactInverse
"""

import pytest

from rules.constants import INITIAL_FEN
from rules.game import GameController
from rules.history import MoveHistory, format_notation
from rules.state import BoardState, Color, MoveRecord, Piece, PieceKind, SpecialMove

ITALIAN_CASTLES = ["e2e4", "e7e5", "g1f3", "b8c6", "f1c4", "f8c5", "e1g1", "g8f6", "d2d3", "e8g8"]
QUEENSIDE_CASTLES = ["d2d4", "d7d5", "b1c3", "b8c6", "c1f4", "c8f5", "d1d2", "d8d7", "e1c1", "e8c8"]
EN_PASSANT = ["a2a3", "d7d5", "a3a4", "d5d4", "e2e4", "d4e3"]
PROMOTION = ["a2a4", "b7b5", "a4b5", "a7a6", "b5a6", "c8b7", "a6b7", "g8f6", "b7a8q"]
SCHOLARS_MATE = ["e2e4", "e7e5", "f1c4", "b8c6", "d1h5", "g8f6", "h5f7"]

PROMOTION_NAMES = {"q": "queen", "r": "rook", "b": "bishop", "n": "knight"}


def play_line(game: GameController, moves: list[str]) -> None:
    for uci in moves:
        promotion = PROMOTION_NAMES.get(uci[4:]) if len(uci) == 5 else None
        outcome = game.play(uci[:2], uci[2:4], promotion=promotion)
        assert outcome.accepted, f"{uci}: {outcome.message}"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def two_player_game() -> GameController:
    """Unlimited undos, both sides moved by hand."""
    return GameController(difficulty="easy", ai_enabled=False)


# =============================================================================
# TEST CLASSES
# =============================================================================

class TestNotation:

    def test_castling_notation(self, two_player_game: GameController) -> None:
        play_line(two_player_game, ITALIAN_CASTLES)
        rows = two_player_game.history.rows()
        assert rows[3] == {"number": 4, "white": "O-O", "black": "Nf6"}
        assert rows[4] == {"number": 5, "white": "d3", "black": "O-O"}

    def test_queenside_castling_notation(self, two_player_game: GameController) -> None:
        play_line(two_player_game, QUEENSIDE_CASTLES)
        assert two_player_game.history.rows()[-1] == {"number": 5, "white": "O-O-O", "black": "O-O-O"}

    def test_en_passant_notation(self, two_player_game: GameController) -> None:
        play_line(two_player_game, EN_PASSANT)
        assert two_player_game.history.last.notation == "dxe3 e.p."

    def test_pawn_captures_and_promotion(self, two_player_game: GameController) -> None:
        play_line(two_player_game, PROMOTION)
        notations = [record.notation for record in two_player_game.history.records]
        assert notations[2] == "axb5"
        assert notations[4] == "bxa6"
        assert notations[-1] == "bxa8=Q"

    def test_mate_suffix(self, two_player_game: GameController) -> None:
        play_line(two_player_game, SCHOLARS_MATE)
        assert two_player_game.history.last.notation == "Qxf7#"

    def test_check_suffix(self, two_player_game: GameController) -> None:
        play_line(two_player_game, ["e2e4", "f7f5", "d1h5"])
        assert two_player_game.history.last.notation == "Qh5+"

    def test_format_notation_for_a_bare_record(self) -> None:
        record = MoveRecord("g1", "f3", Piece(PieceKind.KNIGHT, Color.WHITE))
        assert format_notation(record) == "Nf3"
        assert format_notation(record, check=True) == "Nf3+"
        assert format_notation(record, check=True, mate=True) == "Nf3#"


class TestMoveNumbers:

    def test_number_advances_after_black(self) -> None:
        history = MoveHistory()
        white = history.record_move(MoveRecord("e2", "e4", Piece(PieceKind.PAWN, Color.WHITE)))
        black = history.record_move(MoveRecord("e7", "e5", Piece(PieceKind.PAWN, Color.BLACK)))
        third = history.record_move(MoveRecord("g1", "f3", Piece(PieceKind.KNIGHT, Color.WHITE)))

        assert (white.move_number, black.move_number, third.move_number) == (1, 1, 2)
        assert history.move_number == 2
        assert len(history) == 3

    def test_rows_leave_black_open(self, two_player_game: GameController) -> None:
        play_line(two_player_game, ["e2e4", "e7e5", "g1f3"])
        assert two_player_game.history.rows() == [
            {"number": 1, "white": "e4", "black": "e5"},
            {"number": 2, "white": "Nf3", "black": None},
        ]

    def test_undo_rewinds_the_counter(self, two_player_game: GameController) -> None:
        play_line(two_player_game, ["e2e4", "e7e5"])
        two_player_game.undo()
        assert two_player_game.history.move_number == 1
        play_line(two_player_game, ["d7d5"])
        assert two_player_game.history.rows() == [{"number": 1, "white": "e4", "black": "d5"}]

    def test_undo_on_empty_history(self) -> None:
        assert not MoveHistory().undo_last_move(BoardState.initial())


class TestUndoIsExactInverse:

    @pytest.mark.parametrize('line', [
        pytest.param(ITALIAN_CASTLES, id="kingside_castling"),
        pytest.param(QUEENSIDE_CASTLES, id="queenside_castling"),
        pytest.param(EN_PASSANT, id="en_passant"),
        pytest.param(PROMOTION, id="promotion_capture"),
        pytest.param(SCHOLARS_MATE, id="checkmate"),
    ])
    def test_every_ply_undoes_cleanly(self, two_player_game: GameController, line: list[str]) -> None:
        for uci in line:
            before = two_player_game.snapshot()
            play_line(two_player_game, [uci])
            assert two_player_game.undo().accepted
            assert two_player_game.snapshot() == before
            play_line(two_player_game, [uci])

    def test_whole_game_unwinds_to_start(self, two_player_game: GameController) -> None:
        play_line(two_player_game, PROMOTION)
        while two_player_game.history.records:
            assert two_player_game.undo().accepted
        assert two_player_game.snapshot()["fen"] == INITIAL_FEN
        assert two_player_game.board.captured_pieces == {Color.WHITE: [], Color.BLACK: []}
        assert two_player_game.board.castling_rights == {"K", "Q", "k", "q"}

    def test_en_passant_victim_returns_to_its_square(self, two_player_game: GameController) -> None:
        play_line(two_player_game, EN_PASSANT)
        assert "e4" not in two_player_game.board.pieces

        two_player_game.undo()
        board = two_player_game.board
        assert board.pieces["e4"] == Piece(PieceKind.PAWN, Color.WHITE)
        assert board.pieces["d4"] == Piece(PieceKind.PAWN, Color.BLACK)
        assert "e3" not in board.pieces
        assert board.last_move.uci == "e2e4"

    def test_castling_rook_returns(self, two_player_game: GameController) -> None:
        play_line(two_player_game, ITALIAN_CASTLES[:7])
        assert two_player_game.history.last.special_move is SpecialMove.CASTLE_KINGSIDE

        two_player_game.undo()
        board = two_player_game.board
        assert board.pieces["e1"] == Piece(PieceKind.KING, Color.WHITE)
        assert board.pieces["h1"] == Piece(PieceKind.ROOK, Color.WHITE)
        assert "f1" not in board.pieces and "g1" not in board.pieces
        assert {"K", "Q"} <= board.castling_rights

    def test_promotion_undo_restores_the_pawn(self, two_player_game: GameController) -> None:
        play_line(two_player_game, PROMOTION)
        two_player_game.undo()
        board = two_player_game.board
        assert board.pieces["b7"] == Piece(PieceKind.PAWN, Color.WHITE)
        assert board.pieces["a8"] == Piece(PieceKind.ROOK, Color.BLACK)
        assert board.current_player is Color.WHITE
