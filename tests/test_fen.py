"""
Tests for FEN generation and engine move-token parsing.

Test classes:
- TestBoardToFen
- TestParseMoveToken
"""

import pytest

import rules.fen
from rules.constants import INITIAL_FEN
from rules.fen import board_to_fen, parse_move_token
from rules.game import GameController
from rules.state import BoardState, PieceKind


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def two_player_game() -> GameController:
    return GameController(ai_enabled=False)


# =============================================================================
# TEST CLASSES
# =============================================================================

class TestBoardToFen:

    def test_initial_position(self) -> None:
        assert board_to_fen(BoardState.initial()) == INITIAL_FEN
        assert INITIAL_FEN == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

    def test_double_push_sets_en_passant_square(self, two_player_game: GameController) -> None:
        two_player_game.play("e2", "e4")
        assert board_to_fen(two_player_game.board) == (
            "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
        )

    def test_single_step_clears_en_passant_square(self, two_player_game: GameController) -> None:
        two_player_game.play("e2", "e4")
        two_player_game.play("g8", "f6")
        assert board_to_fen(two_player_game.board).split(" ")[3] == "-"

    def test_castling_rights_follow_the_game(self, two_player_game: GameController) -> None:
        for from_square, to_square in [("e2", "e4"), ("e7", "e5"), ("e1", "e2"), ("a7", "a6")]:
            assert two_player_game.play(from_square, to_square).accepted
        assert board_to_fen(two_player_game.board).split(" ")[2] == "kq"

    def test_no_rights_is_a_dash(self) -> None:
        board = BoardState.from_layout({"e1": "king-white", "e8": "king-black"}, current_player="black")
        assert board_to_fen(board) == "4k3/8/8/8/8/8/8/4K3 b - - 0 1"

    def test_clock_fields_are_fixed(self, two_player_game: GameController) -> None:
        for from_square, to_square in [("g1", "f3"), ("g8", "f6"), ("f3", "g1")]:
            two_player_game.play(from_square, to_square)
        assert board_to_fen(two_player_game.board).endswith(" 0 1")

    def test_malformed_fen_falls_back_to_initial(
        self, monkeypatch: pytest.MonkeyPatch, two_player_game: GameController
    ) -> None:
        two_player_game.play("e2", "e4")
        monkeypatch.setattr(rules.fen, "castling_field", lambda board: "K Q")
        assert board_to_fen(two_player_game.board) == INITIAL_FEN


class TestParseMoveToken:

    @pytest.mark.parametrize('token,expected', [
        pytest.param("e2e4", ("e2", "e4", None), id="plain"),
        pytest.param("e7e8q", ("e7", "e8", PieceKind.QUEEN), id="queen_promotion"),
        pytest.param("a2a1n", ("a2", "a1", PieceKind.KNIGHT), id="knight_promotion"),
        pytest.param(" G1F3 ", ("g1", "f3", None), id="case_and_whitespace"),
    ])
    def test_valid_tokens(self, token: str, expected: tuple) -> None:
        assert parse_move_token(token) == expected

    @pytest.mark.parametrize('token', [
        pytest.param("", id="empty"),
        pytest.param(None, id="none"),
        pytest.param("e2", id="half_move"),
        pytest.param("e2-e4", id="dash"),
        pytest.param("e9e4", id="off_board"),
        pytest.param("e7e8k", id="king_promotion"),
        pytest.param("e2e2", id="null_move"),
        pytest.param("(none)", id="engine_none"),
        pytest.param("Nf3", id="san"),
    ])
    def test_malformed_tokens(self, token) -> None:
        with pytest.raises(ValueError):
            parse_move_token(token)
