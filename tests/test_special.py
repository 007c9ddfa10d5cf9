"""
Tests for castling, en passant and promotion.

Test classes:
- TestCastlingValidation
- TestCastlingExecution
- TestEnPassant
- TestPromotion
"""

import pytest

from rules.check import check_for_check
from rules.special import (
    complete_promotion,
    execute_castling,
    execute_en_passant,
    execute_promotion,
    is_castling_valid,
    is_en_passant_valid,
    is_pawn_promotion,
    promotion_kind,
)
from rules.state import BoardState, Color, MoveRecord, Piece, PieceKind, SpecialMove


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def castling_position() -> BoardState:
    """Both white rooks home, nothing between them and the king."""
    return BoardState.from_layout({
        "e1": "king-white",
        "a1": "rook-white",
        "h1": "rook-white",
        "e8": "king-black",
        "a8": "rook-black",
        "h8": "rook-black",
    }, castling_rights="KQkq")


@pytest.fixture
def en_passant_position() -> BoardState:
    """Black pawn d4; white has just played e2-e4."""
    board = BoardState.from_layout({
        "e1": "king-white",
        "e4": "pawn-white",
        "d4": "pawn-black",
        "e8": "king-black",
    }, current_player="black")
    board.last_move = MoveRecord("e2", "e4", Piece(PieceKind.PAWN, Color.WHITE))
    return board


@pytest.fixture
def promotion_position() -> BoardState:
    return BoardState.from_layout({
        "a7": "pawn-white",
        "b8": "knight-black",
        "e1": "king-white",
        "h7": "king-black",
    })


# =============================================================================
# TEST CLASSES
# =============================================================================

class TestCastlingValidation:

    @pytest.mark.parametrize('king_to', [
        pytest.param("g1", id="kingside"),
        pytest.param("c1", id="queenside"),
    ])
    def test_castling_allowed(self, castling_position: BoardState, king_to: str) -> None:
        assert is_castling_valid(castling_position, "e1", king_to)

    def test_black_castles_too(self, castling_position: BoardState) -> None:
        castling_position.current_player = Color.BLACK
        assert is_castling_valid(castling_position, "e8", "g8")
        assert is_castling_valid(castling_position, "e8", "c8")

    def test_lost_right_forbids_castling(self, castling_position: BoardState) -> None:
        castling_position.castling_rights.discard("K")
        assert not is_castling_valid(castling_position, "e1", "g1")
        assert is_castling_valid(castling_position, "e1", "c1")

    def test_piece_in_the_way(self, castling_position: BoardState) -> None:
        castling_position.pieces["b1"] = Piece(PieceKind.KNIGHT, Color.WHITE)
        assert not is_castling_valid(castling_position, "e1", "c1")

    def test_no_castling_out_of_check(self, castling_position: BoardState) -> None:
        castling_position.pieces["e5"] = Piece(PieceKind.ROOK, Color.BLACK)
        assert not is_castling_valid(castling_position, "e1", "g1")
        assert not is_castling_valid(castling_position, "e1", "c1")

    def test_no_castling_through_check(self, castling_position: BoardState) -> None:
        castling_position.pieces["f5"] = Piece(PieceKind.ROOK, Color.BLACK)
        assert not is_castling_valid(castling_position, "e1", "g1")
        assert is_castling_valid(castling_position, "e1", "c1")

    def test_no_castling_into_check(self, castling_position: BoardState) -> None:
        castling_position.pieces["c5"] = Piece(PieceKind.ROOK, Color.BLACK)
        assert not is_castling_valid(castling_position, "e1", "c1")

    def test_attacked_b_file_does_not_matter(self, castling_position: BoardState) -> None:
        # The king never crosses b1; only the rook does.
        castling_position.pieces["b5"] = Piece(PieceKind.ROOK, Color.BLACK)
        assert is_castling_valid(castling_position, "e1", "c1")

    def test_missing_rook(self, castling_position: BoardState) -> None:
        del castling_position.pieces["h1"]
        assert not is_castling_valid(castling_position, "e1", "g1")

    def test_wrong_shape(self, castling_position: BoardState) -> None:
        assert not is_castling_valid(castling_position, "e1", "f1")
        assert not is_castling_valid(castling_position, "a1", "c1")


class TestCastlingExecution:

    def test_kingside_moves_both_pieces(self, castling_position: BoardState) -> None:
        record = execute_castling(castling_position, "e1", "g1")

        assert record.special_move is SpecialMove.CASTLE_KINGSIDE
        assert (record.rook_from, record.rook_to) == ("h1", "f1")
        assert castling_position.pieces["g1"] == Piece(PieceKind.KING, Color.WHITE)
        assert castling_position.pieces["f1"] == Piece(PieceKind.ROOK, Color.WHITE)
        assert "e1" not in castling_position.pieces
        assert "h1" not in castling_position.pieces

    def test_castling_revokes_both_rights(self, castling_position: BoardState) -> None:
        record = execute_castling(castling_position, "e1", "c1")

        assert record.special_move is SpecialMove.CASTLE_QUEENSIDE
        assert castling_position.castling_rights == {"k", "q"}
        assert record.prior_rights == frozenset("KQkq")


class TestEnPassant:

    def test_capture_available_right_after_double_push(self, en_passant_position: BoardState) -> None:
        assert is_en_passant_valid(en_passant_position, "d4", "e3") == "e4"

    def test_capture_removes_the_passed_pawn(self, en_passant_position: BoardState) -> None:
        record = execute_en_passant(en_passant_position, "d4", "e3", "e4")

        assert "e4" not in en_passant_position.pieces
        assert "d4" not in en_passant_position.pieces
        assert en_passant_position.pieces["e3"] == Piece(PieceKind.PAWN, Color.BLACK)
        assert record.capture_position == "e4"
        assert record.captured_piece == Piece(PieceKind.PAWN, Color.WHITE)
        assert en_passant_position.captured_pieces[Color.BLACK] == [Piece(PieceKind.PAWN, Color.WHITE)]

    def test_not_available_a_move_later(self, en_passant_position: BoardState) -> None:
        en_passant_position.last_move = MoveRecord("e8", "e7", Piece(PieceKind.KING, Color.BLACK))
        assert is_en_passant_valid(en_passant_position, "d4", "e3") is None

    def test_missing_victim_is_rejected(self, en_passant_position: BoardState) -> None:
        del en_passant_position.pieces["e4"]
        assert execute_en_passant(en_passant_position, "d4", "e3", "e4") is None


class TestPromotion:

    def test_last_rank_is_promotion(self, promotion_position: BoardState) -> None:
        assert is_pawn_promotion(promotion_position, "a7", "a8")
        assert is_pawn_promotion(promotion_position, "a7", "b8")
        assert not is_pawn_promotion(promotion_position, "e1", "e2")

    def test_two_step_promotion_with_capture(self, promotion_position: BoardState) -> None:
        record = execute_promotion(promotion_position, "a7", "b8")
        # Until a piece is chosen the pawn stands on the last rank.
        assert promotion_position.pieces["b8"] == Piece(PieceKind.PAWN, Color.WHITE)
        assert record.captured_piece == Piece(PieceKind.KNIGHT, Color.BLACK)

        promoted = complete_promotion(promotion_position, record, "knight")
        assert promotion_position.pieces["b8"] == Piece(PieceKind.KNIGHT, Color.WHITE)
        assert promoted.promoted_to is PieceKind.KNIGHT
        assert promoted.uci == "a7b8n"
        assert promotion_position.last_move == promoted

    def test_blocked_promoted_queen_gives_no_check(self, promotion_position: BoardState) -> None:
        record = execute_promotion(promotion_position, "a7", "a8")
        complete_promotion(promotion_position, record, PieceKind.QUEEN)
        # The knight on b8 blocks the rank, the a8-h1 diagonal does not reach h7.
        assert not check_for_check(promotion_position)[Color.BLACK]

    @pytest.mark.parametrize('choice,expected', [
        pytest.param("rook", PieceKind.ROOK, id="rook"),
        pytest.param(PieceKind.BISHOP, PieceKind.BISHOP, id="enum"),
        pytest.param(None, PieceKind.QUEEN, id="default"),
        pytest.param("king", PieceKind.QUEEN, id="king_not_allowed"),
        pytest.param("pawn", PieceKind.QUEEN, id="pawn_not_allowed"),
    ])
    def test_promotion_kind(self, choice, expected: PieceKind) -> None:
        assert promotion_kind(choice) is expected
