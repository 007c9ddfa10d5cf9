"""
Turn and game orchestration.

GameController owns the one BoardState and MoveHistory of a game and is the
only thing that mutates them. Every action follows the same pipeline:

    validate (movement rules + path) -> king-safety simulation
    -> execute (executor or special-move handler)
    -> recompute check flags -> checkmate / stalemate for the opponent
    -> record in history -> switch turn

Two steps can suspend the pipeline, each modelled as an explicit phase that
gates further input:

    AWAITING_PROMOTION - a pawn reached the last rank and no piece was
                         chosen yet; only choose_promotion() is accepted.
    AWAITING_ENGINE    - the engine's side is to move; only
                         deliver_engine_move() is accepted.

GAME_OVER is terminal until undo or new_game(). A reset discards any
pending promotion or engine request simply by rebuilding the state.

Undo is limited per difficulty (easy unlimited, normal 3, hard none). When
the engine's reply follows the human's move, one undo removes both plies so
the human is always left on move.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rules.check import (
    attackers_of,
    check_for_check,
    is_checkmate,
    is_stalemate,
    simulate_move_and_check,
)
from rules.constants import DEFAULT_DIFFICULTY, DIFFICULTIES, UNDO_QUOTAS
from rules.execution import execute_move
from rules.fen import board_to_fen, parse_move_token
from rules.geometry import file_index, is_within_board, rank_of
from rules.history import MoveHistory
from rules.legal import fallback_move, legal_moves_from
from rules.movement import can_reach
from rules.special import (
    complete_promotion,
    execute_castling,
    execute_en_passant,
    execute_promotion,
    is_castling_valid,
    is_en_passant_valid,
    is_pawn_promotion,
)
from rules.state import BoardState, Color, MoveRecord, PieceKind, SpecialMove

_log = logging.getLogger(__name__)


class GamePhase(str, Enum):
    PLAYING = "playing"
    AWAITING_PROMOTION = "awaiting-promotion"
    AWAITING_ENGINE = "awaiting-engine"
    GAME_OVER = "game-over"


class MoveSource(Protocol):
    """Anything that answers best_move(fen, difficulty) with a move token."""

    def best_move(self, fen: str, difficulty: str) -> str: ...


@dataclass
class GameResult:
    reason: str
    winner: Color | None = None

    @property
    def message(self) -> str:
        if self.reason == "checkmate" and self.winner is not None:
            return f"Checkmate! {self.winner.value.capitalize()} wins."
        return "Stalemate! The game is drawn."


@dataclass
class MoveOutcome:
    accepted: bool
    message: str = ""
    record: MoveRecord | None = None
    promotion_pending: bool = False
    check: bool = False
    result: GameResult | None = None
    fallback_used: bool = False


@dataclass
class UndoOutcome:
    accepted: bool
    message: str = ""
    plies: int = 0
    undos_remaining: int | None = None


def _rejected(message: str) -> MoveOutcome:
    return MoveOutcome(accepted=False, message=message)


class GameController:
    def __init__(
        self,
        difficulty: str = DEFAULT_DIFFICULTY,
        human_color: Color | str = Color.WHITE,
        ai_enabled: bool = True,
    ) -> None:
        self.board = BoardState.initial()
        self.history = MoveHistory()
        self.difficulty = DEFAULT_DIFFICULTY
        self.set_difficulty(difficulty)
        self.human_color = Color(human_color)
        self.ai_enabled = ai_enabled
        self.undo_count = 0
        self.phase = GamePhase.PLAYING
        self.result: GameResult | None = None
        self._pending_promotion: MoveRecord | None = None

    # -----------------------------------------------------------------------
    # Game set-up
    # -----------------------------------------------------------------------

    def new_game(
        self,
        difficulty: str | None = None,
        human_color: Color | str | None = None,
        ai_enabled: bool | None = None,
    ) -> None:
        if difficulty is not None:
            self.set_difficulty(difficulty)
        if human_color is not None:
            self.human_color = Color(human_color)
        if ai_enabled is not None:
            self.ai_enabled = ai_enabled
        self.board.reset()
        self.history.clear()
        self.undo_count = 0
        self.phase = GamePhase.PLAYING
        self.result = None
        self._pending_promotion = None
        _log.info(
            "New game: difficulty=%s human=%s ai=%s",
            self.difficulty,
            self.human_color.value,
            "on" if self.ai_enabled else "off",
        )

    def set_difficulty(self, difficulty: str) -> None:
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")
        self.difficulty = difficulty
        _log.info("Difficulty set to %s", difficulty)

    def toggle_ai(self) -> bool:
        self.ai_enabled = not self.ai_enabled
        return self.ai_enabled

    @property
    def engine_color(self) -> Color:
        return self.human_color.opponent

    @property
    def is_engine_turn(self) -> bool:
        return (
            self.ai_enabled
            and self.phase is GamePhase.PLAYING
            and self.board.current_player is self.engine_color
        )

    @property
    def undos_remaining(self) -> int | None:
        quota = UNDO_QUOTAS[self.difficulty]
        if quota is None:
            return None
        return max(0, quota - self.undo_count)

    def legal_destinations(self, square: str) -> set[str]:
        if not is_within_board(square):
            return set()
        piece = self.board.piece_at(square)
        if piece is None or piece.color is not self.board.current_player:
            return set()
        return legal_moves_from(self.board, square)

    # -----------------------------------------------------------------------
    # Moves
    # -----------------------------------------------------------------------

    def play(
        self,
        from_square: str,
        to_square: str,
        promotion: str | PieceKind | None = None,
        by_engine: bool = False,
    ) -> MoveOutcome:
        """
        Validate and apply one move for the side to move.

        A pawn reaching the last rank without a `promotion` choice leaves the
        game in AWAITING_PROMOTION; the outcome is accepted with
        promotion_pending set.
        """
        allowed = GamePhase.AWAITING_ENGINE if by_engine else GamePhase.PLAYING
        if self.phase is not allowed:
            return _rejected(self._phase_message())
        if not by_engine and self.ai_enabled and self.board.current_player is self.engine_color:
            return _rejected("Wait for the engine to move")
        if not (is_within_board(from_square) and is_within_board(to_square)):
            return _rejected("Invalid move")
        if from_square == to_square:
            return _rejected("Invalid move")

        board = self.board
        color = board.current_player
        piece = board.piece_at(from_square)
        if piece is None or piece.color is not color:
            return _rejected("Invalid move")

        record = self._apply(from_square, to_square, piece.kind, color)
        if record is None:
            return _rejected("Invalid move")

        if record.special_move is SpecialMove.PROMOTION:
            if promotion is None:
                self._pending_promotion = record
                self.phase = GamePhase.AWAITING_PROMOTION
                return MoveOutcome(
                    accepted=True,
                    message="Choose a piece for promotion",
                    record=record,
                    promotion_pending=True,
                )
            record = complete_promotion(board, record, promotion)

        return self._finish_move(record)

    def _apply(self, from_square: str, to_square: str, kind: PieceKind, color: Color) -> MoveRecord | None:
        """Route the move to the right handler, or None if it is illegal."""
        board = self.board
        same_rank = rank_of(from_square) == rank_of(to_square)
        file_distance = abs(file_index(to_square) - file_index(from_square))

        if kind is PieceKind.KING and same_rank and file_distance == 2:
            if not is_castling_valid(board, from_square, to_square):
                return None
            return execute_castling(board, from_square, to_square)

        if kind is PieceKind.PAWN and file_distance == 1 and to_square not in board.pieces:
            victim = is_en_passant_valid(board, from_square, to_square)
            if victim is None:
                return None
            if simulate_move_and_check(board, from_square, to_square, color, also_remove=victim):
                return None
            return execute_en_passant(board, from_square, to_square, victim)

        if not can_reach(board, from_square, to_square):
            return None
        if simulate_move_and_check(board, from_square, to_square, color):
            return None
        if is_pawn_promotion(board, from_square, to_square):
            return execute_promotion(board, from_square, to_square)
        return execute_move(board, from_square, to_square)

    def choose_promotion(self, choice: str | PieceKind | None = None) -> MoveOutcome:
        if self.phase is not GamePhase.AWAITING_PROMOTION or self._pending_promotion is None:
            return _rejected("No promotion is pending")
        record = complete_promotion(self.board, self._pending_promotion, choice)
        self._pending_promotion = None
        self.phase = GamePhase.PLAYING
        return self._finish_move(record)

    def _finish_move(self, record: MoveRecord) -> MoveOutcome:
        board = self.board
        mover = record.color
        opponent = mover.opponent

        in_check = check_for_check(board)
        mate = in_check[opponent] and is_checkmate(board, opponent)
        stalemate = not in_check[opponent] and is_stalemate(board, opponent)

        stored = self.history.record_move(record, check=in_check[opponent], mate=mate)
        board.last_move = stored
        board.switch_turn()

        message = ""
        if mate:
            self.result = GameResult("checkmate", winner=mover)
        elif stalemate:
            self.result = GameResult("stalemate")
        elif in_check[opponent]:
            message = self._check_message(opponent)

        if self.result is not None:
            self.phase = GamePhase.GAME_OVER
            message = self.result.message
            _log.info("Game over: %s", message)
        else:
            self.phase = GamePhase.PLAYING

        return MoveOutcome(
            accepted=True,
            message=message,
            record=stored,
            check=in_check[opponent],
            result=self.result,
        )

    def _check_message(self, color: Color) -> str:
        king_square = self.board.king_square(color)
        attackers = attackers_of(self.board, king_square, color) if king_square else []
        by = attackers[0][1].kind.value if attackers else "piece"
        owner = "Your" if color is self.human_color else f"{color.value.capitalize()}'s"
        return f"{owner} king is in check by {by}!"

    def _phase_message(self) -> str:
        return {
            GamePhase.AWAITING_PROMOTION: "Choose a piece for promotion first",
            GamePhase.AWAITING_ENGINE: "Wait for the engine to move",
            GamePhase.GAME_OVER: "The game is over",
        }.get(self.phase, "Invalid move")

    # -----------------------------------------------------------------------
    # Engine turn
    # -----------------------------------------------------------------------

    def request_engine_move(self) -> str | None:
        """
        Enter AWAITING_ENGINE and return the FEN to send to the engine, or
        None when it is not the engine's turn.
        """
        if not self.is_engine_turn:
            return None
        self.phase = GamePhase.AWAITING_ENGINE
        fen = board_to_fen(self.board)
        _log.debug("Engine request (%s): %s", self.difficulty, fen)
        return fen

    def deliver_engine_move(self, token: str) -> MoveOutcome:
        """
        Apply the engine's reply. A malformed or illegal token is replaced
        by a generated safe default move.
        """
        if self.phase is not GamePhase.AWAITING_ENGINE:
            return _rejected("No engine move was requested")

        try:
            from_square, to_square, promotion = parse_move_token(token)
        except ValueError as exc:
            _log.warning("%s; using a fallback move", exc)
        else:
            outcome = self.play(from_square, to_square, promotion=promotion or "queen", by_engine=True)
            if outcome.accepted:
                return outcome
            _log.warning("Engine move %s rejected (%s); using a fallback move", token, outcome.message)

        fallback = fallback_move(self.board, self.board.current_player)
        if fallback is None:
            self.phase = GamePhase.PLAYING
            return _rejected("The engine has no legal move")
        outcome = self.play(*fallback, promotion="queen", by_engine=True)
        outcome.fallback_used = True
        return outcome

    def play_engine_turn(self, engine: MoveSource) -> MoveOutcome | None:
        """Request, compute and deliver the engine's move in one call."""
        fen = self.request_engine_move()
        if fen is None:
            return None
        return self.deliver_engine_move(engine.best_move(fen, self.difficulty))

    # -----------------------------------------------------------------------
    # Undo
    # -----------------------------------------------------------------------

    def undo(self) -> UndoOutcome:
        if self.phase in (GamePhase.AWAITING_ENGINE, GamePhase.AWAITING_PROMOTION):
            return UndoOutcome(False, self._phase_message(), undos_remaining=self.undos_remaining)

        quota = UNDO_QUOTAS[self.difficulty]
        if quota == 0:
            return UndoOutcome(False, "Undo is disabled on hard difficulty", undos_remaining=0)
        if quota is not None and self.undo_count >= quota:
            return UndoOutcome(False, "No undos remaining", undos_remaining=0)

        plies = self._plies_to_undo()
        if plies == 0:
            return UndoOutcome(False, "No moves to undo", undos_remaining=self.undos_remaining)

        for _ in range(plies):
            self.history.undo_last_move(self.board)

        check_for_check(self.board)
        self.undo_count += 1
        self.phase = GamePhase.PLAYING
        self.result = None
        _log.debug("Undid %d ply (undo #%d)", plies, self.undo_count)

        remaining = self.undos_remaining
        message = "Move undone" if remaining is None else f"Move undone ({remaining} undos left)"
        return UndoOutcome(True, message, plies=plies, undos_remaining=remaining)

    def _plies_to_undo(self) -> int:
        records = self.history.records
        if not records:
            return 0
        if not self.ai_enabled:
            return 1
        if records[-1].color is self.engine_color:
            # The engine's reply goes together with the human move before it.
            if len(records) < 2:
                return 0
            return 2
        return 1

    # -----------------------------------------------------------------------
    # Read access for the UI layer
    # -----------------------------------------------------------------------

    def snapshot(self) -> dict:
        board = self.board
        return {
            "fen": board_to_fen(board),
            "pieces": {square: piece.label for square, piece in sorted(board.pieces.items())},
            "turn": board.current_player.value,
            "phase": self.phase.value,
            "in_check": {color.value: flag for color, flag in board.in_check.items()},
            "captured": {
                color.value: [piece.label for piece in pieces]
                for color, pieces in board.captured_pieces.items()
            },
            "last_move": board.last_move.uci if board.last_move else None,
            "history": self.history.rows(),
            "difficulty": self.difficulty,
            "human_color": self.human_color.value,
            "ai_enabled": self.ai_enabled,
            "undos_remaining": self.undos_remaining,
            "result": (
                {
                    "reason": self.result.reason,
                    "winner": self.result.winner.value if self.result.winner else None,
                    "message": self.result.message,
                }
                if self.result
                else None
            ),
        }
