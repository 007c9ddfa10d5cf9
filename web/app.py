"""
FastAPI web application for the browser chessboard.

The server holds one game. The browser sends clicks and drags as moves,
reads back the board state it renders, and the engine's reply is computed
within the same request so the client never has to poll.

Architecture notes:
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  which suits the CPU-bound bundled search and the blocking UCI driver.
- One GameController behind one lock: every handler takes the lock for the
  whole read-modify-write, so the controller only ever sees one caller.
- Rejected actions are HTTP 400 with the controller's message as detail;
  malformed squares and piece names never reach it (pydantic, 422).
"""

import logging
import os
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from engine.bridge import EngineBridge, make_engine
from rules.constants import DEFAULT_DIFFICULTY, DIFFICULTIES, PROMOTION_KINDS
from rules.game import GameController, GamePhase, MoveOutcome
from rules.geometry import is_within_board
from rules.state import Color

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

DIFFICULTY_ENV = "CHESSBOARD_DIFFICULTY"


def default_difficulty() -> str:
    value = os.getenv(DIFFICULTY_ENV, "").strip().lower()
    if not value:
        return DEFAULT_DIFFICULTY
    if value not in DIFFICULTIES:
        _log.warning("%s=%s is not a difficulty; using %s", DIFFICULTY_ENV, value, DEFAULT_DIFFICULTY)
        return DEFAULT_DIFFICULTY
    return value


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


def _check_square(value: str) -> str:
    value = value.strip().lower()
    if not is_within_board(value):
        raise ValueError(f"not a board square: {value!r}")
    return value


def _check_difficulty(value: str) -> str:
    value = value.strip().lower()
    if value not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
    return value


def _check_piece(value: str) -> str:
    value = value.strip().lower()
    if value not in PROMOTION_KINDS:
        raise ValueError(f"promotion piece must be one of {', '.join(PROMOTION_KINDS)}")
    return value


class NewGameRequest(BaseModel):
    """
    Fields:
        difficulty:  "easy", "normal" or "hard"; unchanged when omitted.
        human_color: "white" or "black"; the engine plays the other side.
        ai_enabled:  False for a two-player game on one board.
    """

    difficulty: str | None = None
    human_color: str | None = None
    ai_enabled: bool | None = None

    @field_validator("difficulty")
    @classmethod
    def valid_difficulty(cls, v: str | None) -> str | None:
        return None if v is None else _check_difficulty(v)

    @field_validator("human_color")
    @classmethod
    def valid_color(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        if v not in (Color.WHITE.value, Color.BLACK.value):
            raise ValueError("human_color must be white or black")
        return v


class MoveRequest(BaseModel):
    """
    A human move. `promotion` may be given up front; without it a pawn
    reaching the last rank waits for POST /api/promote.
    """

    from_square: str
    to_square: str
    promotion: str | None = None

    @field_validator("from_square", "to_square")
    @classmethod
    def valid_square(cls, v: str) -> str:
        return _check_square(v)

    @field_validator("promotion")
    @classmethod
    def valid_promotion(cls, v: str | None) -> str | None:
        return None if v is None else _check_piece(v)


class PromoteRequest(BaseModel):
    piece: str

    @field_validator("piece")
    @classmethod
    def valid_piece(cls, v: str) -> str:
        return _check_piece(v)


class DifficultyRequest(BaseModel):
    difficulty: str

    @field_validator("difficulty")
    @classmethod
    def valid_difficulty(cls, v: str) -> str:
        return _check_difficulty(v)


class GameStateResponse(BaseModel):
    """
    Everything the board needs to redraw itself.

    Fields:
        message:       Status line for the UI ("Your king is in check by rook!").
        engine_move:   The engine's reply in this request, UCI notation.
        fallback_used: True when the engine's own reply was unusable and a
                       safe default move was played instead.
    """

    fen: str
    pieces: dict[str, str]
    turn: str
    phase: str
    in_check: dict[str, bool]
    captured: dict[str, list[str]]
    last_move: str | None
    history: list[dict]
    difficulty: str
    human_color: str
    ai_enabled: bool
    undos_remaining: int | None
    result: dict | None
    message: str = ""
    engine_move: str | None = None
    fallback_used: bool = False


class MovesResponse(BaseModel):
    square: str
    moves: list[str]


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(engine: EngineBridge | None = None, difficulty: str | None = None) -> FastAPI:
    game = GameController(difficulty=difficulty or default_difficulty())
    engine = engine or make_engine()
    lock = threading.Lock()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        engine.close()

    app = FastAPI(title="Chessboard", version="1.0.0", lifespan=lifespan)

    app.state.game = game
    app.state.engine = engine

    def state(message: str = "", engine_outcome: MoveOutcome | None = None) -> GameStateResponse:
        snap = game.snapshot()
        if engine_outcome is not None and engine_outcome.accepted:
            snap["engine_move"] = engine_outcome.record.uci
            snap["fallback_used"] = engine_outcome.fallback_used
            message = engine_outcome.message or message
        return GameStateResponse(message=message, **snap)

    def engine_turn() -> MoveOutcome | None:
        outcome = game.play_engine_turn(engine)
        if outcome is None:
            return None
        if outcome.accepted:
            _log.info(
                "Engine played %s%s",
                outcome.record.uci,
                " (fallback)" if outcome.fallback_used else "",
            )
        else:
            _log.error("Engine turn failed: %s", outcome.message)
        return outcome

    # -----------------------------------------------------------------------
    # API routes
    # -----------------------------------------------------------------------

    @app.post("/api/new", response_model=GameStateResponse)
    def api_new(request: NewGameRequest | None = None) -> GameStateResponse:
        """Start a new game; the engine replies first when it plays white."""
        request = request or NewGameRequest()
        with lock:
            game.new_game(
                difficulty=request.difficulty,
                human_color=request.human_color,
                ai_enabled=request.ai_enabled,
            )
            return state("New game started", engine_turn())

    @app.get("/api/state", response_model=GameStateResponse)
    def api_state() -> GameStateResponse:
        with lock:
            return state()

    @app.get("/api/moves/{square}", response_model=MovesResponse)
    def api_moves(square: str) -> MovesResponse:
        """Legal destinations for highlighting; empty when it is not that piece's turn."""
        try:
            square = _check_square(square)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        with lock:
            moves = sorted(game.legal_destinations(square)) if game.phase is GamePhase.PLAYING else []
        return MovesResponse(square=square, moves=moves)

    @app.post("/api/move", response_model=GameStateResponse)
    def api_move(request: MoveRequest) -> GameStateResponse:
        """
        Play the human move, then the engine's reply if it is now the
        engine's turn.

        Raises:
            HTTPException 400: The move was rejected (illegal, wrong turn,
                               promotion pending, game over).
        """
        with lock:
            outcome = game.play(request.from_square, request.to_square, promotion=request.promotion)
            if not outcome.accepted:
                raise HTTPException(status_code=400, detail=outcome.message)
            _log.info("Human played %s", outcome.record.uci)
            return state(outcome.message, engine_turn())

    @app.post("/api/promote", response_model=GameStateResponse)
    def api_promote(request: PromoteRequest) -> GameStateResponse:
        with lock:
            outcome = game.choose_promotion(request.piece)
            if not outcome.accepted:
                raise HTTPException(status_code=400, detail=outcome.message)
            return state(outcome.message, engine_turn())

    @app.post("/api/undo", response_model=GameStateResponse)
    def api_undo() -> GameStateResponse:
        with lock:
            outcome = game.undo()
            if not outcome.accepted:
                raise HTTPException(status_code=400, detail=outcome.message)
            return state(outcome.message)

    @app.post("/api/difficulty", response_model=GameStateResponse)
    def api_difficulty(request: DifficultyRequest) -> GameStateResponse:
        with lock:
            game.set_difficulty(request.difficulty)
            return state(f"Difficulty set to {request.difficulty}")

    return app


app = create_app()
