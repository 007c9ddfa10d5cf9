"""
Engine bridge: answers "best move for this FEN at this difficulty" with a
move token ("e2e4", "e7e8q").

Two move sources implement the same interface:

    UciEngine     - drives an external UCI engine (Stockfish or similar)
                    through python-chess's chess.engine module.
    BuiltinEngine - the bundled pure-Python search (engine/search.py).

make_engine() picks the external engine when CHESSBOARD_ENGINE_PATH points
at one and falls back to the bundled search otherwise.

An unusable reply is never an exception for the caller: every failure is
logged and turned into an empty token, which the game controller replaces
with a safe default move.
"""

import logging
import os
import random
from abc import ABC, abstractmethod

import chess
import chess.engine

from engine.constants import (
    BUILTIN_DEPTHS,
    BUILTIN_TIME_LIMIT_MS,
    EASY_CANDIDATES,
    UCI_DEPTHS,
)
from engine.search import score_root_moves

_log = logging.getLogger(__name__)

ENGINE_PATH_ENV = "CHESSBOARD_ENGINE_PATH"


def choose_candidate(
    scored: list[tuple[chess.Move, int]],
    difficulty: str,
    rng: random.Random | None = None,
) -> chess.Move | None:
    """
    Pick a move from candidates sorted best first.

    normal and hard play the best candidate. easy keeps the top
    EASY_CANDIDATES and chooses at random among the weaker half of them.
    """
    if not scored:
        return None
    if difficulty != "easy" or len(scored) == 1:
        return scored[0][0]

    candidates = scored[:EASY_CANDIDATES]
    weaker = candidates[len(candidates) // 2:]
    rng = rng or random
    return rng.choice(weaker)[0]


class EngineBridge(ABC):
    @abstractmethod
    def best_move(self, fen: str, difficulty: str) -> str:
        """Move token for the side to move in `fen`, or "" on failure."""

    def close(self) -> None:
        pass


class BuiltinEngine(EngineBridge):
    def __init__(self, time_limit_ms: int = BUILTIN_TIME_LIMIT_MS, rng: random.Random | None = None) -> None:
        self.time_limit_ms = time_limit_ms
        self.rng = rng or random.Random()

    def best_move(self, fen: str, difficulty: str) -> str:
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            _log.error("Bundled engine got an invalid FEN %r: %s", fen, exc)
            return ""

        depth = BUILTIN_DEPTHS.get(difficulty, BUILTIN_DEPTHS["normal"])
        scored = score_root_moves(board, depth, self.time_limit_ms)
        move = choose_candidate(scored, difficulty, self.rng)
        if move is None:
            _log.info("Bundled engine has no legal move for %s", fen)
            return ""

        _log.info("Bundled engine (%s, depth %d): %s", difficulty, depth, move.uci())
        return move.uci()


class UciEngine(EngineBridge):
    """
    External UCI engine. The process is started lazily on the first request
    and restarted if it dies.
    """

    def __init__(self, path: str, rng: random.Random | None = None) -> None:
        self.path = path
        self.rng = rng or random.Random()
        self._engine: chess.engine.SimpleEngine | None = None

    def _open(self) -> chess.engine.SimpleEngine:
        if self._engine is None:
            _log.info("Starting UCI engine: %s", self.path)
            self._engine = chess.engine.SimpleEngine.popen_uci(self.path)
        return self._engine

    def best_move(self, fen: str, difficulty: str) -> str:
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            _log.error("Invalid FEN for UCI engine %r: %s", fen, exc)
            return ""

        limit = chess.engine.Limit(depth=UCI_DEPTHS.get(difficulty, UCI_DEPTHS["normal"]))
        try:
            engine = self._open()
            if difficulty == "easy":
                move = self._weak_move(engine, board, limit)
            else:
                move = engine.play(board, limit).move
        except chess.engine.EngineTerminatedError as exc:
            _log.error("UCI engine terminated: %s", exc)
            self._engine = None
            return ""
        except (chess.engine.EngineError, OSError) as exc:
            _log.error("UCI engine failed: %s", exc)
            return ""

        if move is None:
            return ""
        _log.info("UCI engine (%s): %s", difficulty, move.uci())
        return move.uci()

    def _weak_move(
        self, engine: chess.engine.SimpleEngine, board: chess.Board, limit: chess.engine.Limit
    ) -> chess.Move | None:
        infos = engine.analyse(board, limit, multipv=EASY_CANDIDATES)
        if not isinstance(infos, list):
            infos = [infos]

        scored = []
        for info in infos:
            pv = info.get("pv", [])
            score = info.get("score")
            if not pv or score is None:
                continue
            scored.append((pv[0], score.relative.score(mate_score=100_000)))
        return choose_candidate(scored, "easy", self.rng)

    def close(self) -> None:
        if self._engine is not None:
            try:
                self._engine.quit()
            except chess.engine.EngineTerminatedError as exc:
                _log.debug("UCI engine already stopped: %s", exc)
            self._engine = None


def make_engine(path: str | None = None) -> EngineBridge:
    """External engine from `path` or CHESSBOARD_ENGINE_PATH, else the bundled one."""
    path = path or os.getenv(ENGINE_PATH_ENV, "").strip()
    if path:
        if os.path.exists(path):
            return UciEngine(path)
        _log.warning("%s=%s does not exist; using the bundled engine", ENGINE_PATH_ENV, path)
    return BuiltinEngine()
