"""
Bundled search: negamax with alpha-beta pruning, quiescence search and
MVV-LVA move ordering, over python-chess boards.

Unlike a pure best-move search, score_root_moves() scores every legal root
move with a full window. The bridge needs the whole ranked list: normal and
hard play take the top entry, easy play samples among weaker candidates.

The search runs iterative deepening up to the requested depth and keeps the
last fully completed iteration when the time budget runs out.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable

import chess

from engine.constants import CHECKMATE_SCORE, DRAW_SCORE, PIECE_VALUES, TIME_CHECK_NODES
from engine.evaluate import evaluate


@dataclass
class SearchState:
    """
    Mutable bookkeeping for one search.

    Attributes:
        deadline:   time.monotonic() value after which the search stops.
        node_count: Positions visited so far.
        stopped:    Set once the deadline passes; partial results are discarded.
    """

    deadline: float = field(default_factory=lambda: float("inf"))
    node_count: int = 0
    stopped: bool = False

    def tick(self) -> bool:
        """Count a node; return True when the search must stop."""
        self.node_count += 1
        if self.node_count % TIME_CHECK_NODES == 0 and time.monotonic() >= self.deadline:
            self.stopped = True
        return self.stopped


def order_moves(board: chess.Board, moves: Iterable[chess.Move]) -> list[chess.Move]:
    """
    Captures first, most valuable victim by least valuable attacker
    (PxQ before QxP); quiet moves last.
    """

    def _mvv_lva_score(move: chess.Move) -> int:
        if not board.is_capture(move):
            return 0
        attacker = board.piece_at(move.from_square)
        victim = board.piece_at(move.to_square)
        attacker_val = PIECE_VALUES.get(attacker.piece_type, 0) if attacker else 0
        # En passant: the victim is not on to_square.
        victim_val = PIECE_VALUES[victim.piece_type] if victim else PIECE_VALUES[chess.PAWN]
        return 10_000 + victim_val - attacker_val

    return sorted(moves, key=_mvv_lva_score, reverse=True)


def quiescence(board: chess.Board, alpha: int, beta: int, state: SearchState) -> int:
    """Search captures only until the position is quiet."""
    if state.tick():
        return 0

    stand_pat = evaluate(board)
    if stand_pat >= beta:
        return beta
    alpha = max(alpha, stand_pat)

    captures = [m for m in board.legal_moves if board.is_capture(m)]
    for move in order_moves(board, captures):
        board.push(move)
        score = -quiescence(board, -beta, -alpha, state)
        board.pop()
        if score >= beta:
            return beta
        alpha = max(alpha, score)
    return alpha


def negamax(board: chess.Board, depth: int, alpha: int, beta: int, ply: int, state: SearchState) -> int:
    """
    Score of the position for the side to move.

    Mate scores are CHECKMATE_SCORE - ply so faster mates rank higher.
    Returns 0 once the search is stopped; the caller discards that result.
    """
    if state.tick():
        return 0

    if board.is_checkmate():
        return -(CHECKMATE_SCORE - ply)
    if board.is_stalemate() or board.is_insufficient_material():
        return DRAW_SCORE

    if depth == 0:
        return quiescence(board, alpha, beta, state)

    best_score = -CHECKMATE_SCORE
    for move in order_moves(board, board.legal_moves):
        board.push(move)
        score = -negamax(board, depth - 1, -beta, -alpha, ply + 1, state)
        board.pop()

        best_score = max(best_score, score)
        alpha = max(alpha, best_score)
        if alpha >= beta:
            break

    return best_score


def score_root_moves(
    board: chess.Board, depth: int, time_limit_ms: int
) -> list[tuple[chess.Move, int]]:
    """
    Every legal move with its score, best first.

    Args:
        board:         Position to search. Restored before returning.
        depth:         Maximum depth in plies (at least 1).
        time_limit_ms: Budget for the whole iterative-deepening run.

    Returns:
        (move, centipawns) pairs from the mover's perspective, sorted by
        score descending. Empty when there is no legal move.
    """
    root_moves = order_moves(board, board.legal_moves)
    if not root_moves:
        return []

    state = SearchState(deadline=time.monotonic() + time_limit_ms / 1000)
    completed: list[tuple[chess.Move, int]] = []

    for current_depth in range(1, max(1, depth) + 1):
        scored = []
        for move in root_moves:
            board.push(move)
            score = -negamax(board, current_depth - 1, -CHECKMATE_SCORE, CHECKMATE_SCORE, 1, state)
            board.pop()
            if state.stopped:
                break
            scored.append((move, score))

        if state.stopped:
            break
        completed = sorted(scored, key=lambda item: item[1], reverse=True)
        # Search the best line first on the next iteration.
        root_moves = [move for move, _ in completed]

    if not completed:
        # Not even depth 1 finished in time.
        return [(move, 0) for move in root_moves]
    return completed
