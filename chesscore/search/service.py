from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from chesscore.engine.legal import legal_moves
from chesscore.engine.move import Move
from chesscore.engine.pieces import Color
from chesscore.engine.position import Position, apply_move
from chesscore.eval import evaluate


logger = logging.getLogger(__name__)

# Mate sentinel, outside the range of any material evaluation
MATE_SCORE = 100_000
INF = 10_000_000


@dataclass
class SearchStats:
    nodes: int = 0
    cutoffs: int = 0


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: int
    mate: bool
    nodes: int
    cutoffs: int
    depth: int
    time_ms: int


def order_moves(position: Position, moves: List[Move]) -> List[Move]:
    """Put captures (destination occupied before the move) first.

    The sort is stable, so generation order is kept within each group.
    """
    board = position.board
    return sorted(moves, key=lambda m: board[m.to_sq[0]][m.to_sq[1]] is None)


def search(
    position: Position,
    depth: int,
    alpha: int,
    beta: int,
    maximizing: bool,
    ai_color: Color,
    stats: Optional[SearchStats] = None,
) -> Tuple[int, Optional[Move]]:
    """Minimax with alpha-beta pruning.

    Args:
        position (Position): Node to search. Never mutated.
        depth (int): Remaining plies; ``0`` returns the static evaluation.
        alpha (int): Lower bound the maximizer is already assured of.
        beta (int): Upper bound the minimizer is already assured of.
        maximizing (bool): True when the side to move plays for ``ai_color``.
        ai_color (Color): Side whose evaluation is being maximized.
        stats (Optional[SearchStats]): Node and cutoff counters.

    Returns:
        Tuple[int, Optional[Move]]: Score from ``ai_color``'s point of view
            and the best move found (``None`` at leaves and terminal nodes).
            Mated nodes score ``-MATE_SCORE`` for the maximizer and
            ``+MATE_SCORE`` for the minimizer; stalemate scores ``0``.
    """
    if stats is not None:
        stats.nodes += 1
    if depth == 0:
        return evaluate(position.board, ai_color), None

    moves = legal_moves(position)
    if not moves:
        if position.is_check:
            return (-MATE_SCORE if maximizing else MATE_SCORE), None
        return 0, None

    moves = order_moves(position, moves)
    best_move = moves[0]
    if maximizing:
        best = -INF
        for move in moves:
            score, _ = search(apply_move(position, move), depth - 1, alpha, beta, False, ai_color, stats)
            if score > best:
                best = score
                best_move = move
            alpha = max(alpha, score)
            if beta <= alpha:
                if stats is not None:
                    stats.cutoffs += 1
                break
    else:
        best = INF
        for move in moves:
            score, _ = search(apply_move(position, move), depth - 1, alpha, beta, True, ai_color, stats)
            if score < best:
                best = score
                best_move = move
            beta = min(beta, score)
            if beta <= alpha:
                if stats is not None:
                    stats.cutoffs += 1
                break
    return best, best_move


def best_move(position: Position, depth: int, ai_color: Optional[Color] = None) -> Optional[Move]:
    """Return the engine's choice for the side to move, or ``None`` if it has no move."""
    return SearchService().search(position, depth, ai_color=ai_color).best_move


class SearchService:
    """Fixed-depth search entry point used by the game controller and HTTP layer."""

    def search(
        self, position: Position, depth: int, *, ai_color: Optional[Color] = None
    ) -> SearchResult:
        if depth < 0:
            raise ValueError("depth must be >= 0")
        color = ai_color if ai_color is not None else position.turn
        stats = SearchStats()
        start = time.perf_counter()
        score, move = search(
            position, depth, -INF, INF, position.turn is color, color, stats
        )
        time_ms = int((time.perf_counter() - start) * 1000)
        result = SearchResult(
            best_move=move,
            score=score,
            mate=abs(score) >= MATE_SCORE,
            nodes=stats.nodes,
            cutoffs=stats.cutoffs,
            depth=depth,
            time_ms=time_ms,
        )
        logger.info(
            "search",
            extra={
                "depth": depth,
                "best_move": move.to_coordinate() if move else None,
                "score": score,
                "nodes": stats.nodes,
                "cutoffs": stats.cutoffs,
                "time_ms": time_ms,
            },
        )
        return result
