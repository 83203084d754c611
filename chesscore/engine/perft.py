from __future__ import annotations

from typing import Dict

from .legal import legal_moves
from .position import Position, apply_move


def perft(position: Position, depth: int) -> int:
    """Compute the perft node count for ``position`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    moves = legal_moves(position)
    if depth == 1:
        return len(moves)
    return sum(perft(apply_move(position, m), depth - 1) for m in moves)


def divide(position: Position, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts keyed by coordinate move, for debugging."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    return {
        m.to_coordinate(): perft(apply_move(position, m), depth - 1)
        for m in legal_moves(position)
    }
