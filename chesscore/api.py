"""Function-call surface for UI and transport callers.

Callers hold a ``Position`` and their own history list of canonical strings;
every call returns new values and never mutates what it was given.
"""

from __future__ import annotations

from typing import List, Optional, Union

from chesscore.engine.errors import IllegalMove
from chesscore.engine.legal import get_legal_moves, is_legal
from chesscore.engine.move import Move, Square, parse_coordinate, str_to_square
from chesscore.engine.pieces import Color
from chesscore.engine.position import Position, apply_move, canonical_string, initial_position
from chesscore.engine.terminal import Verdict, check_game_end
from chesscore.search.service import best_move as _search_best_move


__all__ = [
    "Move",
    "Position",
    "Verdict",
    "best_move",
    "canonical_string",
    "check_game_end",
    "create_initial_position",
    "legal_moves_at",
    "play",
]


def create_initial_position() -> Position:
    return initial_position()


def legal_moves_at(position: Position, square: Union[Square, str]) -> List[Square]:
    """Legal destinations from ``square`` (a ``(row, col)`` pair or a name like ``"e2"``)."""
    if isinstance(square, str):
        square = str_to_square(square)
    return get_legal_moves(position, square)


def play(position: Position, move: Union[Move, str]) -> Position:
    """Validate ``move`` and return the resulting position.

    Raises:
        InvalidNotation: If a string move cannot be parsed.
        InvalidCoordinate: If a square lies off the board.
        IllegalMove: If the move is not legal in ``position``.
    """
    if isinstance(move, str):
        move = parse_coordinate(move)
    if not is_legal(position, move):
        raise IllegalMove(f"illegal move: {move.to_coordinate()}")
    return apply_move(position, move)


def best_move(position: Position, depth: int, ai_color: Optional[Color] = None) -> Optional[Move]:
    return _search_best_move(position, depth, ai_color)
