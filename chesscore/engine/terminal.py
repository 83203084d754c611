from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .legal import has_legal_moves
from .pieces import Board, Color, PieceKind
from .position import Position, canonical_string


FIFTY_MOVE_PLIES = 100
REPETITION_LIMIT = 3


class VerdictKind(str, Enum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    FIFTY_MOVE = "fifty-move-draw"
    REPETITION = "repetition-draw"
    INSUFFICIENT_MATERIAL = "insufficient-material-draw"


@dataclass(frozen=True)
class Verdict:
    """Terminal game state. ``winner`` is only set for checkmate."""

    kind: VerdictKind
    winner: Optional[Color] = None

    @property
    def is_draw(self) -> bool:
        return self.kind is not VerdictKind.CHECKMATE


def check_game_end(position: Position, history: Optional[Sequence[str]] = None) -> Optional[Verdict]:
    """Return the terminal verdict for ``position`` or ``None`` if play goes on.

    Checked in order: checkmate/stalemate, fifty-move rule, insufficient
    material, threefold repetition.

    Args:
        position (Position): Position to inspect.
        history (Optional[Sequence[str]]): Canonical board strings recorded
            by the caller after every ply (the current position included).
            Without it repetition is not checked.

    Notes:
        Insufficient material only covers K vs K and K+minor vs K, and
        repetition compares board layout only, ignoring castling rights and
        en passant. Both are deliberate simplifications of the FIDE rules.
    """
    if not has_legal_moves(position):
        if position.is_check:
            return Verdict(VerdictKind.CHECKMATE, winner=position.turn.opponent)
        return Verdict(VerdictKind.STALEMATE)

    if position.halfmove_clock >= FIFTY_MOVE_PLIES:
        return Verdict(VerdictKind.FIFTY_MOVE)

    if is_insufficient_material(position.board):
        return Verdict(VerdictKind.INSUFFICIENT_MATERIAL)

    if history is not None and repetition_count(position, history) >= REPETITION_LIMIT:
        return Verdict(VerdictKind.REPETITION)

    return None


def is_insufficient_material(board: Board) -> bool:
    pieces = [p for row in board for p in row if p is not None]
    if len(pieces) == 2:
        return True
    if len(pieces) == 3:
        minors = [p for p in pieces if p.kind is not PieceKind.KING]
        return len(minors) == 1 and minors[0].kind in (PieceKind.KNIGHT, PieceKind.BISHOP)
    return False


def repetition_count(position: Position, history: Sequence[str]) -> int:
    key = canonical_string(position.board)
    return sum(1 for entry in history if entry == key)
