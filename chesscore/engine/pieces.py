from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional


class Color(str, Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(str, Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


@dataclass(frozen=True)
class Piece:
    """A piece on the board.

    Attributes:
        kind (PieceKind): Piece type.
        color (Color): Owning side.
        has_moved (bool): True once the piece has been relocated. Drives
            castling eligibility and pawn double steps.
    """

    kind: PieceKind
    color: Color
    has_moved: bool = False

    def moved(self) -> "Piece":
        """Return a copy of this piece flagged as moved."""
        if self.has_moved:
            return self
        return replace(self, has_moved=True)

    @property
    def symbol(self) -> str:
        """FEN letter: uppercase for white, lowercase for black."""
        return self.kind.value.upper() if self.color is Color.WHITE else self.kind.value

    @property
    def code(self) -> str:
        """Two-letter cell code such as ``"wp"``."""
        return self.color.value + self.kind.value

    @classmethod
    def from_symbol(cls, ch: str, has_moved: bool = False) -> "Piece":
        """Build a piece from its FEN letter.

        Raises:
            ValueError: If ``ch`` is not one of ``pnbrqkPNBRQK``.
        """
        kind = PieceKind(ch.lower())
        color = Color.WHITE if ch.isupper() else Color.BLACK
        return cls(kind, color, has_moved)


# 8x8 grid indexed [row][col]; row 0 is black's back rank
Board = List[List[Optional[Piece]]]


def copy_board(board: Board) -> Board:
    """Return an independent board. Pieces are immutable, rows are copied."""
    return [row[:] for row in board]
