from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .errors import InvalidCoordinate, InvalidNotation
from .pieces import PieceKind


# (row, col): row 0 is rank 8 (black's back rank), col 0 is file a
Square = Tuple[int, int]

PROMOTION_PIECES = {"q", "r", "b", "n"}


@dataclass(frozen=True)
class Move:
    """Engine move representation.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        promotion (Optional[PieceKind]): Promotion piece for pawns reaching
            the last rank, else ``None``.
    """

    from_sq: Square
    to_sq: Square
    promotion: Optional[PieceKind] = None

    def to_coordinate(self) -> str:
        """Serialize the move into coordinate form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = self.promotion.value if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo

    def __str__(self) -> str:
        return self.to_coordinate()


def parse_coordinate(text: Any) -> Move:
    """Parse a coordinate move string.

    Args:
        text: Move such as ``"e2e4"`` or ``"e7e8q"``. Anything that is not a
            well formed string is rejected.

    Returns:
        Move: Parsed move.

    Raises:
        InvalidNotation: If the input has the wrong type or length, names an
            invalid square, or carries an unknown promotion letter.
    """
    if not isinstance(text, str):
        raise InvalidNotation(f"move must be a string, got {type(text).__name__}")
    if len(text) not in (4, 5):
        raise InvalidNotation(f"invalid move length: {text!r}")
    from_sq = str_to_square(text[0:2])
    to_sq = str_to_square(text[2:4])
    promo: Optional[PieceKind] = None
    if len(text) == 5:
        if text[4] not in PROMOTION_PIECES:
            raise InvalidNotation(f"invalid promotion piece: {text[4]!r}")
        promo = PieceKind(text[4])
    return Move(from_sq, to_sq, promo)


def str_to_square(s: str) -> Square:
    """Convert a square name such as ``"e4"`` into ``(row, col)``.

    Raises:
        InvalidNotation: If ``s`` is not a valid square name.
    """
    if not isinstance(s, str) or len(s) != 2:
        raise InvalidNotation(f"invalid square: {s!r}")
    if s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise InvalidNotation(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = 8 - int(s[1])
    return (row, col)


def square_to_str(sq: Square) -> str:
    """Convert ``(row, col)`` into a square name.

    Raises:
        InvalidCoordinate: If ``sq`` is off the board.
    """
    row, col = validate_square(sq)
    return chr(ord("a") + col) + str(8 - row)


def validate_square(sq: Any) -> Square:
    """Return ``sq`` as a ``(row, col)`` tuple if it lies on the board.

    Raises:
        InvalidCoordinate: If ``sq`` is not a pair of ints in ``0..7``.
    """
    try:
        row, col = sq
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"invalid square coordinates: {sq!r}") from None
    if not isinstance(row, int) or not isinstance(col, int):
        raise InvalidCoordinate(f"invalid square coordinates: {sq!r}")
    if not (0 <= row < 8 and 0 <= col < 8):
        raise InvalidCoordinate(f"square out of range: {sq!r}")
    return (row, col)


def on_board(row: int, col: int) -> bool:
    return 0 <= row < 8 and 0 <= col < 8
