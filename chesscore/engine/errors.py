from __future__ import annotations


class ChessError(ValueError):
    """Base class for errors raised at the engine boundary."""


class IllegalMove(ChessError):
    """Requested move is not legal in the current position."""


class InvalidCoordinate(ChessError):
    """Square coordinates fall outside the 8x8 board."""


class InvalidNotation(ChessError):
    """Coordinate move or square name cannot be parsed."""


class InvalidFen(ChessError):
    """FEN text is malformed."""
