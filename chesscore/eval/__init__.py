"""Static evaluation: material plus piece-square tables.

Pure, deterministic, and side-effect free.
"""

from __future__ import annotations

from typing import Dict, Final, Tuple

from chesscore.engine.pieces import Board, Color, PieceKind


Table = Tuple[Tuple[int, ...], ...]

# Material values in centipawns
PIECE_VALUES: Final[Dict[PieceKind, int]] = {
    PieceKind.PAWN: 100,
    PieceKind.KNIGHT: 320,
    PieceKind.BISHOP: 330,
    PieceKind.ROOK: 500,
    PieceKind.QUEEN: 900,
    PieceKind.KING: 20000,
}

# Below this many pieces on the board the king switches to its endgame table
ENDGAME_PIECE_COUNT: Final = 16

# Piece-square tables as White sees the board: row 0 is rank 8
PAWN_TABLE: Final[Table] = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (50, 50, 50, 50, 50, 50, 50, 50),
    (10, 10, 20, 30, 30, 20, 10, 10),
    (5, 5, 10, 25, 25, 10, 5, 5),
    (0, 0, 0, 20, 20, 0, 0, 0),
    (5, -5, -10, 0, 0, -10, -5, 5),
    (5, 10, 10, -20, -20, 10, 10, 5),
    (0, 0, 0, 0, 0, 0, 0, 0),
)

KNIGHT_TABLE: Final[Table] = (
    (-50, -40, -30, -30, -30, -30, -40, -50),
    (-40, -20, 0, 0, 0, 0, -20, -40),
    (-30, 0, 10, 15, 15, 10, 0, -30),
    (-30, 5, 15, 20, 20, 15, 5, -30),
    (-30, 0, 15, 20, 20, 15, 0, -30),
    (-30, 5, 10, 15, 15, 10, 5, -30),
    (-40, -20, 0, 5, 5, 0, -20, -40),
    (-50, -40, -30, -30, -30, -30, -40, -50),
)

BISHOP_TABLE: Final[Table] = (
    (-20, -10, -10, -10, -10, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 10, 10, 5, 0, -10),
    (-10, 5, 5, 10, 10, 5, 5, -10),
    (-10, 0, 10, 10, 10, 10, 0, -10),
    (-10, 10, 10, 10, 10, 10, 10, -10),
    (-10, 5, 0, 0, 0, 0, 5, -10),
    (-20, -10, -10, -10, -10, -10, -10, -20),
)

ROOK_TABLE: Final[Table] = (
    (0, 0, 0, 0, 0, 0, 0, 0),
    (5, 10, 10, 10, 10, 10, 10, 5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (-5, 0, 0, 0, 0, 0, 0, -5),
    (0, 0, 0, 5, 5, 0, 0, 0),
)

QUEEN_TABLE: Final[Table] = (
    (-20, -10, -10, -5, -5, -10, -10, -20),
    (-10, 0, 0, 0, 0, 0, 0, -10),
    (-10, 0, 5, 5, 5, 5, 0, -10),
    (-5, 0, 5, 5, 5, 5, 0, -5),
    (0, 0, 5, 5, 5, 5, 0, -5),
    (-10, 5, 5, 5, 5, 5, 0, -10),
    (-10, 0, 5, 0, 0, 0, 0, -10),
    (-20, -10, -10, -5, -5, -10, -10, -20),
)

KING_TABLE_MIDDLE: Final[Table] = (
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-30, -40, -40, -50, -50, -40, -40, -30),
    (-20, -30, -30, -40, -40, -30, -30, -20),
    (-10, -20, -20, -20, -20, -20, -20, -10),
    (20, 20, 0, 0, 0, 0, 20, 20),
    (20, 30, 10, 0, 0, 10, 30, 20),
)

KING_TABLE_END: Final[Table] = (
    (-50, -40, -30, -20, -20, -30, -40, -50),
    (-30, -20, -10, 0, 0, -10, -20, -30),
    (-30, -10, 20, 30, 30, 20, -10, -30),
    (-30, -10, 30, 40, 40, 30, -10, -30),
    (-30, -10, 30, 40, 40, 30, -10, -30),
    (-30, -10, 20, 30, 30, 20, -10, -30),
    (-30, -30, 0, 0, 0, 0, -30, -30),
    (-50, -30, -30, -30, -30, -30, -30, -50),
)

PIECE_TABLES: Final[Dict[PieceKind, Table]] = {
    PieceKind.PAWN: PAWN_TABLE,
    PieceKind.KNIGHT: KNIGHT_TABLE,
    PieceKind.BISHOP: BISHOP_TABLE,
    PieceKind.ROOK: ROOK_TABLE,
    PieceKind.QUEEN: QUEEN_TABLE,
}


def piece_count(board: Board) -> int:
    return sum(1 for row in board for p in row if p is not None)


def evaluate(board: Board, perspective: Color) -> int:
    """Return the static score of ``board`` from ``perspective``'s side.

    Each piece contributes its material value plus its piece-square bonus,
    added for ``perspective``'s pieces and subtracted for the opponent's.
    Black pieces read the tables row-flipped.
    """
    king_table = KING_TABLE_END if piece_count(board) < ENDGAME_PIECE_COUNT else KING_TABLE_MIDDLE
    score = 0
    for r, row in enumerate(board):
        for c, p in enumerate(row):
            if p is None:
                continue
            table = king_table if p.kind is PieceKind.KING else PIECE_TABLES[p.kind]
            table_row = r if p.color is Color.WHITE else 7 - r
            value = PIECE_VALUES[p.kind] + table[table_row][c]
            score += value if p.color is perspective else -value
    return score


def material_balance(board: Board, perspective: Color) -> int:
    """Material-only difference from ``perspective``'s side."""
    score = 0
    for row in board:
        for p in row:
            if p is not None:
                score += PIECE_VALUES[p.kind] if p.color is perspective else -PIECE_VALUES[p.kind]
    return score
