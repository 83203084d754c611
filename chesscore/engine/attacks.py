from __future__ import annotations

from typing import Optional

from .move import Square, on_board
from .pieces import Board, Color, PieceKind


KNIGHT_OFFSETS = ((-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
DIAGONALS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONALS = ((-1, 0), (1, 0), (0, -1), (0, 1))

# Row step of a pawn push; white advances toward row 0
PAWN_DIRECTION = {Color.WHITE: -1, Color.BLACK: 1}


def is_square_attacked(board: Board, square: Square, by_color: Color) -> bool:
    """Return True if any piece of ``by_color`` attacks ``square``.

    Scans outward from the target: pawn diagonals, knight and king offsets,
    then slider rays up to the first occupied square. Pawn pushes and castling
    never count as attacks; pawn diagonals count whether or not the square is
    occupied.
    """
    r, c = square

    # Pawns sit one row behind the square from their own point of view
    pr = r - PAWN_DIRECTION[by_color]
    for dc in (-1, 1):
        pc = c + dc
        if on_board(pr, pc):
            p = board[pr][pc]
            if p is not None and p.color is by_color and p.kind is PieceKind.PAWN:
                return True

    for dr, dc in KNIGHT_OFFSETS:
        tr, tc = r + dr, c + dc
        if on_board(tr, tc):
            p = board[tr][tc]
            if p is not None and p.color is by_color and p.kind is PieceKind.KNIGHT:
                return True

    for dr, dc in KING_OFFSETS:
        tr, tc = r + dr, c + dc
        if on_board(tr, tc):
            p = board[tr][tc]
            if p is not None and p.color is by_color and p.kind is PieceKind.KING:
                return True

    for dirs, kinds in (
        (DIAGONALS, (PieceKind.BISHOP, PieceKind.QUEEN)),
        (ORTHOGONALS, (PieceKind.ROOK, PieceKind.QUEEN)),
    ):
        for dr, dc in dirs:
            tr, tc = r + dr, c + dc
            while on_board(tr, tc):
                p = board[tr][tc]
                if p is not None:
                    if p.color is by_color and p.kind in kinds:
                        return True
                    break
                tr += dr
                tc += dc

    return False


def find_king(board: Board, color: Color) -> Optional[Square]:
    for r in range(8):
        for c in range(8):
            p = board[r][c]
            if p is not None and p.kind is PieceKind.KING and p.color is color:
                return (r, c)
    return None


def is_king_in_check(board: Board, color: Color) -> bool:
    """Return True if ``color``'s king is attacked.

    A board without that king reads as "not in check".
    """
    ksq = find_king(board, color)
    if ksq is None:
        return False
    return is_square_attacked(board, ksq, color.opponent)
