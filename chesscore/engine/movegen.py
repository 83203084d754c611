from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .attacks import (
    DIAGONALS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    ORTHOGONALS,
    PAWN_DIRECTION,
    is_square_attacked,
)
from .move import Square, on_board
from .pieces import Board, Piece, PieceKind
from .position import KING_COL, PAWN_ROW, ROOK_COL, CastlingRights


PROMOTION_KINDS = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)

Generator = Callable[[Board, Square, Piece, Optional[Square], Optional[CastlingRights]], List[Square]]


def generate_pseudo_legal(
    board: Board,
    square: Square,
    en_passant: Optional[Square] = None,
    castling: Optional[CastlingRights] = None,
) -> List[Square]:
    """Return destination squares for the piece on ``square``.

    Moves follow each piece's movement shape and board occupancy but may
    leave the mover's own king in check. Off-board destinations are skipped.

    Args:
        board (Board): Board to generate on.
        square (Square): Origin square. An empty square yields ``[]``.
        en_passant (Optional[Square]): Current en passant target, if any.
        castling (Optional[CastlingRights]): When given, castling also
            requires the matching right to be held.

    Returns:
        List[Square]: Destination squares in generation order.
    """
    r, c = square
    piece = board[r][c]
    if piece is None:
        return []
    return _GENERATORS[piece.kind](board, square, piece, en_passant, castling)


def _pawn_moves(
    board: Board,
    square: Square,
    piece: Piece,
    en_passant: Optional[Square],
    castling: Optional[CastlingRights],
) -> List[Square]:
    r, c = square
    step = PAWN_DIRECTION[piece.color]
    moves: List[Square] = []

    one = r + step
    if on_board(one, c) and board[one][c] is None:
        moves.append((one, c))
        two = r + 2 * step
        if not piece.has_moved and r == PAWN_ROW[piece.color] and board[two][c] is None:
            moves.append((two, c))

    for dc in (-1, 1):
        tc = c + dc
        if not on_board(one, tc):
            continue
        target = board[one][tc]
        if target is not None:
            if target.color is not piece.color:
                moves.append((one, tc))
        elif en_passant == (one, tc):
            moves.append((one, tc))
    return moves


def _step_moves(board: Board, square: Square, piece: Piece, offsets: Iterable[Tuple[int, int]]) -> List[Square]:
    r, c = square
    moves: List[Square] = []
    for dr, dc in offsets:
        tr, tc = r + dr, c + dc
        if on_board(tr, tc):
            target = board[tr][tc]
            if target is None or target.color is not piece.color:
                moves.append((tr, tc))
    return moves


def _ray_moves(board: Board, square: Square, piece: Piece, directions: Iterable[Tuple[int, int]]) -> List[Square]:
    r, c = square
    moves: List[Square] = []
    for dr, dc in directions:
        tr, tc = r + dr, c + dc
        while on_board(tr, tc):
            target = board[tr][tc]
            if target is None:
                moves.append((tr, tc))
            else:
                if target.color is not piece.color:
                    moves.append((tr, tc))
                break
            tr += dr
            tc += dc
    return moves


def _knight_moves(board, square, piece, en_passant, castling) -> List[Square]:
    return _step_moves(board, square, piece, KNIGHT_OFFSETS)


def _bishop_moves(board, square, piece, en_passant, castling) -> List[Square]:
    return _ray_moves(board, square, piece, DIAGONALS)


def _rook_moves(board, square, piece, en_passant, castling) -> List[Square]:
    return _ray_moves(board, square, piece, ORTHOGONALS)


def _queen_moves(board, square, piece, en_passant, castling) -> List[Square]:
    return _ray_moves(board, square, piece, DIAGONALS + ORTHOGONALS)


def _king_moves(
    board: Board,
    square: Square,
    piece: Piece,
    en_passant: Optional[Square],
    castling: Optional[CastlingRights],
) -> List[Square]:
    moves = _step_moves(board, square, piece, KING_OFFSETS)
    moves.extend(_castling_moves(board, square, piece, castling))
    return moves


def _castling_moves(
    board: Board, square: Square, piece: Piece, castling: Optional[CastlingRights]
) -> List[Square]:
    r, c = square
    if piece.has_moved or c != KING_COL:
        return []
    enemy = piece.color.opponent
    # Castling out of check is never allowed
    if is_square_attacked(board, square, enemy):
        return []

    moves: List[Square] = []
    for kingside in (True, False):
        if castling is not None and not castling.has(piece.color, kingside):
            continue
        rook_col = ROOK_COL[kingside]
        rook = board[r][rook_col]
        if (
            rook is None
            or rook.kind is not PieceKind.ROOK
            or rook.color is not piece.color
            or rook.has_moved
        ):
            continue
        lo, hi = min(c, rook_col), max(c, rook_col)
        if any(board[r][col] is not None for col in range(lo + 1, hi)):
            continue
        step = 1 if kingside else -1
        # Square crossed and destination must both be safe
        if any(is_square_attacked(board, (r, c + step * i), enemy) for i in (1, 2)):
            continue
        moves.append((r, c + 2 * step))
    return moves


_GENERATORS: Dict[PieceKind, Generator] = {
    PieceKind.PAWN: _pawn_moves,
    PieceKind.KNIGHT: _knight_moves,
    PieceKind.BISHOP: _bishop_moves,
    PieceKind.ROOK: _rook_moves,
    PieceKind.QUEEN: _queen_moves,
    PieceKind.KING: _king_moves,
}
