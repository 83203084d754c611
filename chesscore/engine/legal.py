from __future__ import annotations

from typing import List

from .attacks import is_king_in_check
from .move import Move, Square, validate_square
from .movegen import PROMOTION_KINDS, generate_pseudo_legal
from .pieces import PieceKind, copy_board
from .position import LAST_ROW, Position


def get_legal_moves(position: Position, square: Square) -> List[Square]:
    """Return legal destination squares for the piece on ``square``.

    Each pseudo-legal target is played out on a scratch board (en passant
    removal and castling rook relocation included) and kept only if the
    mover's king is not attacked afterwards. Pins and checks need no special
    casing.

    Returns:
        List[Square]: ``[]`` when the square is empty or holds a piece of the
            side not to move.

    Raises:
        InvalidCoordinate: If ``square`` is off the board.
    """
    r, c = validate_square(square)
    piece = position.board[r][c]
    if piece is None or piece.color is not position.turn:
        return []

    legal: List[Square] = []
    for tr, tc in generate_pseudo_legal(
        position.board, (r, c), position.en_passant, position.castling
    ):
        test = copy_board(position.board)
        if (
            piece.kind is PieceKind.PAWN
            and tc != c
            and test[tr][tc] is None
            and position.en_passant == (tr, tc)
        ):
            test[r][tc] = None
        if piece.kind is PieceKind.KING and abs(tc - c) == 2:
            rook_from, rook_to = (7, 5) if tc > c else (0, 3)
            test[r][rook_to] = test[r][rook_from]
            test[r][rook_from] = None
        test[tr][tc] = piece
        test[r][c] = None
        if not is_king_in_check(test, piece.color):
            legal.append((tr, tc))
    return legal


def legal_moves(position: Position) -> List[Move]:
    """Return every legal move of the side to move.

    Squares are scanned row by row; pawn moves onto the last row expand into
    one move per promotion piece (queen first).
    """
    moves: List[Move] = []
    for sq, piece in position.pieces(position.turn):
        promotes = piece.kind is PieceKind.PAWN
        for to_sq in get_legal_moves(position, sq):
            if promotes and to_sq[0] == LAST_ROW[piece.color]:
                moves.extend(Move(sq, to_sq, kind) for kind in PROMOTION_KINDS)
            else:
                moves.append(Move(sq, to_sq))
    return moves


def has_legal_moves(position: Position) -> bool:
    return any(get_legal_moves(position, sq) for sq, _ in position.pieces(position.turn))


def is_legal(position: Position, move: Move) -> bool:
    """Return True if ``move`` can be played in ``position``.

    A promotion piece is required exactly when a pawn reaches the last row.
    """
    piece = position.piece_at(validate_square(move.from_sq))
    if piece is None or piece.color is not position.turn:
        return False
    to_sq = validate_square(move.to_sq)
    if to_sq not in get_legal_moves(position, move.from_sq):
        return False
    promotes = piece.kind is PieceKind.PAWN and to_sq[0] == LAST_ROW[piece.color]
    if promotes:
        return move.promotion in PROMOTION_KINDS
    return move.promotion is None
