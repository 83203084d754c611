from __future__ import annotations

from chesscore.engine.attacks import find_king, is_king_in_check, is_square_attacked
from chesscore.engine.pieces import Color
from chesscore.engine.position import Position


def test_pawn_attacks_diagonals_not_pushes() -> None:
    board = Position.from_fen("4k3/8/8/4p3/4P3/8/8/4K3 w - - 0 1").board
    # White pawn e4 covers d5 and f5, black pawn e5 covers d4 and f4
    assert is_square_attacked(board, (3, 3), Color.WHITE)
    assert is_square_attacked(board, (3, 5), Color.WHITE)
    assert is_square_attacked(board, (4, 3), Color.BLACK)
    assert is_square_attacked(board, (4, 5), Color.BLACK)
    assert not is_square_attacked(board, (2, 4), Color.BLACK)
    assert not is_square_attacked(board, (5, 4), Color.WHITE)


def test_slider_attacks_stop_at_blocker() -> None:
    board = Position.from_fen("4k3/8/8/8/P7/8/8/R3K3 w - - 0 1").board
    assert is_square_attacked(board, (5, 0), Color.WHITE)  # a3
    assert is_square_attacked(board, (4, 0), Color.WHITE)  # a4 blocker itself
    assert not is_square_attacked(board, (0, 0), Color.WHITE)  # a8 behind it


def test_knight_and_king_attacks() -> None:
    board = Position.from_fen("4k3/8/8/8/3n4/8/8/4K3 w - - 0 1").board
    assert is_square_attacked(board, (6, 4), Color.BLACK)  # Nd4 hits e2
    assert is_square_attacked(board, (1, 3), Color.BLACK)  # Ke8 covers d7
    assert not is_square_attacked(board, (7, 4), Color.BLACK)


def test_king_in_check_detection() -> None:
    board = Position.from_fen("4k3/8/8/8/7b/8/8/4K3 w - - 0 1").board
    assert is_king_in_check(board, Color.WHITE)
    assert not is_king_in_check(board, Color.BLACK)


def test_missing_king_reads_as_not_in_check() -> None:
    board = Position.from_fen("8/8/8/8/8/8/8/r3K3 w - - 0 1").board
    assert find_king(board, Color.BLACK) is None
    assert is_king_in_check(board, Color.BLACK) is False
    assert is_king_in_check(board, Color.WHITE) is True


def test_king_square_lookup() -> None:
    pos = Position.from_fen("8/8/8/8/8/8/8/r3K3 w - - 0 1")
    assert pos.king_square(Color.WHITE) == (7, 4)
    assert pos.king_square(Color.BLACK) is None
