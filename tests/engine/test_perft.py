from __future__ import annotations

import pytest

from chesscore.engine.perft import divide, perft
from chesscore.engine.position import Position


KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


@pytest.mark.parametrize(
    "fen,depth,nodes",
    [
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", 1, 20),
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", 2, 400),
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", 3, 8902),
        (KIWIPETE, 1, 48),
        (KIWIPETE, 2, 2039),
        ("8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1", 1, 14),
        ("8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1", 2, 191),
        ("8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1", 3, 2812),
        ("r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1", 1, 6),
        ("r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1", 2, 264),
    ],
)
def test_perft_reference_counts(fen: str, depth: int, nodes: int) -> None:
    assert perft(Position.from_fen(fen), depth) == nodes


def test_perft_depth_zero_and_negative() -> None:
    pos = Position.initial()
    assert perft(pos, 0) == 1
    with pytest.raises(ValueError):
        perft(pos, -1)


def test_divide_sums_to_perft() -> None:
    pos = Position.from_fen(KIWIPETE)
    split = divide(pos, 2)
    assert len(split) == 48
    assert sum(split.values()) == 2039
    assert split["e1g1"] == perft(Position.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R4RK1 b kq - 1 1"), 1)
