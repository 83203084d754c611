#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys
import time

# Allow `python scripts/perft.py` from a checkout without installing
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from chesscore.engine.errors import InvalidFen
from chesscore.engine.perft import divide, perft
from chesscore.engine.position import STARTPOS_FEN, Position


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Count move paths from a FEN to a fixed depth")
    parser.add_argument("--fen", default=STARTPOS_FEN, help="FEN string (default: startpos)")
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide", action="store_true", help="Print the subtree count of each root move"
    )
    args = parser.parse_args(argv)

    try:
        position = Position.from_fen(args.fen)
    except InvalidFen as e:
        parser.error(str(e))

    start = time.perf_counter()
    if args.divide:
        split = divide(position, args.depth)
        for move, count in sorted(split.items()):
            print(f"{move}: {count}")
        nodes = sum(split.values())
    else:
        nodes = perft(position, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt * 1000)} nps={int(nodes / max(dt, 1e-9))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
