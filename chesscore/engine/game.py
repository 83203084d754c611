from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from chesscore.search.service import SearchService

from .errors import IllegalMove
from .legal import get_legal_moves, is_legal, legal_moves
from .move import Move, Square, parse_coordinate, str_to_square
from .position import Position, apply_move
from .terminal import Verdict, check_game_end


logger = logging.getLogger(__name__)


@dataclass
class Game:
    """Game wrapper around a live position with history.

    Responsibility: hold the displayed position, validate and apply moves,
    keep the canonical-string history used for repetition, and track the
    terminal verdict.
    """

    position: Position
    positions: List[Position] = field(default_factory=list)
    moves: List[Move] = field(default_factory=list)
    history: List[str] = field(default_factory=list)
    verdict: Optional[Verdict] = None

    @classmethod
    def new(cls) -> "Game":
        return cls(position=Position.initial())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(position=Position.from_fen(fen))

    def __post_init__(self) -> None:
        # Seed history with the starting position
        if not self.history:
            self.history.append(self.position.canonical())
        self.verdict = check_game_end(self.position, self.history)

    def to_fen(self) -> str:
        return self.position.to_fen()

    def legal_moves(self) -> List[Move]:
        if self.verdict is not None:
            return []
        return legal_moves(self.position)

    def legal_targets(self, square: Union[Square, str]) -> List[Square]:
        if isinstance(square, str):
            square = str_to_square(square)
        if self.verdict is not None:
            return []
        return get_legal_moves(self.position, square)

    def apply_move(self, move: Union[Move, str]) -> Position:
        """Validate ``move`` and make it the live position.

        Raises:
            InvalidNotation: If a string move cannot be parsed.
            IllegalMove: If the game is over or the move is not legal. The
                game is left unchanged.
        """
        if isinstance(move, str):
            move = parse_coordinate(move)
        if self.verdict is not None:
            raise IllegalMove(f"game is over: {self.verdict.kind.value}")
        if not is_legal(self.position, move):
            raise IllegalMove(f"illegal move: {move.to_coordinate()}")

        self.positions.append(self.position)
        self.position = apply_move(self.position, move)
        self.moves.append(move)
        self.history.append(self.position.canonical())
        self.verdict = check_game_end(self.position, self.history)
        if self.verdict is not None:
            logger.info(
                "game over",
                extra={
                    "verdict": self.verdict.kind.value,
                    "winner": self.verdict.winner.value if self.verdict.winner else None,
                    "plies": len(self.moves),
                },
            )
        return self.position

    def play_engine_move(self, depth: int, service: Optional[SearchService] = None) -> Optional[Move]:
        """Search for the side to move and play the result.

        Returns:
            Optional[Move]: The move played, or ``None`` when the game is over.
        """
        if self.verdict is not None:
            return None
        service = service or SearchService()
        result = service.search(self.position, depth)
        if result.best_move is None:
            return None
        self.apply_move(result.best_move)
        return result.best_move

    def undo_move(self) -> None:
        if not self.moves:
            raise ValueError("no moves to undo")
        self.moves.pop()
        self.history.pop()
        self.position = self.positions.pop()
        self.verdict = check_game_end(self.position, self.history)

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.position.is_check

    def move_history(self) -> List[str]:
        return [m.to_coordinate() for m in self.moves]

    def move_list(self) -> List[Dict[str, object]]:
        """Numbered move pairs, e.g. ``{"number": 1, "white": "e2e4", "black": "e7e5"}``.

        A game loaded with black to move starts with an entry lacking ``white``.
        """
        entries: List[Dict[str, object]] = []
        color = self.positions[0].turn.value if self.positions else self.position.turn.value
        number = self.positions[0].fullmove_number if self.positions else self.position.fullmove_number
        for m in self.moves:
            if color == "w" or not entries:
                entries.append({"number": number})
            entries[-1]["white" if color == "w" else "black"] = m.to_coordinate()
            if color == "b":
                number += 1
            color = "b" if color == "w" else "w"
        return entries
