from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game
from ...engine.pieces import Color


@dataclass
class GameSession:
    """A stored game plus the side the engine plays.

    ``lock`` serializes reads and writes of ``game`` across request threads;
    hold it for the whole of a search-then-apply sequence.
    """

    game: Game
    ai_color: Color = Color.BLACK
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Replace a session's game
    - Delete sessions
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(self, game: Optional[Game] = None, ai_color: Color = Color.BLACK) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._sessions[gid] = GameSession(game=game, ai_color=ai_color)
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def set_game(self, game_id: str, game: Game) -> None:
        """Replace the game of a session. Callers hold the session lock."""
        with self._lock:
            if game_id not in self._sessions:
                raise KeyError(game_id)
            self._sessions[game_id].game = game

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._sessions.pop(game_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
