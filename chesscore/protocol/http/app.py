from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameSession, InMemorySessionStore
from ...config import Settings, get_settings
from ...engine.errors import ChessError
from ...engine.game import Game
from ...engine.move import square_to_str
from ...engine.perft import perft as perft_nodes
from ...engine.pieces import Color
from ...engine.position import Position
from ...search.service import SearchResult, SearchService


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead of the initial position")
    ai_color: Optional[Color] = Field(default=None, description="Side the engine plays, 'w' or 'b'")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Coordinate move string, e.g., e2e4 or e7e8q")
    reply: bool = Field(default=False, description="Let the engine answer when it is its turn")


class DepthRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=64)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0)


class VerdictModel(BaseModel):
    kind: str
    winner: Optional[str] = None


class GameState(BaseModel):
    game_id: str
    fen: str
    turn: str
    ai_color: str
    in_check: bool
    verdict: Optional[VerdictModel]
    legal_moves: list[str]
    last_move: Optional[str]
    move_history: list[str]


class LegalTargets(BaseModel):
    square: str
    targets: list[str]


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score: int
    mate: bool
    nodes: int
    depth: int
    time_ms: int


class EngineMoveResponse(BaseModel):
    move: Optional[str]
    search: SearchResponse
    state: GameState


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="chesscore", version="0.1.0")

    logging.basicConfig(level=settings.log_level.upper())

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    service = SearchService()

    def resolve_depth(requested: Optional[int]) -> int:
        depth = requested or settings.search_depth
        if depth > settings.max_search_depth:
            raise HTTPException(
                status_code=400,
                detail=f"depth must be <= {settings.max_search_depth}",
            )
        return depth

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        req = req or CreateGameRequest()
        try:
            game = Game.from_fen(req.fen) if req.fen else Game.new()
        except ChessError as e:
            raise HTTPException(status_code=400, detail=str(e))
        ai_color = req.ai_color or Color(settings.ai_color)
        game_id = store.create(game, ai_color=ai_color)
        logger.info("game created", extra={"game_id": game_id, "ai_color": ai_color.value})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    # Endpoints touching a session are sync: FastAPI runs them in its
    # threadpool and the session lock serializes them per game.
    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            return _state(game_id, session)

    @app.get("/api/games/{game_id}/legal-moves", response_model=LegalTargets)
    def legal_targets(game_id: str, square: str) -> LegalTargets:
        session = _require_session(store, game_id)
        try:
            with session.lock:
                targets = session.game.legal_targets(square)
        except ChessError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return LegalTargets(square=square, targets=[square_to_str(t) for t in targets])

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            game = Game.from_fen(req.fen)
        except ChessError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        with session.lock:
            store.set_game(game_id, game)
            return _state(game_id, session)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            _require_in_progress(session)
            game = session.game
            try:
                game.apply_move(req.move)
            except ChessError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if req.reply and game.verdict is None and game.position.turn is session.ai_color:
                reply = game.play_engine_move(settings.search_depth, service)
                logger.info(
                    "engine reply",
                    extra={"game_id": game_id, "move": reply.to_coordinate() if reply else None},
                )
            return _state(game_id, session)

    @app.post("/api/games/{game_id}/engine-move", response_model=EngineMoveResponse)
    def engine_move(game_id: str, req: Optional[DepthRequest] = None) -> EngineMoveResponse:
        session = _require_session(store, game_id)
        depth = resolve_depth(req.depth if req else None)
        with session.lock:
            _require_in_progress(session)
            res = service.search(session.game.position, depth)
            if res.best_move is not None:
                try:
                    session.game.apply_move(res.best_move)
                except ChessError as e:
                    raise HTTPException(status_code=409, detail=str(e))
            return EngineMoveResponse(
                move=res.best_move.to_coordinate() if res.best_move else None,
                search=_search_response(res),
                state=_state(game_id, session),
            )

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    def search(game_id: str, req: Optional[DepthRequest] = None) -> SearchResponse:
        session = _require_session(store, game_id)
        depth = resolve_depth(req.depth if req else None)
        # Search runs on a snapshot, outside the lock
        with session.lock:
            position = session.game.position
        return _search_response(service.search(position, depth))

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            try:
                session.game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, session)

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        if req.depth > settings.max_perft_depth:
            raise HTTPException(
                status_code=400,
                detail=f"depth must be <= {settings.max_perft_depth}",
            )
        try:
            position = Position.from_fen(req.fen)
        except ChessError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return {"nodes": perft_nodes(position, req.depth)}

    app.state.sessions = store
    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _require_in_progress(session: GameSession) -> None:
    verdict = session.game.verdict
    if verdict is not None:
        raise HTTPException(status_code=409, detail=f"game is over: {verdict.kind.value}")


def _state(game_id: str, session: GameSession) -> GameState:
    game = session.game
    verdict = game.verdict
    history = game.move_history()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        turn=game.position.turn.value,
        ai_color=session.ai_color.value,
        in_check=game.in_check(),
        verdict=(
            VerdictModel(kind=verdict.kind.value, winner=verdict.winner.value if verdict.winner else None)
            if verdict
            else None
        ),
        legal_moves=[m.to_coordinate() for m in game.legal_moves()],
        last_move=history[-1] if history else None,
        move_history=history,
    )


def _search_response(res: SearchResult) -> SearchResponse:
    return SearchResponse(
        best_move=res.best_move.to_coordinate() if res.best_move else None,
        score=res.score,
        mate=res.mate,
        nodes=res.nodes,
        depth=res.depth,
        time_ms=res.time_ms,
    )


# Default app for non-factory servers
app = create_app()
