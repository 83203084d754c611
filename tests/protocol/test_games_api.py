from __future__ import annotations

import threading

import pytest
from fastapi.testclient import TestClient

import chesscore.protocol.http.app as http_app
from chesscore.config import Settings
from chesscore.engine.move import parse_coordinate
from chesscore.engine.position import STARTPOS_FEN
from chesscore.protocol.http.app import create_app
from chesscore.search.service import SearchResult


FREE_QUEEN = "4k3/8/8/3q1n2/8/8/8/3R1RK1 w - - 0 1"
MATED = "7k/6Q1/6K1/8/8/8/8/8 b - - 0 1"


def _client() -> TestClient:
    return TestClient(create_app(Settings(search_depth=1, max_search_depth=4)))


def _new_game(client: TestClient, **body) -> str:
    r = client.post("/api/games", json=body) if body else client.post("/api/games")
    assert r.status_code == 200
    return r.json()["game_id"]


def test_create_game_defaults() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    data = r.json()
    assert data["fen"] == STARTPOS_FEN

    state = client.get(f"/api/games/{data['game_id']}/state").json()
    assert state["turn"] == "w"
    assert state["ai_color"] == "b"
    assert state["in_check"] is False
    assert state["verdict"] is None
    assert len(state["legal_moves"]) == 20
    assert state["last_move"] is None


def test_create_game_from_fen() -> None:
    client = _client()
    gid = _new_game(client, fen=FREE_QUEEN, ai_color="w")
    state = client.get(f"/api/games/{gid}/state").json()
    assert state["fen"] == FREE_QUEEN
    assert state["ai_color"] == "w"


def test_create_game_rejects_bad_fen() -> None:
    client = _client()
    r = client.post("/api/games", json={"fen": "not a fen"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_unknown_game_is_404() -> None:
    client = _client()
    r = client.get("/api/games/nope/state")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_legal_targets() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.get(f"/api/games/{gid}/legal-moves", params={"square": "e2"})
    assert r.status_code == 200
    assert sorted(r.json()["targets"]) == ["e3", "e4"]

    r = client.get(f"/api/games/{gid}/legal-moves", params={"square": "z9"})
    assert r.status_code == 400


def test_move_and_illegal_move() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/move", json={"move": "e2e4"})
    assert r.status_code == 200
    state = r.json()
    assert state["turn"] == "b"
    assert state["last_move"] == "e2e4"
    assert state["move_history"] == ["e2e4"]

    r = client.post(f"/api/games/{gid}/move", json={"move": "e4e6"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "illegal move: e4e6"

    r = client.post(f"/api/games/{gid}/move", json={"move": "garbage"})
    assert r.status_code == 400


def test_move_with_engine_reply() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/move", json={"move": "e2e4", "reply": True})
    assert r.status_code == 200
    state = r.json()
    assert len(state["move_history"]) == 2
    assert state["turn"] == "w"


def test_engine_move_plays_search_result() -> None:
    client = _client()
    gid = _new_game(client, fen=FREE_QUEEN)
    r = client.post(f"/api/games/{gid}/engine-move", json={"depth": 1})
    assert r.status_code == 200
    data = r.json()
    assert data["move"] == "d1d5"
    assert data["search"]["best_move"] == "d1d5"
    assert data["state"]["turn"] == "b"


def test_search_does_not_move() -> None:
    client = _client()
    gid = _new_game(client, fen=FREE_QUEEN)
    r = client.post(f"/api/games/{gid}/search")
    assert r.status_code == 200
    data = r.json()
    assert data["best_move"] == "d1d5"
    assert data["depth"] == 1
    assert data["mate"] is False
    assert data["nodes"] > 0
    assert client.get(f"/api/games/{gid}/state").json()["fen"] == FREE_QUEEN


def test_depth_limits() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/search", json={"depth": 5})
    assert r.status_code == 400
    r = client.post(f"/api/games/{gid}/search", json={"depth": 0})
    assert r.status_code == 422


def test_finished_game_rejects_moves() -> None:
    client = _client()
    gid = _new_game(client, fen=MATED)
    state = client.get(f"/api/games/{gid}/state").json()
    assert state["verdict"] == {"kind": "checkmate", "winner": "w"}
    assert state["legal_moves"] == []
    assert state["in_check"] is True

    r = client.post(f"/api/games/{gid}/move", json={"move": "h8g8"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"
    r = client.post(f"/api/games/{gid}/engine-move")
    assert r.status_code == 409


def test_set_position() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/position", json={"fen": FREE_QUEEN})
    assert r.status_code == 200
    assert r.json()["fen"] == FREE_QUEEN

    r = client.post(f"/api/games/{gid}/position", json={"fen": "8/8 w"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "invalid FEN"


def test_undo() -> None:
    client = _client()
    gid = _new_game(client)
    client.post(f"/api/games/{gid}/move", json={"move": "e2e4"})
    r = client.post(f"/api/games/{gid}/undo")
    assert r.status_code == 200
    assert r.json()["fen"] == STARTPOS_FEN
    r = client.post(f"/api/games/{gid}/undo")
    assert r.status_code == 400


def test_delete_game() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.delete(f"/api/games/{gid}")
    assert r.status_code == 200
    assert client.get(f"/api/games/{gid}/state").status_code == 404
    assert client.delete(f"/api/games/{gid}").status_code == 404


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}
    r = client.post("/api/perft", json={"fen": "bogus", "depth": 1})
    assert r.status_code == 400
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 5})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "depth must be <= 4"


def test_engine_move_no_longer_legal_is_conflict(monkeypatch: pytest.MonkeyPatch) -> None:
    class StaleSearch:
        # Answers as if the position were still the initial one
        def search(self, position, depth, *, ai_color=None) -> SearchResult:
            return SearchResult(
                best_move=parse_coordinate("e2e4"),
                score=0,
                mate=False,
                nodes=1,
                cutoffs=0,
                depth=depth,
                time_ms=0,
            )

    monkeypatch.setattr(http_app, "SearchService", StaleSearch)
    client = _client()
    gid = _new_game(client)
    client.post(f"/api/games/{gid}/move", json={"move": "e2e4"})
    client.post(f"/api/games/{gid}/move", json={"move": "e7e5"})

    r = client.post(f"/api/games/{gid}/engine-move", json={"depth": 1})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"
    state = client.get(f"/api/games/{gid}/state").json()
    assert state["move_history"] == ["e2e4", "e7e5"]


def test_moves_wait_for_session_lock() -> None:
    app = create_app(Settings(search_depth=1))
    client = TestClient(app)
    gid = _new_game(client)
    session = app.state.sessions.get(gid)
    responses = []

    def post_move() -> None:
        responses.append(client.post(f"/api/games/{gid}/move", json={"move": "e2e4"}))

    with session.lock:
        worker = threading.Thread(target=post_move)
        worker.start()
        worker.join(0.3)
        # Blocked while the engine side holds the game
        assert worker.is_alive()
        assert session.game.moves == []
    worker.join(10)
    assert not worker.is_alive()
    assert responses[0].status_code == 200
    assert session.game.move_history() == ["e2e4"]
