"""
API tests: the app runs its own lifespan on SQLite in memory, with the
Chess.com client and the analyzer overridden.
"""

import pytest
from fastapi.testclient import TestClient

from chessstats.config import get_settings
from chessstats.deps import get_analyzer, get_chess_client
from chessstats.game_analysis import GameAnalyzer
from chessstats.main import create_app

from conftest import BASE_URL, FixedEstimator, fake_chesscom, make_game

SICILIAN = '[White "hikaru"]\n[Black "magnus"]\n\n1. e4 c5 2. Nf3 d6 3. d4 cxd4'
ITALIAN = '[White "fabi"]\n[Black "hikaru"]\n\n1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5'

ROUTES = {
    "/pub/player/hikaru": {"username": "Hikaru", "player_id": 1, "avatar": "h.png"},
    "/pub/player/hikaru/stats": {
        "chess_blitz": {"last": {"rating": 3200}, "record": {"win": 7, "loss": 2, "draw": 1}},
    },
    "/pub/player/magnus": {"username": "magnus", "player_id": 2},
    "/pub/player/hikaru/games/archives": {"archives": [f"{BASE_URL}/player/hikaru/games/2024/03"]},
    "/pub/player/hikaru/games/2024/03": {"games": [
        make_game("hikaru", "magnus", "win", "resigned", end_time=10, pgn=SICILIAN,
                  url="https://www.chess.com/game/live/101"),
        make_game("fabi", "hikaru", "agreed", "agreed", end_time=20, pgn=ITALIAN,
                  url="https://www.chess.com/game/live/102", time_class="rapid"),
        make_game("hikaru", "anish", "win", "resigned", end_time=30, pgn="1. b3 e5",
                  url="https://www.chess.com/game/live/103"),
    ]},
    "/pub/leaderboards": {"live_rapid": [
        {"username": "magnus", "score": 2900},
        {"username": "hikaru", "score": 2850},
    ]},
}


@pytest.fixture
def api(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("ENV", "test")
    get_settings.cache_clear()

    app = create_app()
    chess_client = fake_chesscom(ROUTES)
    analyzer = GameAnalyzer(FixedEstimator(), delay_seconds=0)
    app.dependency_overrides[get_chess_client] = lambda: chess_client
    app.dependency_overrides[get_analyzer] = lambda: analyzer

    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


def _register(api, email="alice@example.com", password="secret1", username="alice"):
    resp = api.post("/api/auth/register", json={"email": email, "password": password, "username": username})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def test_health(api):
    assert api.get("/").json()["status"] == "ok"
    assert api.get("/health").json() == {"status": "healthy"}


def test_account_flow(api):
    assert api.get("/api/users/me").status_code == 401

    headers = _register(api)
    me = api.get("/api/users/me", headers=headers).json()
    assert me["username"] == "alice"
    assert me["chess_username"] is None

    resp = api.patch("/api/users/me", json={"chess_username": "hikaru"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["chess_username"] == "hikaru"

    resp = api.patch("/api/users/me", json={"chess_username": "ghost"}, headers=headers)
    assert resp.status_code == 404

    resp = api.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 200
    assert api.get("/api/users/me", headers=headers).status_code == 401


def test_auth_errors(api):
    _register(api)

    resp = api.post("/api/auth/register", json={"email": "alice@example.com", "password": "secret1", "username": "a"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "auth/email-already-in-use"

    resp = api.post("/api/auth/register", json={"email": "bob@example.com", "password": "123", "username": "b"})
    assert resp.json()["detail"]["code"] == "auth/weak-password"

    resp = api.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope123"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["message"].startswith("Incorrect credentials")

    resp = api.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret1"})
    assert resp.status_code == 200


def test_follow_flow(api):
    assert api.get("/api/social/following").status_code == 401
    headers = _register(api)

    assert api.put("/api/social/following/hikaru", json={"avatar": "h.png"}, headers=headers).status_code == 200
    assert api.put("/api/social/following/magnus", headers=headers).status_code == 200

    following = api.get("/api/social/following", headers=headers).json()["following"]
    assert {p["username"] for p in following} == {"hikaru", "magnus"}
    assert api.get("/api/social/following/HIKARU", headers=headers).json()["following"] is True

    api.delete("/api/social/following/hikaru", headers=headers)
    assert api.get("/api/social/following/hikaru", headers=headers).json()["following"] is False


def test_player_lookup(api):
    resp = api.get("/api/players/hikaru")
    assert resp.status_code == 200
    assert resp.json()["stats"]["blitz"]["rating"] == 3200
    assert api.get("/api/players/ghost").status_code == 404


def test_sync_list_and_analyze_games(api):
    resp = api.post("/api/players/hikaru/games/sync")
    assert resp.json() == {"fetched": 3, "saved": 2, "username": "hikaru"}

    games = api.get("/api/players/hikaru/games").json()
    assert [g["id"] for g in games["games"]] == ["102", "101"]
    assert api.get("/api/players/hikaru/games", params={"sort": "bogus"}).status_code == 400

    game = api.get("/api/games/101").json()
    assert game["opening"] == "Sicilian Defense"
    assert game["outcome"] == "win"
    assert game["result_label"] == "Victory"

    resp = api.post("/api/games/101/analysis")
    assert resp.status_code == 200
    assert resp.json()["accuracy"] == {"white": 90, "black": 80}
    assert "analysis" in api.get("/api/games/101").json()

    assert api.get("/api/games/999").status_code == 404
    assert api.post("/api/games/999/analysis").status_code == 404

    summary = api.get("/api/community/summary").json()
    assert summary["total_games"] == 2


def test_recent_and_monthly_games(api):
    recent = api.get("/api/players/hikaru/recent-games", params={"limit": 2}).json()
    assert [g["end_time"] for g in recent["games"]] == [30, 20]
    assert recent["aggregate"]["total"] == 2

    monthly = api.get("/api/players/hikaru/games/2024/3").json()
    assert monthly["aggregate"]["wins"] == 2
    assert api.get("/api/players/hikaru/games/2024/13").status_code == 400


def test_rivalry(api):
    assert api.get("/api/players/hikaru/rivalry").status_code == 400

    stats = api.get("/api/players/hikaru/rivalry", params={"me": "magnus"}).json()
    assert (stats["wins"], stats["losses"], stats["draws"]) == (0, 1, 0)

    headers = _register(api)
    api.patch("/api/users/me", json={"chess_username": "magnus"}, headers=headers)
    assert api.get("/api/players/hikaru/rivalry", headers=headers).json()["total"] == 1


def test_community_endpoints(api):
    top = api.get("/api/community/top-players").json()["players"]
    assert [p["username"] for p in top] == ["magnus", "hikaru"]

    api.get("/api/players/hikaru/profile")
    activity = api.get("/api/community/activity").json()
    assert activity["total_visits"] == 1
    assert activity["recent"][0]["username"] == "anonymous"
    assert activity["recent"][0]["page"] == "profile/hikaru"

    stats = api.get("/api/community/stats", params={"username": "Hikaru"}).json()
    assert stats["total_players"] == 1
    assert stats["most_played_mode"] == "blitz"
