"""
Shared test helpers: an in-memory document store and a fake Chess.com API.
"""

from typing import Optional

import httpx
import pytest

from chessstats.chesscom_api import ChessComClient
from chessstats.config import Settings
from chessstats.db.session import build_engine, build_session_factory
from chessstats.db.store import SqlDocumentStore
from chessstats.game_analysis import AccuracyEstimator, SidePair

BASE_URL = "https://api.chess.com/pub"


async def new_store(url: str = "sqlite+aiosqlite://") -> SqlDocumentStore:
    """Fresh SQLite store, in memory by default. Must be called inside the running event loop."""
    engine = build_engine(Settings(database_url=url))
    store = SqlDocumentStore(engine, build_session_factory(engine))
    await store.create_schema()
    return store


def fake_chesscom(routes: dict, concurrency: int = 1, seen: Optional[list] = None) -> ChessComClient:
    """
    ChessComClient answering from `routes` (URL path → JSON payload).
    Unknown paths get a 404. Requested URLs are appended to `seen`.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        payload = routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"code": 0, "message": "not found"})
        return httpx.Response(200, json=payload)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChessComClient(http, BASE_URL, concurrency)


def make_game(
    white: str,
    black: str,
    white_result: str,
    black_result: str,
    end_time: int = 0,
    pgn: str = "",
    time_class: str = "blitz",
    white_rating: int = 1500,
    black_rating: int = 1500,
    url: Optional[str] = None,
) -> dict:
    """Game payload shaped like a Chess.com monthly archive entry."""
    game = {
        "white": {"username": white, "rating": white_rating, "result": white_result},
        "black": {"username": black, "rating": black_rating, "result": black_result},
        "end_time": end_time,
        "time_class": time_class,
        "pgn": pgn,
    }
    if url:
        game["url"] = url
    return game


class FixedEstimator(AccuracyEstimator):
    """Always 90 / 80; counts how often it was asked."""

    def __init__(self):
        self.calls = 0

    def estimate(self, result, ply_count):
        self.calls += 1
        return SidePair(90, 80)


@pytest.fixture
def make_store():
    return new_store
