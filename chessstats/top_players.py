"""
Top players of the day.

The first request of a day fetches the live_rapid leaderboard and stores it
in topPlayersDaily/<YYYY-MM-DD>; later requests that day read the stored copy.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Optional

from .chesscom_api import ChessComClient
from .db.store import DocumentStore

TOP_PLAYERS_COLLECTION = "topPlayersDaily"
LEADERBOARD_MODE = "live_rapid"


class LeaderboardUnavailable(Exception):
    """Chess.com returned no leaderboard entries."""


def today_key(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime("%Y-%m-%d")


async def load_top_players_for_today(
    store: DocumentStore,
    client: ChessComClient,
    limit: int = 50,
    today: Optional[date] = None,
) -> list[dict]:
    key = today_key(today)

    cached = await store.get(TOP_PLAYERS_COLLECTION, key)
    if cached is not None:
        return list(cached.get("players") or [])

    players = await client.fetch_leaderboard(LEADERBOARD_MODE, limit)
    if not players:
        raise LeaderboardUnavailable(f"Chess.com returned no {LEADERBOARD_MODE} leaderboard")

    await store.set(TOP_PLAYERS_COLLECTION, key, {
        "date": key,
        "created_at": int(time.time() * 1000),
        "source": f"{client.base_url}/leaderboards",
        "mode": LEADERBOARD_MODE,
        "players": players,
    })
    return players
