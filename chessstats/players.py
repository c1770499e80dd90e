"""
Player profiles: read-through cache of Chess.com profiles in `usuaris`,
and the per-player profile view (snapshot + recent-games aggregate).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from .aggregator import aggregate_games
from .chesscom_api import ChessComClient, format_unix_date
from .db.store import DocumentStore

logger = logging.getLogger(__name__)

PLAYERS_COLLECTION = "usuaris"


def _normalize_date(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return format_unix_date(int(value))
    if isinstance(value, dict) and value.get("seconds"):
        return format_unix_date(int(value["seconds"]))
    return ""


def _from_snapshot(raw: dict, username: str, stats: Optional[dict]) -> dict:
    return {
        "avatar": raw.get("avatar", ""),
        "followers": raw.get("followers", 0),
        "id": raw.get("id", 0),
        "is_streamer": raw.get("is_streamer", False),
        "joined": _normalize_date(raw.get("joined")),
        "last_online": _normalize_date(raw.get("last_online")),
        "location": raw.get("location", ""),
        "name": raw.get("name", ""),
        "status": raw.get("status", ""),
        "twitch_url": raw.get("twitch_url", ""),
        "username": raw.get("username", username),
        "stats": stats,
    }


async def load_player(
    store: DocumentStore,
    client: ChessComClient,
    username: str,
) -> Optional[dict]:
    """
    Player snapshot, from the store when cached, otherwise from Chess.com.

    A cached snapshot without stats gets them fetched and merged in. A player
    fetched from Chess.com is written under the lower-cased username.
    Returns None when Chess.com does not know the player.
    """
    rows = await store.query(PLAYERS_COLLECTION, where=[("username", username)], limit=1)
    if rows:
        key, raw = rows[0]
        stats = raw.get("stats")
        if not stats:
            stats = await client.fetch_player_stats(username)
            if stats:
                await store.set(PLAYERS_COLLECTION, key, {"stats": stats}, merge=True)
        return _from_snapshot(raw, username, stats)

    player = await client.fetch_player(username)
    if player is None:
        return None

    player["stats"] = await client.fetch_player_stats(player["username"])
    await store.set(PLAYERS_COLLECTION, player["username"].lower(), player)
    return player


def total_games(stats: Optional[dict]) -> int:
    if not stats:
        return 0
    return sum((stats.get(mode) or {}).get("games", 0) for mode in ("rapid", "blitz", "bullet", "daily"))


async def build_profile(
    store: DocumentStore,
    client: ChessComClient,
    username: str,
    months: int = 3,
    today: Optional[date] = None,
) -> Optional[dict[str, Any]]:
    """Snapshot plus an aggregate of the last `months` months of games."""
    player = await load_player(store, client, username)
    if player is None:
        return None

    games = await client.fetch_last_months_games(username, months, today=today)
    aggregate = aggregate_games(games, username)

    return {
        "player": player,
        "total_games": total_games(player.get("stats")),
        "recent": aggregate.to_dict(),
    }
