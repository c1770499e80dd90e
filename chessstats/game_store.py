"""
Persisting Chess.com games into the `games` collection.

One document per game, keyed by safe_game_id. Writes are merge-upserts, so
saving the same game twice rewrites identical fields.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .aggregator import player_side
from .db.store import DocumentStore
from .opening_classifier import (
    UNKNOWN_OPENING,
    classify_opening,
    count_moves,
    extract_first_move,
    resolve_opponent_name,
)

logger = logging.getLogger(__name__)

GAME_SORTS = {
    "date": "timestamp",
    "moves": "move_count",
    "opponent": "opponent_rating",
}


def safe_game_id(game: dict, username: str) -> str:
    """Last path segment of the game URL, else '<username>-<end_time>'."""
    url = game.get("url")
    if url:
        return url.rstrip("/").split("/")[-1]
    return f"{username}-{game.get('end_time')}"


def build_game_document(game: dict, username: str) -> Optional[dict[str, Any]]:
    """Document for `game` seen from `username`, or None for unclassifiable openings."""
    pgn = game.get("pgn") or ""
    info = classify_opening(pgn)
    if info.opening == UNKNOWN_OPENING:
        return None

    is_white = player_side(game, username) == "white"
    side = game.get("white" if is_white else "black") or {}
    opp = game.get("black" if is_white else "white") or {}

    opponent_name = opp.get("username")
    if not opponent_name or opponent_name.lower() == username.lower():
        opponent_name = resolve_opponent_name(pgn, username)

    return {
        "username": username,
        "timestamp": game.get("end_time"),
        "opening": info.opening,
        "eco": info.eco,
        "color": "white" if is_white else "black",
        "result": side.get("result") or "unknown",
        "opponent_rating": opp.get("rating"),
        "first_move": extract_first_move(pgn),
        "time_class": game.get("time_class") or "unknown",
        "pgn": pgn,
        "move_count": count_moves(pgn),
        "url": game.get("url") or "",
        "opponent_username": opponent_name or "Unknown",
    }


async def save_games(store: DocumentStore, username: str, games: list[dict]) -> int:
    """Upsert every classifiable game. Returns how many were written."""
    saved = 0
    for game in games:
        doc = build_game_document(game, username)
        if doc is None:
            continue
        await store.set("games", safe_game_id(game, username), doc, merge=True)
        saved += 1

    logger.info("Saved %d of %d games for %s", saved, len(games), username)
    return saved


async def list_player_games(
    store: DocumentStore,
    username: str,
    sort: str = "date",
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    The `limit` most recent stored games of a player, then ordered by `sort`
    (date, moves or opponent rating; all descending).
    """
    field = GAME_SORTS.get(sort)
    if field is None:
        raise ValueError(f"Unknown sort: {sort}")

    rows = await store.query(
        "games",
        where=[("username", username)],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    games = [{"id": key, **data} for key, data in rows]
    games.sort(key=lambda g: g.get(field) or 0, reverse=True)
    return games


async def get_game(store: DocumentStore, game_id: str) -> Optional[dict[str, Any]]:
    data = await store.get("games", game_id)
    if data is None:
        return None
    return {"id": game_id, **data}
