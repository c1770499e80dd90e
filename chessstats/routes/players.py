"""
Player routes – Chess.com profiles, stored games, recent games, rivalry.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from chessstats.accounts import get_user_account
from chessstats.activity import record_activity
from chessstats.aggregator import aggregate_games
from chessstats.auth import get_current_uid
from chessstats.chesscom_api import ChessComClient
from chessstats.config import Settings
from chessstats.db.store import DocumentStore
from chessstats.deps import get_app_settings, get_chess_client, get_store
from chessstats.game_store import GAME_SORTS, list_player_games, save_games
from chessstats.players import build_profile, load_player
from chessstats.rivalry import get_rivalry_stats

router = APIRouter()


@router.get("/{username}")
async def get_player(
    username: str,
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
):
    """Player snapshot (cached in the store after the first lookup)."""
    player = await load_player(store, client, username)
    if player is None:
        raise HTTPException(status_code=404, detail=f"Player '{username}' not found")
    return player


@router.get("/{username}/profile")
async def get_profile(
    username: str,
    uid: Optional[str] = Depends(get_current_uid),
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
    settings: Settings = Depends(get_app_settings),
):
    """Snapshot plus openings and insights over the last few months of games."""
    profile = await build_profile(store, client, username, months=settings.profile_months)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Player '{username}' not found")

    visitor = "anonymous"
    if uid:
        account = await get_user_account(store, uid)
        visitor = (account or {}).get("username") or uid
    await record_activity(store, visitor, f"profile/{username}")

    return profile


@router.get("/{username}/games")
async def get_stored_games(
    username: str,
    sort: str = Query("date"),
    limit: int = Query(50, ge=1, le=300),
    store: DocumentStore = Depends(get_store),
):
    """Games already saved for this player."""
    if sort not in GAME_SORTS:
        raise HTTPException(status_code=400, detail=f"Unknown sort: {sort}")
    games = await list_player_games(store, username, sort=sort, limit=limit)
    return {"games": games, "total": len(games)}


@router.post("/{username}/games/sync")
async def sync_games(
    username: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
    settings: Settings = Depends(get_app_settings),
):
    """Fetch the most recent games from Chess.com and upsert them."""
    games = await client.fetch_recent_games(username, limit or settings.recent_games_limit)
    saved = await save_games(store, username, games)
    return {"fetched": len(games), "saved": saved, "username": username}


@router.get("/{username}/recent-games")
async def get_recent_games(
    username: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    client: ChessComClient = Depends(get_chess_client),
    settings: Settings = Depends(get_app_settings),
):
    """Most recent games straight from Chess.com, newest first, with their aggregate."""
    games = await client.fetch_recent_games(username, limit or settings.recent_games_limit)
    return {"games": games, "aggregate": aggregate_games(games, username).to_dict()}


@router.get("/{username}/games/{year}/{month}")
async def get_monthly_games(
    username: str,
    year: int,
    month: int,
    client: ChessComClient = Depends(get_chess_client),
):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")
    games = await client.fetch_monthly_games(username, year, month)
    return {"games": games, "aggregate": aggregate_games(games, username).to_dict()}


@router.get("/{username}/rivalry")
async def get_rivalry(
    username: str,
    me: Optional[str] = Query(None, description="Chess.com username to compare; defaults to the linked account"),
    uid: Optional[str] = Depends(get_current_uid),
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
    settings: Settings = Depends(get_app_settings),
):
    """Head-to-head record of `me` against `username`."""
    if not me and uid:
        account = await get_user_account(store, uid)
        me = (account or {}).get("chess_username")
    if not me:
        raise HTTPException(status_code=400, detail="Link a Chess.com account or pass ?me=")

    stats = await get_rivalry_stats(client, me, username, window=settings.rivalry_archive_window)
    return stats.to_dict()
