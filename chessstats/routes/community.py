"""
Community routes – community statistics, global summary, top players, web activity.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from chessstats.activity import load_activity, summarize_activity
from chessstats.chesscom_api import ChessComClient
from chessstats.community import compute_community_stats, compute_global_summary
from chessstats.config import Settings
from chessstats.db.store import DocumentStore
from chessstats.deps import get_app_settings, get_chess_client, get_store
from chessstats.players import PLAYERS_COLLECTION
from chessstats.top_players import LeaderboardUnavailable, load_top_players_for_today

router = APIRouter()


@router.get("/stats")
async def community_stats(
    username: str = Query("", description="Player to compare against the community"),
    store: DocumentStore = Depends(get_store),
):
    rows = await store.query(PLAYERS_COLLECTION)
    return compute_community_stats([data for _, data in rows], username)


@router.get("/summary")
async def global_summary(
    store: DocumentStore = Depends(get_store),
):
    rows = await store.query("games", order_by="timestamp", descending=True)
    return compute_global_summary([data for _, data in rows])


@router.get("/top-players")
async def top_players(
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
    settings: Settings = Depends(get_app_settings),
):
    """Today's live rapid top list, fetched once per day."""
    try:
        players = await load_top_players_for_today(store, client, limit=settings.top_players_limit)
    except LeaderboardUnavailable as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"players": players}


@router.get("/activity")
async def web_activity(
    store: DocumentStore = Depends(get_store),
):
    return summarize_activity(await load_activity(store))
