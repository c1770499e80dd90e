"""
Social routes – follow / unfollow Chess.com players.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chessstats.auth import require_uid
from chessstats.db.store import DocumentStore
from chessstats.deps import get_store
from chessstats.social import follow_player, get_followed_players, is_following, unfollow_player

router = APIRouter()


class FollowRequest(BaseModel):
    avatar: Optional[str] = ""


@router.get("/following")
async def list_following(
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
):
    """Players the current account follows, most recent first."""
    players = await get_followed_players(store, uid)
    return {"following": [p.to_dict() for p in players]}


@router.get("/following/{username}")
async def check_following(
    username: str,
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
):
    return {"username": username, "following": await is_following(store, uid, username)}


@router.put("/following/{username}")
async def follow(
    username: str,
    body: Optional[FollowRequest] = None,
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
):
    await follow_player(store, uid, username, (body.avatar if body else "") or "")
    return {"username": username, "following": True}


@router.delete("/following/{username}")
async def unfollow(
    username: str,
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
):
    await unfollow_player(store, uid, username)
    return {"username": username, "following": False}
