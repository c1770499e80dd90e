"""
User routes – account profile and linked Chess.com username.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from chessstats.accounts import get_user_account, update_chess_username, update_display_name
from chessstats.auth import require_uid
from chessstats.chesscom_api import ChessComClient
from chessstats.db.store import DocumentStore
from chessstats.deps import get_chess_client, get_store

router = APIRouter()


class UserProfile(BaseModel):
    uid: str
    email: Optional[str]
    username: str
    chess_username: Optional[str] = None
    created_at: int


class UpdateProfileRequest(BaseModel):
    chess_username: Optional[str] = None
    username: Optional[str] = None


async def _load_profile(store: DocumentStore, uid: str) -> UserProfile:
    account = await get_user_account(store, uid)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return UserProfile(**account)


@router.get("/me", response_model=UserProfile)
async def get_me(
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
):
    """Get current account."""
    return await _load_profile(store, uid)


@router.patch("/me", response_model=UserProfile)
async def update_profile(
    body: UpdateProfileRequest,
    uid: str = Depends(require_uid),
    store: DocumentStore = Depends(get_store),
    client: ChessComClient = Depends(get_chess_client),
):
    """Update display name and/or link a Chess.com username (verified first)."""
    if body.chess_username is not None:
        name = body.chess_username.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Chess.com username is empty")
        if await client.fetch_player(name) is None:
            raise HTTPException(status_code=404, detail="Chess.com user not found")
        await update_chess_username(store, uid, name)

    if body.username is not None:
        await update_display_name(store, uid, body.username)

    return await _load_profile(store, uid)
