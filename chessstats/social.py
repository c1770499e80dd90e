"""
Follow relationships between an account and Chess.com players.

Edges live in accounts/{uid}/following, keyed by the lower-cased target
username, so at most one edge exists per (follower, target) pair.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, asdict
from typing import Optional

from .db.store import DocumentStore


@dataclass
class FollowedPlayer:
    username: str
    avatar: str = ""
    added_at: Optional[int] = None  # epoch milliseconds

    def to_dict(self) -> dict:
        return asdict(self)


def following_collection(uid: str) -> str:
    return f"accounts/{uid}/following"


async def follow_player(
    store: DocumentStore,
    uid: str,
    target_username: str,
    avatar: str = "",
    now: Optional[int] = None,
) -> None:
    """Create or overwrite the edge; repeated calls refresh added_at."""
    if not uid or not target_username:
        return

    edge = FollowedPlayer(
        username=target_username,
        avatar=avatar or "",
        added_at=now if now is not None else int(time.time() * 1000),
    )
    await store.set(following_collection(uid), target_username.lower(), edge.to_dict())


async def unfollow_player(store: DocumentStore, uid: str, target_username: str) -> None:
    if not uid or not target_username:
        return
    await store.delete(following_collection(uid), target_username.lower())


async def is_following(store: DocumentStore, uid: str, target_username: str) -> bool:
    if not uid or not target_username:
        return False
    return await store.get(following_collection(uid), target_username.lower()) is not None


async def get_followed_players(store: DocumentStore, uid: str) -> list[FollowedPlayer]:
    """Followed players, most recently followed first."""
    if not uid:
        return []

    rows = await store.query(following_collection(uid), order_by="added_at", descending=True)
    return [
        FollowedPlayer(
            username=data.get("username") or key,
            avatar=data.get("avatar") or "",
            added_at=data.get("added_at"),
        )
        for key, data in rows
    ]
