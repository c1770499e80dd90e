"""
Chess.com Published-Data API client.

Every endpoint is public and unauthenticated. A non-2xx response means
"no data" and comes back as None / []; network and decoding errors are
logged and treated the same way. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, AsyncIterator, Optional

import httpx

from .config import Settings

logger = logging.getLogger(__name__)

STATS_CATEGORIES = {
    "chess_rapid": "rapid",
    "chess_blitz": "blitz",
    "chess_bullet": "bullet",
    "chess_daily": "daily",
    "chess960_daily": "daily960",
}


def format_unix_date(ts: Optional[int]) -> str:
    """Epoch seconds → 'YYYY-MM-DD' (UTC); empty string when missing."""
    if not ts:
        return ""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


def _map_category(cat: Optional[dict]) -> Optional[dict]:
    if not cat or not cat.get("last"):
        return None
    record = cat.get("record") or {}
    win = record.get("win", 0)
    loss = record.get("loss", 0)
    draw = record.get("draw", 0)
    return {
        "rating": cat["last"].get("rating", 0),
        "games": win + loss + draw,
        "win": win,
        "loss": loss,
        "draw": draw,
    }


def map_player_stats(data: dict) -> dict:
    """Shape a /stats payload into per-mode {rating, games, win, loss, draw}."""
    stats: dict[str, Any] = {}
    for source_key, mode in STATS_CATEGORIES.items():
        if data.get(source_key):
            category = _map_category(data[source_key])
            if category:
                stats[mode] = category

    highest = (data.get("tactics") or {}).get("highest")
    if highest:
        stats["puzzles"] = {
            "rating": highest.get("rating", 0),
            "best": highest.get("rating", 0),
            "total": highest.get("games", 0),
        }
    return stats


def map_player(data: dict, username: str) -> dict:
    return {
        "avatar": data.get("avatar", ""),
        "followers": data.get("followers", 0),
        "id": data.get("player_id", 0),
        "is_streamer": data.get("is_streamer", False),
        "joined": format_unix_date(data.get("joined")),
        "last_online": format_unix_date(data.get("last_online")),
        "location": data.get("location", ""),
        "name": data.get("name", ""),
        "status": data.get("status", ""),
        "twitch_url": data.get("twitch_url", ""),
        "username": data.get("username", username),
    }


def map_leaderboard_entry(entry: dict) -> dict:
    # The leaderboard payload has no followers/joined/status; avoid a call per player
    return {
        "avatar": entry.get("avatar", ""),
        "followers": 0,
        "id": entry.get("player_id", 0),
        "is_streamer": False,
        "joined": "",
        "last_online": "",
        "location": entry.get("country", ""),
        "name": entry.get("name", ""),
        "status": "",
        "twitch_url": "",
        "username": entry.get("username", ""),
        "rating": entry.get("score"),
    }


class ChessComClient:
    """Thin async wrapper over api.chess.com/pub."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = "https://api.chess.com/pub",
        archive_concurrency: int = 1,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.archive_concurrency = max(1, archive_concurrency)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChessComClient":
        http = httpx.AsyncClient(
            timeout=settings.http_timeout,
            headers={
                "User-Agent": settings.chesscom_user_agent,
                "Accept": "application/json",
            },
        )
        return cls(http, settings.chesscom_base_url, settings.archive_concurrency)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _get_json(self, url: str) -> Optional[dict]:
        try:
            resp = await self.http.get(url)
        except httpx.HTTPError as e:
            logger.warning("Chess.com request failed for %s: %s", url, e)
            return None

        if resp.status_code != 200:
            return None

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("Chess.com returned invalid JSON for %s: %s", url, e)
            return None

        # Every endpoint used here answers with an object
        if not isinstance(data, dict):
            logger.warning("Chess.com returned a non-object payload for %s", url)
            return None
        return data

    # ── Players ──

    async def fetch_player(self, username: str) -> Optional[dict]:
        data = await self._get_json(f"{self.base_url}/player/{username.lower()}")
        if not data:
            return None
        return map_player(data, username)

    async def fetch_player_stats(self, username: str) -> Optional[dict]:
        data = await self._get_json(f"{self.base_url}/player/{username.lower()}/stats")
        if data is None:
            return None
        return map_player_stats(data)

    # ── Archives ──

    async def fetch_archives(self, username: str) -> list[str]:
        data = await self._get_json(f"{self.base_url}/player/{username}/games/archives")
        if not data:
            return []
        return list(data.get("archives") or [])

    async def fetch_games_from_archive(self, archive_url: str) -> list[dict]:
        data = await self._get_json(archive_url)
        if not data:
            return []
        return list(data.get("games") or [])

    async def fetch_archive_games(self, archive_urls: list[str]) -> AsyncIterator[tuple[str, list[dict]]]:
        """
        Yield (url, games) for each archive in the order given.

        At most `archive_concurrency` requests are in flight; the next window
        is only issued once every request of the current one has resolved.
        """
        step = self.archive_concurrency
        for start in range(0, len(archive_urls), step):
            window = archive_urls[start:start + step]
            results = await asyncio.gather(*(self.fetch_games_from_archive(u) for u in window))
            for url, games in zip(window, results):
                yield url, games

    def monthly_archive_url(self, username: str, year: int, month: int) -> str:
        return f"{self.base_url}/player/{username}/games/{year}/{month:02d}"

    async def fetch_monthly_games(self, username: str, year: int, month: int) -> list[dict]:
        return await self.fetch_games_from_archive(self.monthly_archive_url(username, year, month))

    async def fetch_last_months_games(
        self, username: str, months: int = 3, today: Optional[date] = None
    ) -> list[dict]:
        """Games from the current calendar month and the `months - 1` before it."""
        today = today or datetime.now(timezone.utc).date()
        urls = []
        for i in range(months):
            total = today.year * 12 + (today.month - 1) - i
            year, month = divmod(total, 12)
            urls.append(self.monthly_archive_url(username, year, month + 1))

        all_games: list[dict] = []
        async for _, games in self.fetch_archive_games(urls):
            all_games.extend(games)
        return all_games

    async def fetch_recent_games(self, username: str, limit: int = 25) -> list[dict]:
        """The `limit` most recent games, newest first."""
        archives = await self.fetch_archives(username)
        if not archives:
            return []

        collected: list[dict] = []
        async for _, games in self.fetch_archive_games(list(reversed(archives))):
            # Archive games are chronological within the month
            for g in reversed(games):
                if len(collected) >= limit:
                    break
                collected.append(g)
            if len(collected) >= limit:
                break
        return collected

    # ── Leaderboards ──

    async def fetch_leaderboard(self, mode: str = "live_rapid", limit: int = 50) -> list[dict]:
        data = await self._get_json(f"{self.base_url}/leaderboards")
        if not data:
            return []
        entries = data.get(mode)
        if not isinstance(entries, list):
            return []
        return [map_leaderboard_entry(e) for e in entries[:limit]]
