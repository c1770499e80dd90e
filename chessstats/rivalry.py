"""
Head-to-head record between two Chess.com players.

Scans the opponent's most recent monthly archives for games against `me`.
Nothing is cached: every call re-fetches and re-scans.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .aggregator import RecordCounts, game_outcome
from .chesscom_api import ChessComClient
from .results import LOSS, WIN

DEFAULT_ARCHIVE_WINDOW = 12


@dataclass
class RivalryStats:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    games: list[dict] = field(default_factory=list)
    detailed: dict[str, RecordCounts] = field(default_factory=dict)
    archives_scanned: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    def to_dict(self, include_games: bool = True) -> dict[str, Any]:
        out = {
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "total": self.total,
            "detailed": {tc: c.to_dict() for tc, c in self.detailed.items()},
            "archives_scanned": list(self.archives_scanned),
        }
        if include_games:
            out["games"] = self.games
        return out


def recent_archive_window(archives: list[str], window: int = DEFAULT_ARCHIVE_WINDOW) -> list[str]:
    """The `window` most recent archive URLs, newest first (archives arrive oldest first)."""
    return list(reversed(archives))[:window]


async def get_rivalry_stats(
    client: ChessComClient,
    me: str,
    opponent: str,
    window: int = DEFAULT_ARCHIVE_WINDOW,
) -> RivalryStats:
    """Record of `me` against `opponent`, from `me`'s perspective, over the opponent's recent archives."""
    stats = RivalryStats()
    archives = await client.fetch_archives(opponent)
    urls = recent_archive_window(archives, window)

    async for url, games in client.fetch_archive_games(urls):
        stats.archives_scanned.append(url)
        for g in games:
            outcome = game_outcome(g, me)
            if outcome is None:
                continue

            stats.games.append(g)
            if outcome == WIN:
                stats.wins += 1
            elif outcome == LOSS:
                stats.losses += 1
            else:
                stats.draws += 1

            time_class = g.get("time_class") or "unknown"
            stats.detailed.setdefault(time_class, RecordCounts()).add(outcome)

    return stats
