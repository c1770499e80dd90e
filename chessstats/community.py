"""
Community-wide aggregates over cached players and stored games.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .results import LOSS, WIN, classify_result

MODES = ("rapid", "blitz", "bullet", "daily")
ACTIVE_WINDOW = timedelta(days=7)
DOMINANT_SHARE = 0.45


def _parse_day(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _average(values: list[int]) -> Optional[int]:
    return round(sum(values) / len(values)) if values else None


def community_style(mode_count: dict[str, int]) -> str:
    total = sum(mode_count.values())
    if not total:
        return "Diverse community"
    if mode_count["blitz"] / total > DOMINANT_SHARE:
        return "Blitz-focused community"
    if mode_count["rapid"] / total > DOMINANT_SHARE:
        return "Methodical community (Rapid dominant)"
    return "Diverse community"


def compute_community_stats(
    players: list[dict],
    current_username: str = "",
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Rating averages, mode popularity and activity across cached players."""
    now = now or datetime.now(timezone.utc)
    ratings: dict[str, list[int]] = {m: [] for m in MODES}
    mode_count = {m: 0 for m in MODES}
    active = 0

    for p in players:
        last = _parse_day(p.get("last_online"))
        if last is not None and now - last < ACTIVE_WINDOW:
            active += 1

        stats = p.get("stats") or {}
        for mode in MODES:
            rating = (stats.get(mode) or {}).get("rating")
            if rating:
                ratings[mode].append(rating)
                mode_count[mode] += 1

    # sorted() is stable: ties keep MODES order
    ranked = sorted(mode_count.items(), key=lambda kv: kv[1], reverse=True)
    most_played = ranked[0][0] if ranked else None

    style_match = "Not enough data."
    current = next((p for p in players if p.get("username") == current_username), None)
    if current and current.get("stats"):
        st = current["stats"]
        totals = {m: (st.get(m) or {}).get("games", 0) for m in MODES}
        top_mode = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[0][0]
        style_match = (
            "Your style matches the community."
            if top_mode == most_played
            else "Your style differs from the community pattern."
        )

    return {
        "avg_ratings": {m: _average(ratings[m]) for m in MODES},
        "mode_distribution": mode_count,
        "most_played_mode": most_played,
        "active_last_7_days": active,
        "total_players": len(players),
        "community_style": community_style(mode_count),
        "player_style_match": style_match,
    }


def compute_global_summary(games: list[dict], top_n: int = 10) -> dict[str, Any]:
    """Totals over stored game documents (one per game, from the saver's side)."""
    white_wins = black_wins = draws = 0
    opponent_ratings: list[int] = []
    openings: Counter[str] = Counter()

    for g in games:
        outcome = classify_result(g.get("result"))
        color = g.get("color")
        if outcome == WIN:
            winner = color
        elif outcome == LOSS:
            winner = "black" if color == "white" else "white"
        else:
            winner = None

        if winner == "white":
            white_wins += 1
        elif winner == "black":
            black_wins += 1
        else:
            draws += 1

        rating = g.get("opponent_rating")
        if isinstance(rating, (int, float)) and rating > 0:
            opponent_ratings.append(int(rating))

        openings[g.get("opening") or "Unknown"] += 1

    return {
        "total_games": len(games),
        "white_wins": white_wins,
        "black_wins": black_wins,
        "draws": draws,
        "avg_elo": _average(opponent_ratings) or 0,
        "top_openings": [{"name": n, "count": c} for n, c in openings.most_common(top_n)],
    }
