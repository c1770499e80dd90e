"""
Game aggregator: fold a list of Chess.com games into a player's record.

One pass over the games keeps three independent tallies: global
win/loss/draw, per opening, and per time class. Derived ratios are computed
when read, never stored.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

from .opening_classifier import UNKNOWN_OPENING, classify_opening, extract_first_move
from .results import LOSS, WIN, classify_result


@dataclass
class RecordCounts:
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    def add(self, outcome: str) -> None:
        if outcome == WIN:
            self.wins += 1
        elif outcome == LOSS:
            self.losses += 1
        else:
            self.draws += 1

    def to_dict(self) -> dict[str, int]:
        return {"wins": self.wins, "losses": self.losses, "draws": self.draws, "total": self.total}


@dataclass
class OpeningRecord:
    name: str
    games: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def winrate(self) -> float:
        if not self.games:
            return 0.0
        return round(self.wins / self.games * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "games": self.games,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "winrate": self.winrate,
        }


@dataclass
class GameAggregate:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    white_games: int = 0
    black_games: int = 0
    by_opening: list[OpeningRecord] = field(default_factory=list)
    by_time_class: dict[str, RecordCounts] = field(default_factory=dict)
    avg_opponent_rating: Optional[int] = None
    top_first_move: str = "Unknown"
    current_streak_kind: Optional[str] = None
    current_streak: int = 0
    best_win_streak: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def winrate(self) -> float:
        if not self.total:
            return 0.0
        return round(self.wins / self.total * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "total": self.total,
            "winrate": self.winrate,
            "white_games": self.white_games,
            "black_games": self.black_games,
            "by_opening": [o.to_dict() for o in self.by_opening],
            "by_time_class": {tc: c.to_dict() for tc, c in self.by_time_class.items()},
            "avg_opponent_rating": self.avg_opponent_rating,
            "top_first_move": self.top_first_move,
            "current_streak": {"kind": self.current_streak_kind, "count": self.current_streak},
            "best_win_streak": self.best_win_streak,
        }


def player_side(game: dict, username: str) -> Optional[str]:
    """'white' / 'black' for the side `username` played, None if neither."""
    me = username.lower()
    white = ((game.get("white") or {}).get("username") or "").lower()
    black = ((game.get("black") or {}).get("username") or "").lower()
    if white == me:
        return "white"
    if black == me:
        return "black"
    return None


def game_outcome(game: dict, username: str) -> Optional[str]:
    side = player_side(game, username)
    if side is None:
        return None
    return classify_result((game.get(side) or {}).get("result"))


def _streaks(outcomes_newest_first: list[str]) -> tuple[Optional[str], int, int]:
    current_kind = None
    current = 0
    if outcomes_newest_first and outcomes_newest_first[0] in (WIN, LOSS):
        current_kind = outcomes_newest_first[0]
        for outcome in outcomes_newest_first:
            if outcome != current_kind:
                break
            current += 1

    best = run = 0
    for outcome in outcomes_newest_first:
        run = run + 1 if outcome == WIN else 0
        best = max(best, run)

    return current_kind, current, best


def aggregate_games(games: list[dict], username: str) -> GameAggregate:
    """
    Aggregate games from `username`'s perspective.

    Games `username` did not play are skipped. Games whose opening is
    "Unknown Opening" count towards the totals but not towards by_opening.
    """
    agg = GameAggregate()
    openings: dict[str, OpeningRecord] = {}
    opponent_ratings: list[int] = []
    first_moves: Counter[str] = Counter()
    dated_outcomes: list[tuple[int, str]] = []

    for game in games:
        side = player_side(game, username)
        if side is None:
            continue
        opponent = "black" if side == "white" else "white"

        outcome = classify_result((game.get(side) or {}).get("result"))
        if outcome == WIN:
            agg.wins += 1
        elif outcome == LOSS:
            agg.losses += 1
        else:
            agg.draws += 1

        if side == "white":
            agg.white_games += 1
        else:
            agg.black_games += 1

        pgn = game.get("pgn") or ""
        opening = classify_opening(pgn).opening
        if opening != UNKNOWN_OPENING:
            record = openings.setdefault(opening, OpeningRecord(opening))
            record.games += 1
            if outcome == WIN:
                record.wins += 1
            elif outcome == LOSS:
                record.losses += 1
            else:
                record.draws += 1

        time_class = game.get("time_class") or "unknown"
        agg.by_time_class.setdefault(time_class, RecordCounts()).add(outcome)

        rating = (game.get(opponent) or {}).get("rating")
        if isinstance(rating, (int, float)) and rating > 0:
            opponent_ratings.append(int(rating))

        first_move = extract_first_move(pgn)
        if first_move != "—":
            first_moves[first_move] += 1

        dated_outcomes.append((game.get("end_time") or 0, outcome))

    # sorted() is stable, so equal counts keep first-seen order
    agg.by_opening = sorted(openings.values(), key=lambda o: o.games, reverse=True)

    if opponent_ratings:
        agg.avg_opponent_rating = round(sum(opponent_ratings) / len(opponent_ratings))
    if first_moves:
        agg.top_first_move = first_moves.most_common(1)[0][0]

    newest_first = [o for _, o in sorted(dated_outcomes, key=lambda x: x[0], reverse=True)]
    agg.current_streak_kind, agg.current_streak, agg.best_win_streak = _streaks(newest_first)

    return agg

