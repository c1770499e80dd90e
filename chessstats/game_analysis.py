"""
Heuristic single-game analysis.

Replays a PGN with python-chess and counts captures, checks, material swing
and an "uncompensated capture" blunder proxy per side. Accuracy is not
derived from the replay; it comes from a pluggable AccuracyEstimator whose
default is a randomized placeholder.

The blunder rule: when a ply captures a piece worth >= 3 and the very next
ply does not capture something worth at least as much, the side that moved
just before the capture is charged a blunder. Sacrifices and delayed
recaptures are misjudged.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Optional, Union

import chess
import chess.pgn

from .db.store import DocumentStore

logger = logging.getLogger(__name__)

PIECE_VALUES = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}

BLUNDER_MIN_VALUE = 3


@dataclass
class SidePair:
    white: int = 0
    black: int = 0

    def add(self, color: chess.Color, amount: int = 1) -> None:
        if color == chess.WHITE:
            self.white += amount
        else:
            self.black += amount

    def to_dict(self) -> dict[str, int]:
        return {"white": self.white, "black": self.black}


@dataclass
class AnalysisResult:
    opening: str
    accuracy: SidePair
    blunders: SidePair = field(default_factory=SidePair)
    aggressiveness: SidePair = field(default_factory=SidePair)
    captures: SidePair = field(default_factory=SidePair)
    checks: SidePair = field(default_factory=SidePair)
    material_diff: int = 0  # positive = white ahead
    processed_at: int = 0  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "opening": self.opening,
            "accuracy": self.accuracy.to_dict(),
            "analysis": {
                "blunders": self.blunders.to_dict(),
                "aggressiveness": self.aggressiveness.to_dict(),
                "captures": self.captures.to_dict(),
                "checks": self.checks.to_dict(),
                "material_diff": self.material_diff,
            },
            "processed_at": self.processed_at,
        }


@dataclass
class AnalysisSuccess:
    result: AnalysisResult
    ok: bool = True


@dataclass
class AnalysisFailure:
    reason: str
    ok: bool = False


AnalysisOutcome = Union[AnalysisSuccess, AnalysisFailure]


# ═══════════════════════════════════════════════════════════
# Accuracy estimation
# ═══════════════════════════════════════════════════════════


class AccuracyEstimator:
    """Produces a per-side accuracy score for a finished game."""

    def estimate(self, result: str, ply_count: int) -> SidePair:
        raise NotImplementedError


class RandomAccuracyEstimator(AccuracyEstimator):
    """
    Placeholder estimate: uniform in [70, 95] per side, +5 for the winner
    (max 99), -10 for the loser (min 10), +5 both sides under 20 plies.
    Not an engine evaluation.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def estimate(self, result: str, ply_count: int) -> SidePair:
        white = 70 + self.rng.random() * 25
        black = 70 + self.rng.random() * 25

        if result == "1-0":
            white = min(99, white + 5)
            black = max(10, black - 10)
        elif result == "0-1":
            black = min(99, black + 5)
            white = max(10, white - 10)

        if ply_count < 20:
            white = min(99, white + 5)
            black = min(99, black + 5)

        return SidePair(round(white), round(black))


# ═══════════════════════════════════════════════════════════
# Replay
# ═══════════════════════════════════════════════════════════


@dataclass
class _Ply:
    color: chess.Color
    san: str
    captured_value: Optional[int]  # None when the ply is not a capture


def _captured_value(board: chess.Board, move: chess.Move) -> Optional[int]:
    if board.is_en_passant(move):
        return PIECE_VALUES[chess.PAWN]
    if not board.is_capture(move):
        return None
    piece = board.piece_at(move.to_square)
    return PIECE_VALUES[piece.piece_type] if piece else 0


def _replay(game: chess.pgn.Game) -> list[_Ply]:
    board = game.board()
    plies = []
    for move in game.mainline_moves():
        plies.append(_Ply(board.turn, board.san(move), _captured_value(board, move)))
        board.push(move)
    return plies


def _opening_name(headers: chess.pgn.Headers) -> str:
    opening = headers.get("Opening")
    if opening:
        return opening
    eco = headers.get("ECO")
    if eco:
        return f"ECO {eco}"
    return "Unknown Opening"


def analyze_pgn(pgn: str, estimator: AccuracyEstimator) -> AnalysisOutcome:
    """Synchronous core of GameAnalyzer.analyze."""
    if not pgn or not pgn.strip():
        return AnalysisFailure("empty PGN")

    try:
        game = chess.pgn.read_game(StringIO(pgn))
    except (ValueError, IndexError) as e:
        logger.warning("Invalid PGN: %s", e)
        return AnalysisFailure(f"invalid PGN: {e}")

    if game is None:
        return AnalysisFailure("no game found in PGN")
    if game.errors:
        logger.warning("Invalid PGN: %s", game.errors[0])
        return AnalysisFailure(f"invalid PGN: {game.errors[0]}")

    plies = _replay(game)
    if not plies:
        # read_game skips text it cannot parse, so "not PGN" arrives here as an empty game
        return AnalysisFailure("no moves in PGN")

    captures = SidePair()
    checks = SidePair()
    blunders = SidePair()
    material = 0

    for i, ply in enumerate(plies):
        if ply.captured_value is not None:
            captures.add(ply.color)
            material += ply.captured_value if ply.color == chess.WHITE else -ply.captured_value

        if "+" in ply.san or "#" in ply.san:
            checks.add(ply.color)

        if i > 0 and ply.captured_value is not None and ply.captured_value >= BLUNDER_MIN_VALUE:
            nxt = plies[i + 1] if i + 1 < len(plies) else None
            is_trade = (
                nxt is not None
                and nxt.captured_value is not None
                and nxt.captured_value >= ply.captured_value
            )
            if not is_trade:
                blunders.add(plies[i - 1].color)

    white_moves = sum(1 for p in plies if p.color == chess.WHITE)
    black_moves = len(plies) - white_moves
    aggressiveness = SidePair(
        round((captures.white + checks.white) / white_moves * 100) if white_moves else 0,
        round((captures.black + checks.black) / black_moves * 100) if black_moves else 0,
    )

    result = AnalysisResult(
        opening=_opening_name(game.headers),
        accuracy=estimator.estimate(game.headers.get("Result", "*"), len(plies)),
        blunders=blunders,
        aggressiveness=aggressiveness,
        captures=captures,
        checks=checks,
        material_diff=material,
        processed_at=int(time.time() * 1000),
    )
    return AnalysisSuccess(result)


class GameAnalyzer:
    """Async front for analyze_pgn with a fixed delay before resolving."""

    def __init__(self, estimator: Optional[AccuracyEstimator] = None, delay_seconds: float = 1.5):
        self.estimator = estimator or RandomAccuracyEstimator()
        self.delay_seconds = delay_seconds

    async def analyze(self, pgn: str) -> AnalysisOutcome:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        return analyze_pgn(pgn, self.estimator)


async def analyze_stored_game(
    store: DocumentStore,
    analyzer: GameAnalyzer,
    game_id: str,
) -> Optional[dict[str, Any]]:
    """
    Analysis for games/{game_id}, computed once and cached on the game document.

    Returns None when the game does not exist. A failed analysis is returned
    as {"error": reason} and is not cached.
    """
    game = await store.get("games", game_id)
    if game is None:
        return None

    cached = game.get("analysis")
    if cached:
        return cached

    outcome = await analyzer.analyze(game.get("pgn") or "")
    if isinstance(outcome, AnalysisFailure):
        return {"error": outcome.reason}

    analysis = outcome.result.to_dict()
    await store.set("games", game_id, {"analysis": analysis}, merge=True)
    return analysis
