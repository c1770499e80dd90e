"""
Result classification for Chess.com per-side result tokens.

Chess.com reports each side's outcome as a token ("win", "checkmated",
"agreed", ...). classify_result folds them into win / loss / draw.
"""

from __future__ import annotations

WIN = "win"
LOSS = "loss"
DRAW = "draw"

LOSS_RESULTS = frozenset({"checkmated", "timeout", "resigned", "abandoned"})

# Draw tokens seen from the API. Anything outside WIN/LOSS_RESULTS is a draw
# regardless; this set only lets callers tell documented tokens from unknown ones.
DRAW_RESULTS = frozenset({
    "agreed",
    "repetition",
    "stalemate",
    "insufficient",
    "50move",
    "timevsinsufficient",
})

RESULT_LABELS = {
    "win": "Victory",
    "checkmated": "Checkmated",
    "resigned": "Resigned",
    "timeout": "Time out",
    "stalemate": "Stalemate",
    "insufficient": "Insufficient material",
    "repetition": "Repetition",
    "agreed": "Agreement",
    "abandoned": "Abandoned",
    "50move": "50-move rule",
    "timevsinsufficient": "Timeout vs insufficient material",
}


def classify_result(token: str | None) -> str:
    """Map a result token to "win", "loss" or "draw". Unknown tokens are draws."""
    if token == WIN:
        return WIN
    if token in LOSS_RESULTS:
        return LOSS
    return DRAW


def is_known_result(token: str | None) -> bool:
    return token == WIN or token in LOSS_RESULTS or token in DRAW_RESULTS


def translate_result(token: str | None) -> str:
    if not token:
        return ""
    return RESULT_LABELS.get(token, token.upper())
