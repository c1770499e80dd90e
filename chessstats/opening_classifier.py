"""
Opening classifier for Chess.com games.

Resolves an opening name and ECO code from raw PGN text, in order:
explicit [Opening] tag, ECO code looked up in ECO_BOOK, then the first
two plies matched against a small table of common openings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, asdict
from typing import Optional

UNKNOWN_OPENING = "Unknown Opening"

# ECO code → opening name
ECO_BOOK = {
    # A - Flank openings
    "A00": "Uncommon Opening",
    "A04": "Reti Opening",
    "A06": "Zukertort Opening",
    "A10": "English Opening",
    "A12": "English Opening: Caro-Kann Defensive System",
    "A20": "English Opening",
    "A25": "English Opening: Sicilian Reversed",
    "A40": "Queen's Pawn Game",
    "A45": "Trompowsky Attack",
    "A46": "Queen's Pawn: Torre Attack",
    "A48": "London System",

    # B - Semi-open (1.e4 defences other than 1...e5)
    "B00": "King's Pawn Game",
    "B01": "Scandinavian Defense",
    "B06": "Robatsch (Modern) Defense",
    "B07": "Pirc Defense",
    "B10": "Caro-Kann Defense",
    "B20": "Sicilian Defense",
    "B22": "Alapin Sicilian",
    "B23": "Closed Sicilian",
    "B30": "Sicilian Defense: Rossolimo",
    "B40": "Sicilian Defense: Scheveningen",

    # C - Open games (1.e4 e5) and French
    "C20": "King's Pawn Game",
    "C23": "Bishop's Opening",
    "C30": "King's Gambit",
    "C40": "King's Knight Opening",
    "C50": "Italian Game",
    "C60": "Ruy Lopez",
    "C65": "Ruy Lopez: Berlin Defense",
    "C70": "Ruy Lopez: Classical",

    # D - Closed games (1.d4 d5)
    "D00": "Queen's Pawn Game",
    "D02": "London System",
    "D04": "Colle System",
    "D10": "Slav Defense",
    "D20": "Queen's Gambit Accepted",
    "D30": "Queen's Gambit",
    "D31": "Queen's Gambit Declined",

    # E - Indian defences (1.d4 Nf6)
    "E00": "Indian Defense",
    "E20": "Nimzo-Indian Defense",
    "E60": "King's Indian Defense",
    "E80": "King's Indian Defense: Saemisch",
}

# (first ply, second ply) → opening name; plies are lower-cased SAN
TWO_PLY_PATTERNS = {
    ("e4", "c5"): "Sicilian Defense",
    ("e4", "e5"): "Open Game (1.e4 e5)",
    ("e4", "e6"): "French Defense",
    ("e4", "c6"): "Caro-Kann Defense",
    ("e4", "d5"): "Scandinavian Defense",
    ("d4", "d5"): "Queen's Gambit / QGD",
    ("d4", "nf6"): "Indian Defense",
    ("d4", "g6"): "King's Indian / Grünfeld",
}

# First ply alone, whatever the reply
FIRST_PLY_PATTERNS = {
    "c4": "English Opening",
    "nf3": "Reti Opening",
    "g3": "King's Fianchetto Opening",
}

_ECO_TAG = re.compile(r'\[ECO\s+"([^"]+)"\]', re.IGNORECASE)
_OPENING_TAG = re.compile(r'\[Opening\s+"([^"]+)"\]', re.IGNORECASE)
_MOVES_LINE = re.compile(r"^\s*1\.")
_COMMENT = re.compile(r"\{[^}]+\}")
_MOVE_NUMBER = re.compile(r"\d+\.(\.\.)?")
_FIRST_MOVE = re.compile(r"^1\.\s*([a-h][1-8]|[NBRQK][a-h][1-8])", re.MULTILINE)
_MOVE_NUMBER_TOKEN = re.compile(r"\d+\.")
_WHITE_TAG = re.compile(r'\[White\s+"([^"]+)"\]', re.IGNORECASE)
_BLACK_TAG = re.compile(r'\[Black\s+"([^"]+)"\]', re.IGNORECASE)


@dataclass(frozen=True)
class OpeningInfo:
    opening: str
    eco: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _first_two_plies(pgn: str) -> Optional[tuple[str, str]]:
    moves_line = next((line for line in pgn.split("\n") if _MOVES_LINE.match(line)), None)
    if moves_line is None:
        return None

    cleaned = _MOVE_NUMBER.sub("", _COMMENT.sub("", moves_line)).strip()
    plies = [p.lower() for p in cleaned.split()]
    first = plies[0] if plies else ""
    second = plies[1] if len(plies) > 1 else ""
    return first, second


def classify_opening(pgn: str) -> OpeningInfo:
    """
    Classify the opening of a single game.

    Args:
        pgn: Raw PGN text (tags and movetext)

    Returns:
        OpeningInfo; opening is "Unknown Opening" when nothing matches.
        Never raises.
    """
    if not pgn or not isinstance(pgn, str):
        return OpeningInfo(UNKNOWN_OPENING, None)

    eco_match = _ECO_TAG.search(pgn)
    eco = eco_match.group(1) if eco_match else None

    opening_match = _OPENING_TAG.search(pgn)
    if opening_match:
        return OpeningInfo(opening_match.group(1), eco)

    if eco and eco in ECO_BOOK:
        return OpeningInfo(ECO_BOOK[eco], eco)

    plies = _first_two_plies(pgn)
    if plies is None:
        return OpeningInfo(UNKNOWN_OPENING, eco)

    if plies in TWO_PLY_PATTERNS:
        return OpeningInfo(TWO_PLY_PATTERNS[plies], eco)
    if plies[0] in FIRST_PLY_PATTERNS:
        return OpeningInfo(FIRST_PLY_PATTERNS[plies[0]], eco)

    return OpeningInfo(UNKNOWN_OPENING, eco)


def extract_first_move(pgn: str) -> str:
    """First white move in SAN (e.g. "e4", "Nf3"), or "—" if absent."""
    if not pgn:
        return "—"
    match = _FIRST_MOVE.search(pgn)
    return match.group(1) if match else "—"


def count_moves(pgn: str) -> int:
    """Number of move-number tokens ("1.", "2.", ...) in the PGN."""
    if not pgn:
        return 0
    return len(_MOVE_NUMBER_TOKEN.findall(pgn))


def resolve_opponent_name(pgn: str, username: str) -> Optional[str]:
    """Name of the side that is not `username`, read from the PGN tags."""
    if not pgn:
        return None

    white_match = _WHITE_TAG.search(pgn)
    black_match = _BLACK_TAG.search(pgn)
    white = white_match.group(1) if white_match else None
    black = black_match.group(1) if black_match else None

    me = username.lower()
    if white and white.lower() == me:
        return black
    if black and black.lower() == me:
        return white
    return None
