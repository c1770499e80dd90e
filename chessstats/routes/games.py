"""
Game routes – stored game detail and heuristic analysis.
"""

from fastapi import APIRouter, Depends, HTTPException

from chessstats.db.store import DocumentStore
from chessstats.deps import get_analyzer, get_store
from chessstats.game_analysis import GameAnalyzer, analyze_stored_game
from chessstats.game_store import get_game
from chessstats.results import classify_result, translate_result

router = APIRouter()


@router.get("/{game_id}")
async def get_game_detail(
    game_id: str,
    store: DocumentStore = Depends(get_store),
):
    """A stored game with its PGN and analysis (if available)."""
    game = await get_game(store, game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")

    game["outcome"] = classify_result(game.get("result"))
    game["result_label"] = translate_result(game.get("result"))
    return game


@router.post("/{game_id}/analysis")
async def analyze_game(
    game_id: str,
    store: DocumentStore = Depends(get_store),
    analyzer: GameAnalyzer = Depends(get_analyzer),
):
    """Run (or return the cached) heuristic analysis for a stored game."""
    analysis = await analyze_stored_game(store, analyzer, game_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Game not found")
    if "error" in analysis:
        raise HTTPException(status_code=422, detail=f"Couldn't analyze game: {analysis['error']}")
    return analysis
