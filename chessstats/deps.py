"""
FastAPI dependencies for the collaborators built at startup.

main.lifespan constructs them once and parks them on app.state; routes
receive them through these functions so tests can override each one.
"""

from fastapi import Request

from chessstats.accounts import AuthService
from chessstats.chesscom_api import ChessComClient
from chessstats.config import Settings, get_settings
from chessstats.db.store import DocumentStore
from chessstats.game_analysis import GameAnalyzer


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_chess_client(request: Request) -> ChessComClient:
    return request.app.state.chess_client


def get_analyzer(request: Request) -> GameAnalyzer:
    return request.app.state.analyzer


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_app_settings() -> Settings:
    return get_settings()
