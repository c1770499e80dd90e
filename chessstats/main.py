"""
ChessStats - FastAPI Application

Main application factory with middleware, routes, and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from chessstats import __version__
from chessstats.accounts import AuthService
from chessstats.chesscom_api import ChessComClient
from chessstats.config import get_settings
from chessstats.db.session import build_engine, build_session_factory
from chessstats.db.store import SqlDocumentStore
from chessstats.game_analysis import GameAnalyzer, RandomAccuracyEstimator
from chessstats.routes import community, games, health, players, sessions, social, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build every collaborator once, and release them on shutdown."""
    settings = get_settings()

    engine = build_engine(settings)
    store = SqlDocumentStore(engine, build_session_factory(engine))

    # Create tables if they don't exist (dev only; use migrations in prod)
    if not settings.is_production:
        await store.create_schema()

    app.state.store = store
    app.state.chess_client = ChessComClient.from_settings(settings)
    app.state.analyzer = GameAnalyzer(RandomAccuracyEstimator(), settings.analysis_delay_seconds)
    app.state.auth_service = AuthService(store, settings.session_secret, settings.session_ttl_minutes)
    logger.info("ChessStats started (env=%s)", settings.env)

    yield

    # Cleanup
    await app.state.chess_client.aclose()
    await store.dispose()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="ChessStats API",
        version=__version__,
        description="Chess.com player statistics, openings, rivalries and follows",
        lifespan=lifespan,
    )

    # ── CORS ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Store error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=503, content={"detail": "Couldn't load or save data"})

    # ── Routes ──
    app.include_router(health.router, tags=["health"])
    app.include_router(players.router, prefix="/api/players", tags=["players"])
    app.include_router(games.router, prefix="/api/games", tags=["games"])
    app.include_router(social.router, prefix="/api/social", tags=["social"])
    app.include_router(sessions.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(community.router, prefix="/api/community", tags=["community"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
