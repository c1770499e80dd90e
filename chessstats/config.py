"""
ChessStats - Configuration

Loads settings from environment variables with Pydantic validation.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ─── Database ───
    database_url: str = "postgresql+asyncpg://localhost:5432/chessstats"

    # ─── Auth ───
    session_secret: str = "dev-secret-change-me"
    session_ttl_minutes: int = 60 * 24 * 7

    # ─── Chess.com ───
    chesscom_base_url: str = "https://api.chess.com/pub"
    chesscom_user_agent: str = "ChessStats/1.0 (player statistics)"
    http_timeout: float = 30.0
    # Archive requests in flight at once; 1 keeps the month-by-month order strictly sequential
    archive_concurrency: int = 1
    rivalry_archive_window: int = 12
    profile_months: int = 3
    recent_games_limit: int = 25
    top_players_limit: int = 50

    # ─── Analysis ───
    analysis_delay_seconds: float = 1.5

    # ─── App ───
    cors_origins: str = "http://localhost:5173"
    env: str = "development"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def database_url_async(self) -> str:
        """Normalize DATABASE_URL for SQLAlchemy async engine.

        Accepts URLs like:
        - postgres://...
        - postgresql://...
        and converts them to:
        - postgresql+asyncpg://...
        """
        url = self.database_url or ""
        if url.startswith("postgres://"):
            return "postgresql+asyncpg://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            return "postgresql+asyncpg://" + url[len("postgresql://"):]
        return url

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
