from pathlib import Path

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for settings.database_url; connects lazily."""
    url = make_url(settings.database_url)
    # Ensure parent directory exists for file-backed SQLite databases
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, echo=settings.database_echo)


def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine
