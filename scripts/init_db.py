#!/usr/bin/env python
"""Create the library tables (sessions, categories, favorite words)."""
import asyncio
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from wortschatz.db.connection import create_engine, get_database_url
from wortschatz.db.models import Base
from wortschatz.main import validate_environment


def _ensure_sqlite_directory(url: str) -> None:
    prefix = "sqlite+aiosqlite:///"
    if url.startswith(prefix) and ":memory:" not in url:
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


async def init_db() -> None:
    url = get_database_url()
    _ensure_sqlite_directory(url)
    engine = create_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("✓ Database tables created successfully")


if __name__ == "__main__":
    validate_environment()
    asyncio.run(init_db())
