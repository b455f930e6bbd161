import pytest
from sqlalchemy import text

from templatehub.core.config import DatabaseSettings
from templatehub.infrastructure.database.session import build_engine


@pytest.mark.asyncio
async def test_sqlite_engine_enforces_foreign_keys(tmp_path):
    engine = build_engine(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'fk.db'}"))
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1
    finally:
        await engine.dispose()
