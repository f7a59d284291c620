"""Shared fixtures: a fresh SQLite database per test."""

import pytest

from greenpulse.database import create_engine_from_url, init_db


@pytest.fixture
async def engine(tmp_path):
    db_path = tmp_path / "test.db"
    url = f"sqlite+aiosqlite:///{db_path}"
    eng = create_engine_from_url(url)
    await init_db(eng)
    yield eng
    await eng.dispose()
