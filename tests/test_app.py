"""Tests for the application composition root."""

from __future__ import annotations

import pytest

from src.app import create_app
from src.config.settings import Settings


@pytest.mark.asyncio
async def test_create_app_builds_unopened_pool() -> None:
    settings = Settings(DATABASE_URL="postgresql://localhost/qa", DB_POOL_MAX_SIZE=3)

    app = create_app(settings)

    assert app.settings is settings
    assert app.pool.max_size == 3
    assert app.pool.closed
