"""Application composition root.

This module wires together configuration, logging and the DB pool for the analytics service.
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg_pool import AsyncConnectionPool

from src.config.logging import configure_logging
from src.config.settings import Settings
from src.db.pool import create_pool


@dataclass(frozen=True)
class App:
    """Shared application dependencies for the analytics service."""

    settings: Settings
    pool: AsyncConnectionPool


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The returned DB pool is not opened. Call `await app.pool.open()` at startup.
    """

    configure_logging(settings.log_level)
    pool = create_pool(settings.database_url, max_size=settings.db_pool_max_size)
    return App(settings=settings, pool=pool)
