"""DB session configuration helpers.

Cutoff dates are computed as UTC calendar days and compared against `started_at::date`. For that cast
to agree with the Python side, every DB session must be locked to the UTC timezone and kept
read-only: the analytics pipeline never writes.
"""

from __future__ import annotations

from psycopg import AsyncConnection


async def ensure_utc(conn: AsyncConnection) -> None:
    """Ensure the current Postgres session timezone is UTC and the session is read-only."""

    async with conn.cursor() as cur:
        await cur.execute("SET TIME ZONE 'UTC'", prepare=False)
        await cur.execute("SET default_transaction_read_only = on", prepare=False)
    # `SET` starts a transaction when autocommit is disabled; commit so the pool doesn't see INTRANS.
    await conn.commit()
