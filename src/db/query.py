"""Safe DB query helpers.

These helpers are used by the analytics service. They never interpolate user values into SQL and
return plain dict rows that the service hands back to the dashboard as-is.
"""

from __future__ import annotations

from typing import Any, LiteralString, cast

from psycopg import AsyncConnection
from psycopg.rows import dict_row


async def fetch_rows(
        conn: AsyncConnection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> list[dict[str, Any]]:
    """Execute a read-only query and return every row as a dict keyed by column name.

    Contract:
        - Returns `[]` if the query yields no rows; an empty result is a valid answer.
        - The query must be parameterized; all values are passed via `params`.
        - DB errors are not swallowed (caller decides how to handle them).
    """

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(cast(LiteralString, sql), params)
        rows = await cur.fetchall()

    return list(rows)
