"""Analytics question answering.

Pipeline: question -> `parse_query` -> `QueryParams` -> `build_query` -> read-only SQL -> rows. The
description shown to the user is rendered from `QueryParams` independently of the SQL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from time import monotonic
from typing import Any

import psycopg
from pydantic import BaseModel, ConfigDict

from src.app import App
from src.db.pool import get_conn
from src.db.query import fetch_rows
from src.intent.describe import describe_query
from src.intent.rules_parser import parse_query
from src.sql.builder import build_failure_details_query, build_query

logger = logging.getLogger(__name__)


class AnalyticsQueryError(ValueError):
    """Raised when a question cannot be turned into a query at all (e.g. it is empty)."""


class AnalyticsExecutionError(RuntimeError):
    """Raised when the compiled query fails in the database."""


class AnalyticsAnswer(BaseModel):
    """Response envelope: what was asked, how it was understood, and what the DB returned."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    query: str
    description: str
    params: dict[str, Any]
    results: list[dict[str, Any]]
    count: int


async def _execute(app: App, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
    try:
        async with get_conn(app.pool) as conn:
            return await fetch_rows(conn, sql, params)
    except psycopg.Error as exc:
        logger.warning("analytics query failed error=%s", type(exc).__name__)
        raise AnalyticsExecutionError("analytics query failed") from exc


async def answer_query(app: App, text: str, *, today: date | None = None) -> AnalyticsAnswer:
    """Answer a natural-language question about test-run history.

    Raises:
        AnalyticsQueryError: If the question is blank.
        SQLBuilderError: If the parsed parameters cannot be compiled.
        AnalyticsExecutionError: If the database rejects the query.
    """

    if not (text or "").strip():
        raise AnalyticsQueryError("query must not be empty")

    started = monotonic()
    params = parse_query(text)
    description = describe_query(params)
    sql, sql_params = build_query(params, today=today)
    logger.debug("compiled question=%r sql=%s params=%r", text, sql, sql_params)

    rows = await _execute(app, sql, sql_params)

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "answered analysis=%s rows=%d latency_ms=%d",
        params.analysis_type,
        len(rows),
        latency_ms,
    )
    return AnalyticsAnswer(
        query=text,
        description=description,
        params=params.to_json(),
        results=rows,
        count=len(rows),
    )


async def failure_details(
        app: App,
        test_name: str,
        *,
        projects: Iterable[str] | None = None,
        limit: int = 20,
) -> list[dict[str, Any]]:
    """Return the most recent failed executions of one test, newest first."""

    sql, sql_params = build_failure_details_query(test_name, projects=projects, limit=limit)
    rows = await _execute(app, sql, sql_params)
    logger.info("failure details rows=%d", len(rows))
    return rows
