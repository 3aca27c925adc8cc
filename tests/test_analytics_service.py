"""Tests for the analytics answer pipeline (DB access faked).

An empty result set is a successful answer; compile and execution failures are explicit errors.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from types import SimpleNamespace
from typing import Any

import psycopg
import pytest

from src.analytics.service import (
    AnalyticsExecutionError,
    AnalyticsQueryError,
    answer_query,
    failure_details,
)
from src.sql.builder import SQLBuilderError


def _make_app() -> Any:
    return SimpleNamespace(settings=SimpleNamespace(), pool=object())


@asynccontextmanager
async def _fake_get_conn(_pool: Any):
    yield object()


def _patch_db(monkeypatch: pytest.MonkeyPatch, rows: list[dict[str, Any]]) -> list[tuple[str, tuple]]:
    calls: list[tuple[str, tuple]] = []

    async def _fake_fetch_rows(_conn: Any, sql: str, params: tuple[Any, ...] = ()) -> list[dict]:
        calls.append((sql, params))
        return rows

    monkeypatch.setattr("src.analytics.service.get_conn", _fake_get_conn)
    monkeypatch.setattr("src.analytics.service.fetch_rows", _fake_fetch_rows)
    return calls


@pytest.mark.asyncio
async def test_answer_returns_envelope(monkeypatch: pytest.MonkeyPatch) -> None:
    rows = [{"name": "checkout works", "project": "web", "pass_rate": 40.0}]
    calls = _patch_db(monkeypatch, rows)

    text = "Show me flaky tests with pass rate less than 50%"
    answer = await answer_query(_make_app(), text, today=date(2025, 6, 30))

    assert answer.query == text
    assert answer.description == "Flaky tests with pass rate 0%-50% in the last 90 days (top 50)"
    assert answer.params["analysisType"] == "flaky"
    assert answer.params["passRateRange"] == {"min": 0, "max": 50}
    assert answer.params["minRuns"] == 5
    assert answer.results == rows
    assert answer.count == 1

    assert len(calls) == 1
    sql, params = calls[0]
    assert "HAVING" in sql
    assert params == (date(2025, 4, 1), 5, 0, 50, 50)


@pytest.mark.asyncio
async def test_answer_with_no_rows_is_success(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_db(monkeypatch, [])

    answer = await answer_query(_make_app(), "failing tests on production")

    assert answer.results == []
    assert answer.count == 0
    assert answer.params["environments"] == ["production"]


@pytest.mark.asyncio
async def test_blank_question_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_db(monkeypatch, [])

    with pytest.raises(AnalyticsQueryError):
        await answer_query(_make_app(), "   ")
    assert calls == []


@pytest.mark.asyncio
async def test_compile_error_is_not_an_empty_answer(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_db(monkeypatch, [])

    def _broken_build(*_args: Any, **_kwargs: Any) -> tuple[str, tuple]:
        raise SQLBuilderError("Unknown analysis type: sluggish")

    monkeypatch.setattr("src.analytics.service.build_query", _broken_build)

    with pytest.raises(SQLBuilderError):
        await answer_query(_make_app(), "flaky tests")
    assert calls == []


@pytest.mark.asyncio
async def test_db_error_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _failing_fetch_rows(_conn: Any, _sql: str, _params: tuple[Any, ...] = ()) -> list:
        raise psycopg.errors.UndefinedTable("relation \"test_cases\" does not exist")

    monkeypatch.setattr("src.analytics.service.get_conn", _fake_get_conn)
    monkeypatch.setattr("src.analytics.service.fetch_rows", _failing_fetch_rows)

    with pytest.raises(AnalyticsExecutionError) as exc_info:
        await answer_query(_make_app(), "slow tests")
    assert isinstance(exc_info.value.__cause__, psycopg.Error)


@pytest.mark.asyncio
async def test_failure_details(monkeypatch: pytest.MonkeyPatch) -> None:
    rows = [{"runId": 7, "errorMessage": "timeout"}]
    calls = _patch_db(monkeypatch, rows)

    got = await failure_details(_make_app(), "login works", limit=5)

    assert got == rows
    assert calls[0][1] == ("login works", 5)
