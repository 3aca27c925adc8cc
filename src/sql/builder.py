"""Deterministic SQL builder.

The builder converts resolved `QueryParams` into a parameterized SQL query. Identifiers (columns,
tables, status literals) are strictly allowlisted; every value, including each `IN (...)` member and
the cutoff date, becomes a bound parameter.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any

from src.intent.dates import cutoff_date
from src.intent.schema import PG_INT_MAX, AnalysisType, QueryParams
from src.sql.columns import (
    DURATION,
    FAILURE_RATE,
    FAILURES,
    FILTER_COLUMNS,
    FROM_TEST_CASES,
    PASS_RATE,
    PASSES,
    RUN_DATE,
    SKIPPED,
    FilterField,
)


class SQLBuilderError(ValueError):
    """Raised when QueryParams cannot be converted into deterministic SQL."""


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL query ready for execution."""

    sql: str
    params: tuple[Any, ...]


@dataclass(frozen=True)
class QueryTemplate:
    """One fixed aggregation shape over test cases, grouped by (test name, project)."""

    analysis_type: AnalysisType
    description: str
    defaults: Mapping[str, int]
    build: Callable[[QueryParams, date], BuiltQuery]


def _require_int(name: str, value: Any) -> int:
    # bool is an int subclass; it must not sneak into a numeric placeholder.
    if isinstance(value, bool) or not isinstance(value, int):
        raise SQLBuilderError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > PG_INT_MAX:
        raise SQLBuilderError(f"{name} is out of range: {value}")
    return value


def _resolve(params: QueryParams, template: QueryTemplate, name: str) -> int:
    value = getattr(params, name, None)
    # 0 means "not given", as it does for the extractor.
    if value is None or (type(value) is int and value == 0):
        value = template.defaults[name]
    return _require_int(name, value)


def _in_clause(column: str, values: Iterable[str]) -> tuple[str, list[Any]]:
    members = list(values)
    for member in members:
        if not isinstance(member, str):
            raise SQLBuilderError(f"filter values must be strings, got {type(member).__name__}")
    placeholders = ", ".join(["%s"] * len(members))
    return f"{column} IN ({placeholders})", members


def _row_filters(
        params: QueryParams,
        cutoff: date,
        *,
        initial: list[tuple[str, Any]] | None = None,
) -> tuple[list[str], list[Any]]:
    """Row-level WHERE predicates shared by every template (cutoff first, then IN filters)."""

    clauses = [f"{RUN_DATE} > %s"]
    values: list[Any] = [cutoff]

    for clause, value in initial or []:
        clauses.append(clause)
        values.append(value)

    for field, column in FILTER_COLUMNS.items():
        members = getattr(params, field.value, None)
        if not members:
            continue
        clause, p = _in_clause(column, members)
        clauses.append(clause)
        values.extend(p)

    return clauses, values


def _assemble(
        *,
        select: list[str],
        where: list[str],
        having: list[str] | None = None,
        order_by: str,
) -> str:
    sql = (
        f"SELECT {', '.join(select)} "
        f"{FROM_TEST_CASES} "
        f"WHERE {' AND '.join(where)} "
        "GROUP BY tc.name, p.key "
    )
    if having:
        sql += f"HAVING {' AND '.join(having)} "
    sql += f"ORDER BY {order_by} LIMIT %s"
    return sql


def _build_flaky(params: QueryParams, cutoff: date) -> BuiltQuery:
    template = FLAKY
    min_runs = _resolve(params, template, "min_runs")
    limit = _resolve(params, template, "limit")
    if params.pass_rate_range is not None:
        min_rate = _require_int("pass_rate_range.min", params.pass_rate_range.min)
        max_rate = _require_int("pass_rate_range.max", params.pass_rate_range.max)
    else:
        min_rate = template.defaults["min_pass_rate"]
        max_rate = template.defaults["max_pass_rate"]

    where, values = _row_filters(params, cutoff)
    sql = _assemble(
        select=[
            "tc.name",
            "COUNT(*)::integer AS total_runs",
            f"{PASSES}::integer AS passes",
            f"{FAILURES}::integer AS failures",
            f"{SKIPPED}::integer AS skipped",
            f"{PASS_RATE} AS pass_rate",
            "MAX(tr.started_at) AS last_run",
            "p.key AS project",
            f"AVG({DURATION})::integer AS avg_duration",
        ],
        where=where,
        having=["COUNT(*) >= %s", f"{PASS_RATE} BETWEEN %s AND %s"],
        order_by="pass_rate ASC, failures DESC",
    )
    return BuiltQuery(sql=sql, params=(*values, min_runs, min_rate, max_rate, limit))


def _build_failing(params: QueryParams, cutoff: date) -> BuiltQuery:
    template = FAILING
    min_failures = _resolve(params, template, "min_failures")
    limit = _resolve(params, template, "limit")

    where, values = _row_filters(params, cutoff)
    having = [f"{FAILURES} > 0"]
    having_values: list[Any] = []
    # A floor of 1 is already implied by "failures > 0".
    if min_failures > 1:
        having.append(f"{FAILURES} >= %s")
        having_values.append(min_failures)

    sql = _assemble(
        select=[
            "tc.name",
            "COUNT(*)::integer AS total_runs",
            f"{FAILURES}::integer AS failures",
            f"{PASSES}::integer AS passes",
            f"{FAILURE_RATE} AS failure_rate",
            "MAX(CASE WHEN tc.status = 'failed' THEN tr.started_at END) AS last_failure",
            "p.key AS project",
            f"AVG({DURATION})::integer AS avg_duration",
        ],
        where=where,
        having=having,
        order_by="failures DESC, failure_rate DESC",
    )
    return BuiltQuery(sql=sql, params=(*values, *having_values, limit))


def _build_slow(params: QueryParams, cutoff: date) -> BuiltQuery:
    template = SLOW
    min_duration = _resolve(params, template, "min_duration")
    limit = _resolve(params, template, "limit")

    # Slowness is a per-execution property: filter rows before grouping.
    where, values = _row_filters(params, cutoff, initial=[(f"{DURATION} > %s", min_duration)])
    sql = _assemble(
        select=[
            "tc.name",
            "COUNT(*)::integer AS total_runs",
            f"AVG({DURATION})::integer AS avg_duration",
            f"MAX({DURATION})::integer AS max_duration",
            f"MIN({DURATION})::integer AS min_duration",
            f"{PASSES}::integer AS passes",
            f"{FAILURES}::integer AS failures",
            "p.key AS project",
        ],
        where=where,
        order_by="avg_duration DESC",
    )
    return BuiltQuery(sql=sql, params=(*values, limit))


FLAKY = QueryTemplate(
    analysis_type=AnalysisType.flaky,
    description="Find tests with inconsistent pass/fail patterns",
    defaults=MappingProxyType({"min_runs": 5, "min_pass_rate": 10, "max_pass_rate": 90, "limit": 50}),
    build=_build_flaky,
)

FAILING = QueryTemplate(
    analysis_type=AnalysisType.failing,
    description="Find tests with high failure rates",
    defaults=MappingProxyType({"min_failures": 1, "limit": 50}),
    build=_build_failing,
)

SLOW = QueryTemplate(
    analysis_type=AnalysisType.slow,
    description="Find tests with long execution times",
    defaults=MappingProxyType({"min_duration": 10_000, "limit": 50}),
    build=_build_slow,
)

_TEMPLATES: dict[AnalysisType, QueryTemplate] = {t.analysis_type: t for t in (FLAKY, FAILING, SLOW)}

_missing = set(AnalysisType) - set(_TEMPLATES)
if _missing:
    raise RuntimeError(f"No query template for analysis types: {sorted(_missing)}")


def get_template(analysis_type: AnalysisType | str) -> QueryTemplate:
    """Return the template for an analysis type.

    Raises:
        SQLBuilderError: If the analysis type is unknown.
    """

    try:
        return _TEMPLATES[AnalysisType(analysis_type)]
    except (KeyError, ValueError) as exc:
        raise SQLBuilderError(f"Unknown analysis type: {analysis_type}") from exc


def supported_analysis_types() -> list[str]:
    """List analysis types in template declaration order."""

    return [t.value for t in _TEMPLATES]


def build_query(params: QueryParams, *, today: date | None = None) -> tuple[str, tuple[Any, ...]]:
    """Build an aggregate SQL query + params from resolved QueryParams.

    `today` pins the UTC date the cutoff is computed from; it defaults to the current UTC date.
    """

    template = get_template(params.analysis_type)

    time_range = getattr(params, "time_range", None)
    if time_range is None:
        raise SQLBuilderError("time_range must be resolved before building a query")
    days = _require_int("time_range.days", time_range.days)
    if days == 0:
        raise SQLBuilderError("time_range.days must be positive")

    try:
        cutoff = cutoff_date(days, today=today)
    except ValueError as exc:
        raise SQLBuilderError(str(exc)) from exc

    built = template.build(params, cutoff)
    return built.sql, built.params


def build_failure_details_query(
        test_name: str,
        *,
        projects: Iterable[str] | None = None,
        limit: int = 20,
) -> tuple[str, tuple[Any, ...]]:
    """Build a query listing the most recent failed executions of one test."""

    if not isinstance(test_name, str) or not test_name.strip():
        raise SQLBuilderError("test_name must be a non-empty string")
    limit = _require_int("limit", limit)
    if limit == 0:
        raise SQLBuilderError("limit must be positive")

    clauses = ["tc.name = %s", "tc.status = 'failed'"]
    values: list[Any] = [test_name]
    if isinstance(projects, str):
        raise SQLBuilderError("projects must be a collection of strings, not a single string")
    if projects:
        clause, p = _in_clause(FILTER_COLUMNS[FilterField.projects], projects)
        clauses.append(clause)
        values.extend(p)

    sql = (
        "SELECT tr.id AS \"runId\", tr.started_at AS \"startedAt\", tr.env, tr.branch,"
        " tr.commit_hash AS \"commitHash\", tc.error_message AS \"errorMessage\", tc.browser,"
        " tc.duration_ms AS \"durationMs\", p.key AS project "
        f"{FROM_TEST_CASES} "
        f"WHERE {' AND '.join(clauses)} "
        "ORDER BY tr.started_at DESC LIMIT %s"
    )
    return sql, (*values, limit)
