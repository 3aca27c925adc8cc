"""Human-readable restatement of parsed QueryParams.

The description is derived from `QueryParams` alone and is never fed into SQL generation; the
dashboard shows it so users can check how their question was understood.
"""

from __future__ import annotations

from src.intent.schema import AnalysisType, QueryParams

_TYPE_LABELS: dict[AnalysisType, str] = {
    AnalysisType.flaky: "Flaky tests",
    AnalysisType.failing: "Failing tests",
    AnalysisType.slow: "Slow tests",
}


def _seconds(ms: int) -> str:
    return str(ms // 1000) if ms % 1000 == 0 else str(ms / 1000)


def _type_qualifier(params: QueryParams) -> str | None:
    if params.analysis_type == AnalysisType.flaky and params.pass_rate_range is not None:
        return f"with pass rate {params.pass_rate_range.min}%-{params.pass_rate_range.max}%"
    if params.analysis_type == AnalysisType.failing and (params.min_failures or 0) > 1:
        return f"with at least {params.min_failures} failures"
    if params.analysis_type == AnalysisType.slow and params.min_duration:
        return f"taking more than {_seconds(params.min_duration)} seconds"
    return None


def describe_query(params: QueryParams) -> str:
    """Render e.g. "Flaky tests with pass rate 0%-50% in the last 90 days (top 50)"."""

    parts = [_TYPE_LABELS[params.analysis_type]]

    qualifier = _type_qualifier(params)
    if qualifier:
        parts.append(qualifier)

    parts.append(f"in the last {params.time_range.days} days")

    if params.environments:
        parts.append(f"in {', '.join(params.environments)} environment")
    if params.browsers:
        parts.append(f"on {', '.join(params.browsers)} browser")
    if params.limit:
        parts.append(f"(top {params.limit})")

    return " ".join(parts)
