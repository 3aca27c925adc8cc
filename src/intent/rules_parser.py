"""Rules-based English NLQ extractor for test-run analytics.

This parser is intentionally lenient and deterministic:
    - it recognizes a fixed set of regex-driven phrasings,
    - anything it does not recognize falls back to a default instead of failing,
    - it always returns a frozen `QueryParams` whose time range is resolved.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.intent.dates import max_lookback_days
from src.intent.dictionaries import (
    BROWSERS,
    DEFAULT_TIME_RANGE_DAYS,
    ENVIRONMENTS,
    classify_analysis_type,
    lookup_time_phrase,
)
from src.intent.normalize import normalize_text
from src.intent.schema import PG_INT_MAX, AnalysisType, PassRateRange, QueryParams, TimeRange

DEFAULT_LIMIT = 50
DEFAULT_MIN_RUNS = 5
DEFAULT_PASS_RATE_RANGE = PassRateRange(min=10, max=90)
DEFAULT_MIN_DURATION_MS = 10_000


@dataclass(frozen=True)
class _PassRateRule:
    pattern: re.Pattern[str]
    to_range: Callable[[re.Match[str]], tuple[int, int]]


# All rules are evaluated; the last one that matches wins ("between" beats less/more than).
_PASS_RATE_RULES: tuple[_PassRateRule, ...] = (
    _PassRateRule(
        re.compile(r"(?:less than|<)\s*(\d+)%?", re.IGNORECASE),
        lambda m: (0, int(m.group(1))),
    ),
    _PassRateRule(
        re.compile(r"(?:more than|>)\s*(\d+)%?", re.IGNORECASE),
        lambda m: (int(m.group(1)), 100),
    ),
    _PassRateRule(
        re.compile(r"between\s*(\d+)%?\s*and\s*(\d+)%?", re.IGNORECASE),
        lambda m: (int(m.group(1)), int(m.group(2))),
    ),
)

_DAYS_RE = re.compile(r"(?:last|past)\s+(\d+)\s+days?", re.IGNORECASE)
_ENVIRONMENT_RE = re.compile(
    rf"(?:in|on)\s+({'|'.join(ENVIRONMENTS)})",
    re.IGNORECASE,
)
_BROWSER_RE = re.compile(rf"({'|'.join(BROWSERS)})", re.IGNORECASE)
_LIMIT_RE = re.compile(r"(?:top|first)\s*(\d+)", re.IGNORECASE)
_FAILURE_COUNT_RE = re.compile(
    r"(?:more\s+than|>\s*|at\s+least)\s*(\d+)\s*(?:times?|failures?)",
    re.IGNORECASE,
)
_TIMES_RE = re.compile(r"(\d+)\s*times?", re.IGNORECASE)
_DURATION_RE = re.compile(r"(?:more than|>\s*)(\d+)\s*seconds?", re.IGNORECASE)


def _positive_int(raw: str, *, scale: int = 1) -> int | None:
    """Convert a digit capture into a positive bounded int, or `None` (treated as not given)."""

    value = int(raw) * scale
    if value <= 0 or value > PG_INT_MAX:
        return None
    return value


def _extract_pass_rate_range(text: str) -> PassRateRange | None:
    found: PassRateRange | None = None
    for rule in _PASS_RATE_RULES:
        match = rule.pattern.search(text)
        if not match:
            continue
        low, high = rule.to_range(match)
        if low > PG_INT_MAX or high > PG_INT_MAX:
            continue
        found = PassRateRange(min=low, max=high)
    return found


def _extract_time_range(text: str) -> TimeRange:
    days = lookup_time_phrase(text)
    if days is None:
        match = _DAYS_RE.search(text)
        if match:
            days = _positive_int(match.group(1))
    # A window reaching before year 1 has no cutoff date; treat it as not given.
    if days is not None and days > max_lookback_days():
        days = None
    return TimeRange(days=days or DEFAULT_TIME_RANGE_DAYS)


def _extract_single(pattern: re.Pattern[str], text: str) -> tuple[str, ...] | None:
    match = pattern.search(text)
    if not match:
        return None
    return (match.group(1).lower(),)


def _extract_limit(text: str) -> int | None:
    match = _LIMIT_RE.search(text)
    return _positive_int(match.group(1)) if match else None


def _extract_min_failures(text: str) -> int | None:
    match = _FAILURE_COUNT_RE.search(text)
    if match:
        return _positive_int(match.group(1))

    # Bare "N times" only counts when no explicit comparator phrase was given.
    match = _TIMES_RE.search(text)
    return _positive_int(match.group(1)) if match else None


def _extract_min_duration(text: str) -> int | None:
    match = _DURATION_RE.search(text)
    return _positive_int(match.group(1), scale=1000) if match else None


def apply_defaults(params: QueryParams) -> QueryParams:
    """Fill type-specific defaults for every field the question left unset.

    `min_failures` is never defaulted: "failing tests" and "tests failing often" stay distinct.
    """

    updates: dict[str, Any] = {"limit": params.limit or DEFAULT_LIMIT}

    if params.analysis_type == AnalysisType.flaky:
        updates["min_runs"] = params.min_runs or DEFAULT_MIN_RUNS
        updates["pass_rate_range"] = params.pass_rate_range or DEFAULT_PASS_RATE_RANGE
    elif params.analysis_type == AnalysisType.slow:
        updates["min_duration"] = params.min_duration or DEFAULT_MIN_DURATION_MS

    return params.model_copy(update=updates)


def parse_query(text: str) -> QueryParams:
    """Parse a free-text question into fully resolved QueryParams.

    Never raises for unrecognized input: every missing piece degrades to a default.
    """

    normalized = normalize_text(text)
    analysis_type = classify_analysis_type(normalized)

    min_failures = None
    if analysis_type == AnalysisType.failing:
        min_failures = _extract_min_failures(normalized)

    min_duration = None
    if analysis_type == AnalysisType.slow:
        min_duration = _extract_min_duration(normalized)

    params = QueryParams(
        analysis_type=analysis_type,
        pass_rate_range=_extract_pass_rate_range(normalized),
        time_range=_extract_time_range(normalized),
        environments=_extract_single(_ENVIRONMENT_RE, normalized),
        browsers=_extract_single(_BROWSER_RE, normalized),
        limit=_extract_limit(normalized),
        min_failures=min_failures,
        min_duration=min_duration,
    )
    return apply_defaults(params)
