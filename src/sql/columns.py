"""Allowlisted SQL identifiers.

All column names referenced in generated SQL must come from these mappings; no user-provided
identifier should ever be interpolated into SQL.
"""

from __future__ import annotations

from enum import StrEnum


class FilterField(StrEnum):
    """QueryParams list fields that become `IN (...)` filters."""

    projects = "projects"
    environments = "environments"
    browsers = "browsers"


FILTER_COLUMNS: dict[FilterField, str] = {
    FilterField.projects: "p.key",
    FilterField.environments: "tr.env",
    FilterField.browsers: "tc.browser",
}

FROM_TEST_CASES = (
    "FROM test_cases tc"
    " JOIN test_runs tr ON tc.run_id = tr.id"
    " JOIN projects p ON tr.project_id = p.id"
)

RUN_DATE = "tr.started_at::date"
DURATION = "tc.duration_ms"

PASSES = "SUM(CASE WHEN tc.status = 'passed' THEN 1 ELSE 0 END)"
FAILURES = "SUM(CASE WHEN tc.status = 'failed' THEN 1 ELSE 0 END)"
SKIPPED = "SUM(CASE WHEN tc.status = 'skipped' THEN 1 ELSE 0 END)"
PASS_RATE = "ROUND(AVG(CASE WHEN tc.status = 'passed' THEN 1.0 ELSE 0.0 END) * 100, 2)"
FAILURE_RATE = "ROUND(AVG(CASE WHEN tc.status = 'failed' THEN 1.0 ELSE 0.0 END) * 100, 2)"
