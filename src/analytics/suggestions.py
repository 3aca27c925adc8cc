"""Example questions offered by the dashboard's analytics page."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from src.intent.schema import AnalysisType


@dataclass(frozen=True)
class QuerySuggestion:
    """A clickable example question; `category` is the analysis type it parses to."""

    text: str
    category: AnalysisType
    icon: str


SUGGESTIONS: tuple[QuerySuggestion, ...] = (
    QuerySuggestion("Show me flaky tests with pass rate less than 50%", AnalysisType.flaky, "🔀"),
    QuerySuggestion("Flaky tests in staging in the last 30 days", AnalysisType.flaky, "🔀"),
    QuerySuggestion("Top 10 most unreliable tests", AnalysisType.flaky, "🔀"),
    QuerySuggestion("Find tests failing more than 3 times in last 7 days", AnalysisType.failing, "❌"),
    QuerySuggestion("Broken tests on firefox in the past month", AnalysisType.failing, "❌"),
    QuerySuggestion("Show slowest tests taking more than 30 seconds", AnalysisType.slow, "🐢"),
    QuerySuggestion("Performance of tests on chrome in production", AnalysisType.slow, "🐢"),
)


def list_suggestions() -> list[dict[str, str]]:
    """Return suggestions as JSON-ready dicts."""

    return [{**asdict(s), "category": s.category.value} for s in SUGGESTIONS]
