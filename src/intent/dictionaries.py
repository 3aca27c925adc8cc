"""English vocabularies for analysis types, time phrases, environments and browsers.

These tables drive the rules-based extractor. Order is significant wherever a tuple is used: rules
are evaluated front to back and the documented winner (first or last match) is applied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.intent.schema import AnalysisType


@dataclass(frozen=True)
class KeywordRule:
    """A keyword family that classifies a question into one analysis type."""

    pattern: re.Pattern[str]
    analysis_type: AnalysisType


# First match wins: "flaky and failing" is a flaky question.
ANALYSIS_TYPE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(re.compile(r"flaky|unstable|inconsistent|brittle", re.IGNORECASE), AnalysisType.flaky),
    KeywordRule(
        re.compile(r"slow|slowest|duration|performance|taking.*time", re.IGNORECASE),
        AnalysisType.slow,
    ),
    KeywordRule(re.compile(r"failing|failed|broken|error", re.IGNORECASE), AnalysisType.failing),
)

DEFAULT_ANALYSIS_TYPE = AnalysisType.flaky

# First hit stops the search.
TIME_RANGE_PHRASES: tuple[tuple[str, int], ...] = (
    ("last 7 days", 7),
    ("past 7 days", 7),
    ("last week", 7),
    ("past week", 7),
    ("last 30 days", 30),
    ("past 30 days", 30),
    ("last month", 30),
    ("past month", 30),
    ("last 3 months", 90),
    ("past 3 months", 90),
    ("last 6 months", 180),
    ("past 6 months", 180),
    ("last year", 365),
    ("past year", 365),
    ("last 3 years", 1095),
    ("past 3 years", 1095),
)

DEFAULT_TIME_RANGE_DAYS = 90

ENVIRONMENTS: tuple[str, ...] = ("staging", "production", "dev", "test", "qa", "local")

BROWSERS: tuple[str, ...] = ("chrome", "firefox", "safari", "edge", "webkit", "chromium")


def classify_analysis_type(text: str) -> AnalysisType:
    """Return the analysis type of the first keyword family present in `text`."""

    for rule in ANALYSIS_TYPE_RULES:
        if rule.pattern.search(text):
            return rule.analysis_type
    return DEFAULT_ANALYSIS_TYPE


def lookup_time_phrase(text: str) -> int | None:
    """Return the day count of the first known time phrase contained in `text`."""

    lowered = text.lower()
    for phrase, days in TIME_RANGE_PHRASES:
        if phrase in lowered:
            return days
    return None
