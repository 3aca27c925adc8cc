"""Analytics query parameters (Pydantic models).

`QueryParams` is the contract between the natural-language extractor and the deterministic SQL
builder. It is built fresh per request, frozen once the extractor returns it, and serialized to the
dashboard in camelCase.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Upper bound for every integer that ends up bound into SQL (Postgres INTEGER).
PG_INT_MAX = 2 ** 31 - 1


class AnalysisType(StrEnum):
    """Supported analysis families; each maps to exactly one query template."""

    flaky = "flaky"
    failing = "failing"
    slow = "slow"


class _Model(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class PassRateRange(_Model):
    """Pass-rate percentage bounds, inclusive on both ends.

    Bounds are not reordered: a reversed range is kept as entered and simply matches nothing.
    """

    min: int = Field(ge=0, le=PG_INT_MAX)
    max: int = Field(ge=0, le=PG_INT_MAX)


class TimeRange(_Model):
    """How many UTC calendar days back the analysis looks."""

    days: int = Field(gt=0, le=PG_INT_MAX)


class QueryParams(_Model):
    """A fully resolved analytics request."""

    analysis_type: AnalysisType = AnalysisType.flaky
    pass_rate_range: PassRateRange | None = None
    time_range: TimeRange
    projects: tuple[str, ...] | None = None
    environments: tuple[str, ...] | None = None
    browsers: tuple[str, ...] | None = None
    limit: int | None = Field(default=None, gt=0, le=PG_INT_MAX)
    min_runs: int | None = Field(default=None, gt=0, le=PG_INT_MAX)
    min_failures: int | None = Field(default=None, gt=0, le=PG_INT_MAX)
    min_duration: int | None = Field(default=None, ge=0, le=PG_INT_MAX)

    def to_json(self) -> dict[str, Any]:
        """Dump to the camelCase JSON shape the dashboard consumes (unset fields omitted)."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def params_from_obj(obj: Any) -> QueryParams:
    """Validate and parse QueryParams from an arbitrary decoded JSON object."""

    return QueryParams.model_validate(obj)
