"""Pydantic models for raw and canonical metric queries.

a RawQuery is whatever the dashboard stored, possibly years ago. a
CanonicalQuery is the one shape everything downstream works with - no legacy
fields, no "auto" period, dimensions always as lists.
"""

import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

TIME_SERIES_QUERY = "timeSeriesQuery"

# the API rejects any other id shape with a 400
METRIC_DATA_ID = re.compile(r"^[a-z][a-zA-Z0-9_]*$")

WILDCARD = "*"

_SEARCH_CALL = re.compile(r"\bSEARCH\s*\(")
# SEARCH('<search term>', '<stat>', <period>) - the term may contain escaped quotes
_SEARCH_PARAMS = re.compile(
    r"SEARCH\s*\(\s*'(?:[^'\\]|\\.)*'\s*,\s*'(?P<stat>[^']+)'\s*(?:,\s*(?P<period>\d+)\s*)?\)"
)


def is_search_expression(expression: str) -> bool:
    """True when the expression is (or wraps) a SEARCH(...) call."""
    return bool(expression) and _SEARCH_CALL.search(expression) is not None


def parse_search_expression(expression: str) -> tuple[str, int | None] | None:
    """Pull the statistic and period out of a SEARCH(...) expression.

    returns None when the expression isn't a search or the arguments can't be
    read. the period is optional in the api so it may come back as None.
    """
    if not is_search_expression(expression):
        return None
    match = _SEARCH_PARAMS.search(expression)
    if match is None:
        return None
    period = match.group("period")
    return match.group("stat"), int(period) if period else None


class MetricQueryType(int, Enum):
    """How the query talks to the metrics API.

    stored as ints in saved dashboards, hence the int enum.
    """

    SEARCH = 0
    QUERY = 1  # structured query language mode, server-side labels win


class MetricEditorMode(int, Enum):
    """Which editor authored the query."""

    BUILDER = 0
    RAW = 1


class ApiMode(str, Enum):
    """How a canonical query is dispatched to the API. Derived, never stored."""

    METRIC_STAT = "MetricStat"
    MATH_EXPRESSION = "MathExpression"
    QUERY = "Query"


class TimeRange(BaseModel):
    """Absolute query window."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: datetime = Field(alias="from")
    to: datetime

    @property
    def duration(self) -> timedelta:
        return self.to - self.from_


class RawQuery(BaseModel):
    """A query document as it arrives from the host, JSON text and all."""

    model_config = ConfigDict(frozen=True)

    ref_id: str
    query_type: str = TIME_SERIES_QUERY
    time_range: TimeRange
    document: str  # raw JSON text, parsed lazily so one bad query can't sink the batch

    @property
    def is_time_series(self) -> bool:
        return self.query_type == TIME_SERIES_QUERY


class CanonicalQuery(BaseModel):
    """The normalized, version-independent form of a metric query.

    built fresh per request by the request parser and thrown away once the
    response has been named.
    """

    ref_id: str
    id: str
    region: str = ""
    namespace: str = ""
    metric_name: str = ""
    expression: str = ""
    sql_expression: str = ""
    dimensions: dict[str, list[str]] = Field(default_factory=dict)
    statistic: str = "Average"
    period: int = Field(gt=0)
    return_data: bool = True
    match_exact: bool = True
    metric_query_type: MetricQueryType = MetricQueryType.SEARCH
    metric_editor_mode: MetricEditorMode = MetricEditorMode.BUILDER
    alias: str = ""
    label: str = ""

    @model_validator(mode="after")
    def validate_id(self) -> Self:
        if not METRIC_DATA_ID.match(self.id):
            raise ValueError(f"invalid metric data id: {self.id!r}")
        return self

    @property
    def api_mode(self) -> ApiMode:
        """Pick the API invocation mode from query type, editor mode and expression."""
        if self.metric_query_type == MetricQueryType.QUERY:
            return ApiMode.QUERY
        if self.metric_editor_mode == MetricEditorMode.RAW and not self.is_search_expression:
            return ApiMode.MATH_EXPRESSION
        return ApiMode.METRIC_STAT

    @property
    def is_search_expression(self) -> bool:
        return is_search_expression(self.expression)

    @property
    def is_inferred(self) -> bool:
        """No explicit metric name - the search was built from dimension filters."""
        return not self.metric_name

    @property
    def is_multi_valued(self) -> bool:
        """Exact match that can still fan out into several series."""
        if not self.match_exact:
            return False
        if not self.dimensions:
            return True
        for values in self.dimensions.values():
            if len(values) > 1:
                return True
            if values and values[0] != WILDCARD:
                return True
        return False

    @property
    def uses_search_expression(self) -> bool:
        """Builder query that can't be a plain MetricStat and needs a SEARCH."""
        if not self.match_exact:
            return True
        return any(
            len(values) > 1 or WILDCARD in values for values in self.dimensions.values()
        )

    def naming_period_and_stat(self) -> tuple[int, str]:
        """Period and statistic to show in names.

        a user-written SEARCH carries its own stat/period, and those are what
        the series actually used - the document fields are just leftovers from
        the builder.
        """
        parsed = parse_search_expression(self.expression)
        if parsed is None:
            return self.period, self.statistic
        stat, period = parsed
        return (period if period is not None else self.period), stat
