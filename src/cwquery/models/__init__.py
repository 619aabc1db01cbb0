"""Pydantic models for cwquery."""

from cwquery.models.query import (
    ApiMode,
    CanonicalQuery,
    MetricEditorMode,
    MetricQueryType,
    RawQuery,
    TimeRange,
)
from cwquery.models.response import (
    Frame,
    MetricDataQuery,
    MetricDataResult,
    QueryResponse,
    StatusCode,
)

__all__ = [
    "ApiMode",
    "CanonicalQuery",
    "Frame",
    "MetricDataQuery",
    "MetricDataResult",
    "MetricEditorMode",
    "MetricQueryType",
    "QueryResponse",
    "RawQuery",
    "StatusCode",
    "TimeRange",
]
