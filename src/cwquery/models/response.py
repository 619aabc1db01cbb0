"""Pydantic models for the metrics API exchange and the named results.

MetricDataQuery/MetricDataResult mirror the remote API's request and response
entries. Frame is what the host eventually renders.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StatusCode(str, Enum):
    """Per-series status reported by the metrics API."""

    COMPLETE = "Complete"
    PARTIAL_DATA = "PartialData"  # more data exists than was returned
    INTERNAL_ERROR = "InternalError"
    FORBIDDEN = "Forbidden"


class MetricDataQuery(BaseModel):
    """One entry of a batched metrics API request.

    either metric_name (a plain MetricStat) or expression is set, never both.
    """

    id: str
    namespace: str = ""
    metric_name: str = ""
    dimensions: dict[str, list[str]] = Field(default_factory=dict)
    statistic: str = ""
    period: int
    expression: str = ""
    return_data: bool = True
    label: str | None = None


class MetricDataResult(BaseModel):
    """One labeled series returned by the metrics API."""

    id: str
    label: str = ""
    status_code: StatusCode = StatusCode.COMPLETE
    timestamps: list[datetime] = Field(default_factory=list)
    values: list[float | None] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)


class Frame(BaseModel):
    """A named output series."""

    name: str
    ref_id: str
    timestamps: list[datetime] = Field(default_factory=list)
    values: list[float | None] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class QueryResponse(BaseModel):
    """All frames for one refId, or the reason there are none."""

    ref_id: str
    frames: list[Frame] = Field(default_factory=list)
    error: str | None = None
