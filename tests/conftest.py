"""Pytest fixtures for cwquery tests."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from cwquery.models.query import RawQuery, TimeRange
from cwquery.models.response import MetricDataQuery, MetricDataResult, StatusCode

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeMetricClient:
    """Answers every requested id with one series labeled from `labels`.

    records each call so tests can look at what was dispatched.
    """

    def __init__(
        self,
        labels: dict[str, str] | None = None,
        default_label: str = "response label",
        status_code: StatusCode = StatusCode.COMPLETE,
        extra_results: list[MetricDataResult] | None = None,
    ) -> None:
        self.labels = labels or {}
        self.default_label = default_label
        self.status_code = status_code
        self.extra_results = extra_results or []
        self.calls: list[tuple[str, list[MetricDataQuery]]] = []

    def get_metric_data(self, region, queries, start, end):
        self.calls.append((region, queries))
        results = [
            MetricDataResult(
                id=query.id,
                label=self.labels.get(query.id, self.default_label),
                status_code=self.status_code,
                timestamps=[end],
                values=[1.0],
            )
            for query in queries
        ]
        return results + self.extra_results


@pytest.fixture
def make_client():
    """Factory for FakeMetricClient instances."""
    return FakeMetricClient


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def last_hour() -> TimeRange:
    """The window most tests use: from two hours ago to one hour ago."""
    return TimeRange(from_=NOW - timedelta(hours=2), to=NOW - timedelta(hours=1))


@pytest.fixture
def base_document() -> dict[str, Any]:
    """Minimal current-schema query document."""
    return {
        "refId": "ref1",
        "region": "us-east-1",
        "namespace": "ec2",
        "metricName": "CPUUtilization",
        "statistic": "Average",
        "period": "900",
    }


@pytest.fixture
def make_raw(last_hour: TimeRange):
    """Factory for RawQuery objects from a dict document."""

    def _make(document: dict[str, Any], ref_id: str = "a", **kwargs) -> RawQuery:
        kwargs.setdefault("time_range", last_hour)
        return RawQuery(ref_id=ref_id, document=json.dumps(document), **kwargs)

    return _make


@pytest.fixture
def sample_batch_yaml() -> str:
    """Batch file with one legacy and one current query."""
    return """
range:
  from: "2024-06-01T10:00:00+00:00"
  to: "2024-06-01T11:00:00+00:00"
queries:
  - refId: a
    type: timeSeriesQuery
    region: us-east-2
    namespace: AWS/EC2
    metricName: NetworkOut
    dimensions:
      InstanceId: i-00645d91ed77d87ac
    statistics: [Maximum, Sum]
    alias: "{{metric}} {{InstanceId}}"
    period: "300"
    matchExact: true
  - refId: b
    type: timeSeriesQuery
    region: default
    namespace: AWS/EC2
    metricName: CPUUtilization
    dimensions:
      InstanceId: ["*"]
    statistic: Average
    period: auto
    matchExact: false
"""


@pytest.fixture
def sample_responses_yaml() -> str:
    """Recorded responses matching sample_batch_yaml."""
    return """
results:
  - id: querya
    label: NetworkOut
    statusCode: Complete
    timestamps: ["2024-06-01T10:00:00+00:00", "2024-06-01T10:05:00+00:00"]
    values: [1.0, 2.0]
  - id: queryb
    label: i-0123
    statusCode: PartialData
    timestamps: ["2024-06-01T10:00:00+00:00"]
    values: [3.5]
  - id: queryb
    label: i-0456
    statusCode: Complete
    timestamps: ["2024-06-01T10:00:00+00:00"]
    values: [4.5]
"""


@pytest.fixture
def batch_file(tmp_path: Path, sample_batch_yaml: str) -> Path:
    """Write the sample batch to a temporary file."""
    path = tmp_path / "batch.yaml"
    path.write_text(sample_batch_yaml)
    return path


@pytest.fixture
def responses_file(tmp_path: Path, sample_responses_yaml: str) -> Path:
    """Write the sample responses to a temporary file."""
    path = tmp_path / "responses.yaml"
    path.write_text(sample_responses_yaml)
    return path
