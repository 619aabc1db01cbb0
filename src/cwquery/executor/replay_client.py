"""A metrics client that replays recorded API responses from a file.

handy for reproducing naming bugs: record what the api returned once, then
run the whole pipeline offline as often as needed.

    results:
      - id: querya
        label: i-0123456789
        statusCode: Complete
        timestamps: [2024-01-01T00:00:00Z]
        values: [1.5]
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from cwquery.models.response import MetricDataQuery, MetricDataResult

logger = logging.getLogger(__name__)


class ReplayMetricClient:
    """Serves recorded results for whichever ids a request asks for."""

    def __init__(self, results: list[MetricDataResult]) -> None:
        self.results = results

    @classmethod
    def from_file(cls, path: str | Path) -> "ReplayMetricClient":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Responses file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls([_parse_result(entry) for entry in data.get("results", [])])

    def get_metric_data(
        self,
        region: str,
        queries: list[MetricDataQuery],
        start: datetime,
        end: datetime,
    ) -> list[MetricDataResult]:
        requested = {query.id for query in queries}
        results = [result for result in self.results if result.id in requested]
        logger.debug("replaying %d results for %d queries in %s", len(results), len(queries), region)
        return results


def _parse_result(entry: dict[str, Any]) -> MetricDataResult:
    # recordings use the api's camelCase key
    data = dict(entry)
    if "statusCode" in data:
        data["status_code"] = data.pop("statusCode")
    return MetricDataResult.model_validate(data)
