"""Loading query batches from YAML or JSON files.

this is how the cli (and tests) feed requests in without a host runtime.
yaml is a superset of json so one loader covers both.

a batch file looks like:

    range:
      from: now-6h
      to: now
    queries:
      - refId: a
        type: timeSeriesQuery
        namespace: AWS/EC2
        metricName: CPUUtilization
        period: auto
        timeRange: {from: now-1h, to: now}   # optional, overrides range
"""

import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import yaml

from cwquery.models.query import TIME_SERIES_QUERY, RawQuery, TimeRange

_RELATIVE = re.compile(r"^now(?:-(\d+)([smhdwy]))?$")

_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    "y": timedelta(days=365),
}


def parse_time(value: Any, now: datetime | None = None) -> datetime:
    """Parse an absolute ISO timestamp or a relative "now-6h" style time.

    naive timestamps are taken as UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        match = _RELATIVE.match(value.strip())
        if match:
            amount, unit = match.groups()
            if amount is None:
                return now
            return now - int(amount) * _UNITS[unit]
        moment = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"Invalid time value: {value!r}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def parse_time_range(data: Any, now: datetime | None = None) -> TimeRange:
    """Parse a {from, to} mapping into a TimeRange."""
    if not isinstance(data, dict) or "from" not in data or "to" not in data:
        raise ValueError(f"Time range needs 'from' and 'to': {data!r}")
    return TimeRange(from_=parse_time(data["from"], now), to=parse_time(data["to"], now))


def load_batch(path: str | Path, now: datetime | None = None) -> list[RawQuery]:
    """Load a batch file into raw queries, in file order."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Batch file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Batch file must contain a mapping: {path}")
    return batch_from_dict(data, now)


def batch_from_dict(data: dict[str, Any], now: datetime | None = None) -> list[RawQuery]:
    """Build raw queries from an already loaded batch mapping."""
    default_range = parse_time_range(data["range"], now) if "range" in data else None

    queries = []
    for index, entry in enumerate(data.get("queries", [])):
        if not isinstance(entry, dict):
            raise ValueError(f"Query #{index} must be a mapping")
        document = dict(entry)

        time_range = default_range
        if "timeRange" in document:
            time_range = parse_time_range(document.pop("timeRange"), now)
        if time_range is None:
            raise ValueError(f"Query #{index} has no time range and the batch has no 'range'")

        ref_id = str(document.get("refId") or chr(ord("A") + index % 26))
        query_type = document.pop("queryType", None) or document.get("type") or TIME_SERIES_QUERY

        queries.append(
            RawQuery(
                ref_id=ref_id,
                query_type=query_type,
                time_range=time_range,
                # yaml may have turned things like dates into python objects
                document=json.dumps(document, default=str),
            )
        )
    return queries
