"""Basic usage example for cwquery."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cwquery.config import EngineConfig
from cwquery.engine import QueryEngine
from cwquery.executor.replay_client import ReplayMetricClient
from cwquery.models.response import MetricDataResult, StatusCode
from cwquery.parser.batch import batch_from_dict


def main():
    """Walk a small batch through migration, parsing and naming."""
    now = datetime.now(timezone.utc)
    batch = batch_from_dict(
        {
            "range": {"from": "now-3h", "to": "now"},
            "queries": [
                # saved years ago: statistics list and an alias
                {
                    "refId": "a",
                    "namespace": "AWS/EC2",
                    "metricName": "NetworkOut",
                    "dimensions": {"InstanceId": "i-00645d91ed77d87ac"},
                    "statistics": ["Maximum", "Sum"],
                    "alias": "{{metric}} on {{InstanceId}}",
                    "period": "300",
                },
                # current builder query fanning out over every instance
                {
                    "refId": "b",
                    "region": "default",
                    "namespace": "AWS/EC2",
                    "metricName": "CPUUtilization",
                    "dimensions": {"InstanceId": ["*"]},
                    "statistic": "Average",
                    "period": "auto",
                    "label": "${PROP('Dim.InstanceId')} cpu",
                },
                # math over the others, named by its id
                {"refId": "c", "expression": "SUM(METRICS())", "period": "300"},
            ],
        },
        now,
    )

    # pretend the api answered; normally this is a real client
    end = now
    client = ReplayMetricClient(
        [
            MetricDataResult(id="querya", label="NetworkOut", timestamps=[end], values=[12.0]),
            MetricDataResult(id="queryb", label="i-0123", timestamps=[end], values=[3.5]),
            MetricDataResult(
                id="queryb",
                label="i-0456",
                status_code=StatusCode.PARTIAL_DATA,
                timestamps=[end],
                values=[4.5],
            ),
            MetricDataResult(id="queryc", label="sum", timestamps=[end], values=[20.0]),
        ]
    )
    engine = QueryEngine(EngineConfig(dynamic_labels=True), client)

    print("=" * 60)
    print("cwquery demo")
    print("=" * 60)

    # 1. Migration
    print("\n1. Migrated documents:")
    for query in engine.migrate(batch):
        print(f"   {query.ref_id}: {query.document}")

    # 2. Canonical queries
    print("\n2. Canonical queries:")
    for ref_id, query in engine.parse(batch, now=now).items():
        print(f"   {ref_id}: id={query.id} mode={query.api_mode.value} period={query.period}")

    # 3. Automatic periods
    print("\n3. Automatic periods:")
    for window in (timedelta(hours=1), timedelta(days=7), timedelta(days=90)):
        print(f"   last {window}: {engine.period(now - window, now, now)}s")

    # 4. Named frames
    print("\n4. Frames:")
    for ref_id, response in engine.execute(batch, now=now).items():
        if response.error:
            print(f"   {ref_id}: error: {response.error}")
        for frame in response.frames:
            partial = " (partial)" if frame.meta.get("partial") else ""
            print(f"   {ref_id}: {frame.name}{partial}")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
