"""Main QueryEngine interface for cwquery."""

import logging
from datetime import datetime

from cwquery.config import EngineConfig
from cwquery.errors import QueryError
from cwquery.executor.query_executor import MetricDataClient, TimeSeriesQueryExecutor
from cwquery.models.query import CanonicalQuery, RawQuery
from cwquery.models.response import QueryResponse
from cwquery.parser.migration import migrate_legacy_queries, migrate_query
from cwquery.parser.period import auto_period
from cwquery.parser.request_parser import parse_raw_query

logger = logging.getLogger(__name__)


class QueryEngine:
    """Main interface for cwquery."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        client: MetricDataClient | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine settings, defaults when None.
            client: Metrics API client. Only needed for execute().
        """
        self.config = config or EngineConfig()
        self.client = client

    def migrate(self, queries: list[RawQuery]) -> list[RawQuery]:
        """Migrate legacy documents using the configured dynamic label setting."""
        return migrate_legacy_queries(queries, self.config.dynamic_labels)

    def parse(
        self, queries: list[RawQuery], now: datetime | None = None
    ) -> dict[str, CanonicalQuery | QueryError]:
        """Migrate and parse every query, keeping failures per refId."""
        parsed: dict[str, CanonicalQuery | QueryError] = {}
        for raw in queries:
            try:
                migrated = migrate_query(raw, self.config.dynamic_labels)
                parsed[raw.ref_id] = parse_raw_query(
                    migrated, now=now, default_region=self.config.default_region
                )
            except QueryError as e:
                logger.warning("query %s failed: %s", raw.ref_id, e)
                parsed[raw.ref_id] = e
        return parsed

    def execute(
        self, queries: list[RawQuery], now: datetime | None = None
    ) -> dict[str, QueryResponse]:
        """Run a batch end to end against the configured client."""
        if self.client is None:
            raise ValueError("QueryEngine needs a metrics client to execute queries")
        executor = TimeSeriesQueryExecutor(self.client, self.config)
        return executor.execute(queries, now=now)

    def period(self, start: datetime, end: datetime, now: datetime | None = None) -> int:
        """The automatic period for a window."""
        return auto_period(start, end, now)
