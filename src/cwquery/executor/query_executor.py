"""Time series query execution.

glues the pieces together for one request batch:

  validate windows -> migrate -> parse -> group -> call the api -> name frames

the metrics api itself is a capability handed in by the caller (anything with
a get_metric_data method).
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Protocol

from cwquery.config import EngineConfig
from cwquery.errors import InvalidTimeRangeError, QueryError, UnexpectedAPIResponseError
from cwquery.executor.request_builder import build_metric_data_query
from cwquery.labels.frame_namer import frame_name
from cwquery.models.query import CanonicalQuery, RawQuery, TimeRange
from cwquery.models.response import (
    Frame,
    MetricDataQuery,
    MetricDataResult,
    QueryResponse,
    StatusCode,
)
from cwquery.parser.migration import migrate_query
from cwquery.parser.request_parser import parse_raw_query

logger = logging.getLogger(__name__)


class MetricDataClient(Protocol):
    """Anything that can answer a batched metrics API request.

    must be safe to call from several threads at once.
    """

    def get_metric_data(
        self,
        region: str,
        queries: list[MetricDataQuery],
        start: datetime,
        end: datetime,
    ) -> list[MetricDataResult]: ...


def validate_time_range(time_range: TimeRange, ref_id: str | None = None) -> None:
    """Reject empty or inverted windows."""
    if time_range.from_ >= time_range.to:
        raise InvalidTimeRangeError(ref_id)


class TimeSeriesQueryExecutor:
    """Runs request batches against a metrics API client.

    stateless apart from the config and client it was built with, so one
    instance can serve any number of batches concurrently.
    """

    def __init__(self, client: MetricDataClient, config: EngineConfig | None = None) -> None:
        self.client = client
        self.config = config or EngineConfig()

    def execute(
        self, queries: list[RawQuery], now: datetime | None = None
    ) -> dict[str, QueryResponse]:
        """Execute a request batch.

        Args:
            queries: Raw queries of the batch.
            now: Reference time for automatic periods; defaults to the current time.

        Returns:
            One QueryResponse per refId, in request order.

        Raises:
            InvalidTimeRangeError: A window is empty or inverted. Nothing is dispatched.
            UnexpectedAPIResponseError: The api returned a series we never asked for.
        """
        # precondition for the whole batch, checked before anything is parsed
        for raw in queries:
            validate_time_range(raw.time_range, raw.ref_id)

        responses: dict[str, QueryResponse] = {}
        parsed: list[tuple[RawQuery, CanonicalQuery]] = []
        seen_ids: set[str] = set()
        for raw in queries:
            responses[raw.ref_id] = QueryResponse(ref_id=raw.ref_id)
            try:
                query = self._prepare(raw, now)
                if query.id in seen_ids:
                    raise QueryError(f"duplicate query id: {query.id}", raw.ref_id)
                seen_ids.add(query.id)
                parsed.append((raw, query))
            except QueryError as e:
                logger.warning("query %s failed: %s", raw.ref_id, e)
                responses[raw.ref_id].error = str(e)

        groups: dict[tuple[str, TimeRange], list[CanonicalQuery]] = defaultdict(list)
        for raw, query in parsed:
            groups[(query.region, raw.time_range)].append(query)

        if not groups:
            return responses

        workers = min(self.config.max_concurrent_requests, len(groups))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._dispatch, region, time_range, group)
                for (region, time_range), group in groups.items()
            ]
            # result() re-raises, so an unexpected api response fails the batch
            for future in futures:
                for ref_id, response in future.result().items():
                    responses[ref_id] = response

        return responses

    def _prepare(self, raw: RawQuery, now: datetime | None) -> CanonicalQuery:
        if not raw.is_time_series:
            raise QueryError(f"unsupported query type: {raw.query_type}", raw.ref_id)
        migrated = migrate_query(raw, self.config.dynamic_labels)
        return parse_raw_query(migrated, now=now, default_region=self.config.default_region)

    def _dispatch(
        self, region: str, time_range: TimeRange, queries: list[CanonicalQuery]
    ) -> dict[str, QueryResponse]:
        """Send one region/window group to the api and name what comes back."""
        requests = [build_metric_data_query(query) for query in queries]
        logger.info(
            "requesting %d metric data queries in %s for %s -> %s",
            len(requests),
            region,
            time_range.from_,
            time_range.to,
        )
        results = self.client.get_metric_data(region, requests, time_range.from_, time_range.to)
        return self.build_responses(queries, results)

    @staticmethod
    def build_responses(
        queries: list[CanonicalQuery], results: list[MetricDataResult]
    ) -> dict[str, QueryResponse]:
        """Match api results to their queries by id and turn them into named frames."""
        by_id = {query.id: query for query in queries}
        results_by_id: dict[str, list[MetricDataResult]] = defaultdict(list)
        for result in results:
            if result.id not in by_id:
                raise UnexpectedAPIResponseError(
                    f"metrics api returned unknown query id {result.id!r}"
                )
            results_by_id[result.id].append(result)

        responses = {}
        for query in queries:
            response = QueryResponse(ref_id=query.ref_id)
            responses[query.ref_id] = response
            query_results = results_by_id.get(query.id)

            if not query_results:
                response.error = f"metrics api returned no result for query id {query.id!r}"
                logger.warning("query %s: %s", query.ref_id, response.error)
                continue

            for result in query_results:
                if result.status_code not in (StatusCode.COMPLETE, StatusCode.PARTIAL_DATA):
                    detail = "; ".join(result.messages) or result.status_code.value
                    response.error = f"metrics api error for query id {query.id!r}: {detail}"
                    response.frames = []
                    logger.warning("query %s: %s", query.ref_id, response.error)
                    break

                if not query.return_data:
                    continue

                meta = {}
                if result.status_code == StatusCode.PARTIAL_DATA:
                    # more data points exist than the api was willing to return
                    logger.warning("query %s: partial data for %s", query.ref_id, result.label)
                    meta["partial"] = True

                response.frames.append(
                    Frame(
                        name=frame_name(query, result),
                        ref_id=query.ref_id,
                        timestamps=result.timestamps,
                        values=result.values,
                        meta=meta,
                    )
                )
        return responses
