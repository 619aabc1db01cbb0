"""Request parser: migrated query document -> CanonicalQuery.

the document shape has drifted a lot over the years, so most of this module
is about accepting every historical encoding and producing exactly one
canonical record. anything we can't make sense of raises MalformedQueryError
naming the field, and the executor reports it against that query only.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Any

from cwquery.errors import MalformedQueryError
from cwquery.models.query import (
    METRIC_DATA_ID,
    CanonicalQuery,
    MetricEditorMode,
    MetricQueryType,
    RawQuery,
)
from cwquery.parser.migration import decode_document
from cwquery.parser.period import auto_period

logger = logging.getLogger(__name__)

# go-style durations from very old dashboards: "5m", "1h30m", "90s"
_DURATION = re.compile(r"^(?:([0-9]+)h)?(?:([0-9]+)m)?(?:([0-9]+)s)?$")

DEFAULT_REGION_ALIASES = ("", "default")


def parse_dimensions(value: Any, ref_id: str) -> dict[str, list[str]]:
    """Normalize both dimension encodings to name -> list of values.

    current: {"InstanceId": ["a", "b"]}
    legacy:  {"InstanceId": "a"}
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedQueryError("dimensions", "expected an object", ref_id)

    dimensions: dict[str, list[str]] = {}
    for name, values in value.items():
        if isinstance(values, str):
            dimensions[name] = [values]
        elif isinstance(values, list):
            if not all(isinstance(v, str) for v in values):
                raise MalformedQueryError(
                    "dimensions", f"values of '{name}' must be strings", ref_id
                )
            if values:
                dimensions[name] = list(values)
            else:
                logger.debug("query %s: dropping empty dimension %s", ref_id, name)
        else:
            raise MalformedQueryError(
                "dimensions", f"unsupported value for '{name}': {values!r}", ref_id
            )
    return dimensions


def parse_period_value(value: Any, ref_id: str) -> int | None:
    """Parse an explicit period. Returns None for "auto" (or missing).

    the user's number always wins, even when it's silly for the window.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedQueryError("period", f"invalid period {value!r}", ref_id)
    if isinstance(value, int):
        period = value
    elif isinstance(value, str):
        text = value.strip()
        if text in ("", "auto"):
            return None
        if text.isascii() and text.isdigit():
            period = int(text)
        else:
            period = _parse_duration(text, ref_id)
    else:
        raise MalformedQueryError("period", f"invalid period {value!r}", ref_id)

    if period <= 0:
        raise MalformedQueryError("period", f"period must be positive, got {value!r}", ref_id)
    return period


def _parse_duration(text: str, ref_id: str) -> int:
    match = _DURATION.match(text)
    if match is None or not any(match.groups()):
        raise MalformedQueryError("period", f"invalid period {text!r}", ref_id)
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def resolve_query_id(document: dict[str, Any], ref_id: str) -> str:
    """Pick the sub-query id sent to the api.

    order: a valid id already pinned in the document, then "query" + refId
    when refId is itself valid, else a random one.
    """
    explicit = document.get("id")
    if isinstance(explicit, str) and METRIC_DATA_ID.match(explicit):
        return explicit
    if METRIC_DATA_ID.match(ref_id):
        return f"query{ref_id}"
    return f"query{uuid.uuid4().hex}"


def _parse_enum(document: dict[str, Any], field: str, enum_cls, ref_id: str):
    value = document.get(field)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedQueryError(field, f"expected an integer, got {value!r}", ref_id)
    try:
        return enum_cls(value)
    except ValueError as e:
        raise MalformedQueryError(field, f"unknown value {value!r}", ref_id) from e


def _get_str(document: dict[str, Any], field: str, ref_id: str, default: str = "") -> str:
    value = document.get(field)
    if value is None:
        return default
    if not isinstance(value, str):
        raise MalformedQueryError(field, f"expected a string, got {value!r}", ref_id)
    return value


def _get_bool(document: dict[str, Any], field: str, ref_id: str, default: bool) -> bool:
    value = document.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise MalformedQueryError(field, f"expected a boolean, got {value!r}", ref_id)
    return value


def parse_request_query(
    document: dict[str, Any],
    ref_id: str,
    start: datetime,
    end: datetime,
    now: datetime | None = None,
    default_region: str | None = None,
) -> CanonicalQuery:
    """Build a CanonicalQuery from one migrated query document.

    Args:
        document: The decoded (and already migrated) query document.
        ref_id: The request-scoped refId of the query.
        start: Window start, used for automatic periods.
        end: Window end.
        now: Reference "now" for data age; defaults to the current time.
        default_region: Region used when the document says "default" or nothing.

    Returns:
        The canonical query.

    Raises:
        MalformedQueryError: When a field can't be interpreted.
    """
    region = _get_str(document, "region", ref_id)
    if region in DEFAULT_REGION_ALIASES and default_region:
        region = default_region

    period = parse_period_value(document.get("period"), ref_id)
    if period is None:
        period = auto_period(start, end, now)

    expression = _get_str(document, "expression", ref_id)

    metric_query_type = _parse_enum(document, "metricQueryType", MetricQueryType, ref_id)
    if metric_query_type is None:
        metric_query_type = MetricQueryType.SEARCH

    metric_editor_mode = _parse_enum(document, "metricEditorMode", MetricEditorMode, ref_id)
    if metric_editor_mode is None:
        metric_editor_mode = (
            MetricEditorMode.RAW if expression.strip() else MetricEditorMode.BUILDER
        )

    query = CanonicalQuery(
        ref_id=ref_id,
        id=resolve_query_id(document, ref_id),
        region=region,
        namespace=_get_str(document, "namespace", ref_id),
        metric_name=_get_str(document, "metricName", ref_id),
        expression=expression,
        sql_expression=_get_str(document, "sqlExpression", ref_id),
        dimensions=parse_dimensions(document.get("dimensions"), ref_id),
        statistic=_get_str(document, "statistic", ref_id, default="Average"),
        period=period,
        return_data=not _get_bool(document, "hide", ref_id, default=False),
        match_exact=_get_bool(document, "matchExact", ref_id, default=True),
        metric_query_type=metric_query_type,
        metric_editor_mode=metric_editor_mode,
        alias=_get_str(document, "alias", ref_id),
        label=_get_str(document, "label", ref_id),
    )
    logger.debug(
        "parsed query %s: id=%s mode=%s period=%s",
        ref_id,
        query.id,
        query.api_mode.value,
        query.period,
    )
    return query


def parse_raw_query(
    raw: RawQuery,
    now: datetime | None = None,
    default_region: str | None = None,
) -> CanonicalQuery:
    """Decode a RawQuery's JSON and parse it with its own time range."""
    document = decode_document(raw)
    return parse_request_query(
        document,
        raw.ref_id,
        raw.time_range.from_,
        raw.time_range.to,
        now=now,
        default_region=default_region,
    )
