"""Migration of legacy query documents to the current schema.

saved dashboards never get rewritten, so every request may carry documents
from any past version of the editor. we patch them up in flight:

  - "statistics": [...] (multi-stat, long gone) becomes "statistic": first one
  - "alias" gets a dynamic "label" next to it when dynamic labels are enabled

the alias itself stays - older frontends still read it.
"""

import json
import logging
from typing import Any

from cwquery.errors import MalformedQueryError
from cwquery.models.query import RawQuery
from cwquery.parser.aliases import alias_to_label

logger = logging.getLogger(__name__)


def decode_document(query: RawQuery) -> dict[str, Any]:
    """Decode the JSON text of a raw query into a dict."""
    try:
        document = json.loads(query.document)
    except json.JSONDecodeError as e:
        raise MalformedQueryError("json", str(e), query.ref_id) from e
    if not isinstance(document, dict):
        raise MalformedQueryError("json", "expected a JSON object", query.ref_id)
    return document


def migrate_statistics(document: dict[str, Any]) -> None:
    """Narrow the legacy statistics list to a single statistic, in place."""
    if "statistics" not in document or "statistic" in document:
        return
    statistics = document.pop("statistics")
    if isinstance(statistics, list) and statistics:
        # the rest are dropped - multi-stat queries became one query per stat years ago
        document["statistic"] = statistics[0]


def migrate_alias_to_dynamic_label(document: dict[str, Any]) -> None:
    """Add a label derived from the alias when there isn't one yet, in place."""
    if "label" in document or "alias" not in document:
        return
    alias = document["alias"]
    if not isinstance(alias, str):
        return
    document["label"] = alias_to_label(alias)


def migrate_query(query: RawQuery, dynamic_labels: bool) -> RawQuery:
    """Bring one raw query up to the current schema.

    non time-series queries pass through untouched, as do documents that are
    already current.
    """
    if not query.is_time_series:
        return query

    document = decode_document(query)
    original = dict(document)

    migrate_statistics(document)
    if dynamic_labels:
        migrate_alias_to_dynamic_label(document)

    if document == original:
        return query

    logger.debug("migrated legacy query %s", query.ref_id)
    return query.model_copy(update={"document": json.dumps(document)})


def migrate_legacy_queries(queries: list[RawQuery], dynamic_labels: bool) -> list[RawQuery]:
    """Migrate a whole batch. Same order and length as the input.

    fails on the first malformed document - use migrate_query directly when
    per-query failures are wanted.
    """
    return [migrate_query(query, dynamic_labels) for query in queries]
