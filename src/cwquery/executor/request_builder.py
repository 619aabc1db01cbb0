"""Translate canonical queries into metrics API request entries.

most of the work is building SEARCH expressions for builder queries that
can't be a plain MetricStat (loose matching, wildcards, several values).
"""

from cwquery.models.query import WILDCARD, ApiMode, CanonicalQuery
from cwquery.models.response import MetricDataQuery


def _quote(value: str) -> str:
    return '"' + value.replace('"', '\\"').replace("'", "\\'") + '"'


def build_search_expression(query: CanonicalQuery) -> str:
    """Build the SEARCH expression for a builder query.

    exact matching pins the schema ({Namespace,Dim1,Dim2}) so only series
    with exactly those dimensions come back. loose matching searches by
    namespace and lets wildcard dimensions appear as bare names.
    """
    known: dict[str, list[str]] = {}
    wildcard_names: list[str] = []
    for name, values in query.dimensions.items():
        if WILDCARD in values:
            wildcard_names.append(name)
        else:
            known[name] = values

    terms = [f"MetricName={_quote(query.metric_name)}"]
    for name in sorted(known):
        values = [_quote(v) for v in known[name]]
        value_expr = " OR ".join(values)
        if len(values) > 1:
            value_expr = f"({value_expr})"
        terms.append(f"{_quote(name)}={value_expr}")

    if query.match_exact:
        schema = ",".join([query.namespace, *sorted(query.dimensions)])
        search_term = " ".join(terms)
        return (
            f"REMOVE_EMPTY(SEARCH('{{{schema}}} {search_term}', "
            f"'{query.statistic}', {query.period}))"
        )

    terms.extend(_quote(name) for name in sorted(wildcard_names))
    search_term = " ".join(terms)
    return (
        f"REMOVE_EMPTY(SEARCH('Namespace={_quote(query.namespace)} {search_term}', "
        f"'{query.statistic}', {query.period}))"
    )


def build_metric_data_query(query: CanonicalQuery) -> MetricDataQuery:
    """Build the API request entry for one canonical query."""
    entry = MetricDataQuery(
        id=query.id,
        period=query.period,
        return_data=query.return_data,
        label=query.label or None,
    )

    mode = query.api_mode
    if mode == ApiMode.QUERY:
        entry.expression = query.sql_expression or query.expression
    elif mode == ApiMode.MATH_EXPRESSION or query.is_search_expression:
        entry.expression = query.expression
    elif query.uses_search_expression:
        entry.expression = build_search_expression(query)
    else:
        entry.namespace = query.namespace
        entry.metric_name = query.metric_name
        entry.dimensions = query.dimensions
        entry.statistic = query.statistic
    return entry
