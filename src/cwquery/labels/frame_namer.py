"""Frame naming for returned series.

four ways to name a series, first match wins:

  1. a label template (or a legacy alias, translated on the fly)
  2. structured query mode - the api's own label, always
  3. math expressions - the sub-query id, there is no dimension to show
  4. searches - the api label when the search was loose and inferred,
     otherwise "<metric>_<stat>"

changing the order changes dashboard legends for real users, so the cases
are pinned by tests.
"""

from cwquery.labels.dynamic import evaluate_label
from cwquery.models.query import ApiMode, CanonicalQuery, MetricQueryType
from cwquery.models.response import MetricDataResult
from cwquery.parser.aliases import alias_to_label


def label_template(query: CanonicalQuery) -> str | None:
    """The template driving the name, if any.

    label beats alias. empty strings count as unset - an empty alias migrates
    to an empty label, and neither should blank the legend.
    """
    if query.label:
        return query.label
    if query.alias:
        return alias_to_label(query.alias)
    return None


def frame_name(query: CanonicalQuery, result: MetricDataResult) -> str:
    """Decide the display name of one returned series."""
    template = label_template(query)
    if template is not None:
        return evaluate_label(template, query, result)

    if query.metric_query_type == MetricQueryType.QUERY:
        return result.label

    if query.api_mode == ApiMode.MATH_EXPRESSION:
        return result.id

    if query.is_inferred and not query.is_multi_valued:
        return result.label

    _, stat = query.naming_period_and_stat()
    return f"{query.metric_name}_{stat}"
