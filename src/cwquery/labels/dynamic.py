"""Evaluation of dynamic label templates.

a template is literal text with ${...} placeholders:

    ${PROP('MetricName')}  ${PROP('Namespace')}  ${PROP('Region')}
    ${PROP('Period')}      ${PROP('Stat')}       ${PROP('Dim.<name>')}
    ${LABEL}

same idea as the alias grammar - lex first, then substitute from a table -
so unknown placeholders can be left alone instead of half-replaced.
"""

import re
from dataclasses import dataclass

from cwquery.models.query import WILDCARD, CanonicalQuery
from cwquery.models.response import MetricDataResult

_PLACEHOLDER = re.compile(r"\$\{(?:PROP\('(?P<prop>[^']*)'\)|(?P<label>LABEL))\}")

DIMENSION_PREFIX = "Dim."


@dataclass(frozen=True)
class TemplatePart:
    """Literal text, a PROP placeholder or the LABEL placeholder."""

    text: str
    kind: str = "literal"  # literal | prop | label


def tokenize_label(template: str) -> list[TemplatePart]:
    """Split a dynamic label template into parts, in order."""
    parts: list[TemplatePart] = []
    pos = 0
    for match in _PLACEHOLDER.finditer(template):
        if match.start() > pos:
            parts.append(TemplatePart(template[pos : match.start()]))
        if match.group("label"):
            parts.append(TemplatePart(match.group(0), kind="label"))
        else:
            parts.append(TemplatePart(match.group("prop"), kind="prop"))
        pos = match.end()
    if pos < len(template):
        parts.append(TemplatePart(template[pos:]))
    return parts


def dimension_value(query: CanonicalQuery, name: str, series_label: str) -> str:
    """Value of a dimension for one returned series.

    a pinned single value is known from the query. wildcard and multi-value
    searches fan out, and the api labels each series with its own value.
    """
    values = query.dimensions.get(name)
    if not values:
        return ""
    if len(values) == 1 and values[0] != WILDCARD:
        return values[0]
    return series_label


def series_properties(query: CanonicalQuery) -> dict[str, str]:
    """PROP values that don't depend on the series."""
    period, stat = query.naming_period_and_stat()
    return {
        "MetricName": query.metric_name,
        "Namespace": query.namespace,
        "Region": query.region,
        "Period": str(period),
        "Stat": stat,
    }


def evaluate_label(template: str, query: CanonicalQuery, result: MetricDataResult) -> str:
    """Expand a dynamic label template for one returned series."""
    properties = series_properties(query)
    out = []
    for part in tokenize_label(template):
        if part.kind == "label":
            out.append(result.label)
        elif part.kind == "prop":
            if part.text.startswith(DIMENSION_PREFIX):
                name = part.text[len(DIMENSION_PREFIX) :]
                out.append(dimension_value(query, name, result.label))
            elif part.text in properties:
                out.append(properties[part.text])
            else:
                # unknown property, left as is
                out.append(f"${{PROP('{part.text}')}}")
        else:
            out.append(part.text)
    return "".join(out)
