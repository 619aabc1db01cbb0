"""Tests for frame naming and dynamic label evaluation."""

import pytest

from cwquery.labels.dynamic import evaluate_label, tokenize_label
from cwquery.labels.frame_namer import frame_name, label_template
from cwquery.models.query import CanonicalQuery, MetricEditorMode, MetricQueryType
from cwquery.models.response import MetricDataResult


def _query(**kwargs) -> CanonicalQuery:
    defaults = {
        "ref_id": "A",
        "id": "querya",
        "region": "us-east-2",
        "namespace": "AWS/EC2",
        "statistic": "Maximum",
        "period": 1200,
    }
    defaults.update(kwargs)
    return CanonicalQuery(**defaults)


RESULT = MetricDataResult(id="query id", label="response label")


class TestLabelTemplates:
    def test_alias_uses_search_expression_period_and_stat(self):
        """A SEARCH's own stat and period beat the document fields."""
        query = _query(
            namespace="",
            metric_editor_mode=MetricEditorMode.RAW,
            expression="SEARCH('{AWS/EC2,InstanceId} MetricName=\"CPUUtilization\"', 'Average', 300)",
            alias="{{period}} {{stat}}",
        )
        assert frame_name(query, RESULT) == "300 Average"

    def test_migrated_label_uses_search_expression_too(self):
        """Same rule for a label template."""
        query = _query(
            metric_editor_mode=MetricEditorMode.RAW,
            expression="REMOVE_EMPTY(SEARCH('{AWS/EC2} CPU', 'Sum', 60))",
            label="${PROP('Period')} ${PROP('Stat')}",
        )
        assert frame_name(query, RESULT) == "60 Sum"

    def test_label_beats_alias(self):
        """A label wins over a legacy alias."""
        query = _query(alias="{{metric}}", label="fixed", metric_name="CPUUtilization")
        assert frame_name(query, RESULT) == "fixed"

    def test_plain_alias_is_used_verbatim(self):
        """A literal alias is the name."""
        query = _query(alias="NetworkOut", metric_name="NetworkOut")
        assert frame_name(query, MetricDataResult(id="a", label="x")) == "NetworkOut"

    def test_empty_label_falls_through(self):
        """An empty label doesn't blank the name."""
        query = _query(label="", metric_name="CPUUtilization")
        assert label_template(query) is None
        assert frame_name(query, RESULT) == "CPUUtilization_Maximum"

    def test_label_wins_even_in_query_mode(self):
        """Templates come before the structured-query rule."""
        query = _query(metric_query_type=MetricQueryType.QUERY, label="${LABEL} (sql)")
        assert frame_name(query, RESULT) == "response label (sql)"


class TestNamingModes:
    def test_query_mode_uses_api_label(self):
        """Structured query mode defers to the api label."""
        query = _query(
            metric_query_type=MetricQueryType.QUERY,
            dimensions={"InstanceId": ["some-instance"]},
            match_exact=False,
        )
        assert frame_name(query, RESULT) == "response label"

    def test_math_expression_uses_query_id(self):
        """Math expressions are named by their sub-query id."""
        query = _query(metric_editor_mode=MetricEditorMode.RAW, match_exact=True)
        assert frame_name(query, RESULT) == "query id"

    @pytest.mark.parametrize(
        "dimensions,match_exact",
        [
            ({"InstanceId": ["some-instance"]}, False),
            ({"InstanceId": ["*"]}, False),
            ({"InstanceId": ["*"]}, True),
            ({}, False),
        ],
    )
    def test_inferred_search_uses_api_label(self, dimensions, match_exact):
        """Without a metric name and no fan-out, the api label is needed."""
        query = _query(metric_name="", dimensions=dimensions, match_exact=match_exact)
        assert frame_name(query, RESULT) == "response label"

    @pytest.mark.parametrize(
        "dimensions,match_exact",
        [
            ({"InstanceId": ["some-instance"]}, True),
            ({}, True),
            ({"InstanceId": ["some-instance", "another-instance"]}, True),
            ({"InstanceId": ["some-instance", "another-instance"]}, False),
        ],
    )
    def test_builder_with_metric_name(self, dimensions, match_exact):
        """With a metric name the frame is metric_stat."""
        query = _query(metric_name="CPUUtilization", dimensions=dimensions, match_exact=match_exact)
        assert frame_name(query, RESULT) == "CPUUtilization_Maximum"

    @pytest.mark.parametrize(
        "dimensions",
        [{"InstanceId": ["a"]}, {"InstanceId": ["a", "b"]}, {}],
    )
    def test_inferred_exact_multi_valued(self, dimensions):
        """Inferred but exact and fanning out falls back to metric_stat."""
        query = _query(metric_name="", dimensions=dimensions, match_exact=True)
        assert query.is_multi_valued
        # empty metric name is expected here, the name is just "_<stat>"
        assert frame_name(query, RESULT) == "_Maximum"


class TestDynamicLabels:
    def test_tokenize(self):
        """Templates lex into literal, prop and label parts."""
        parts = tokenize_label("x ${PROP('Stat')}${LABEL}")
        assert [(p.kind, p.text) for p in parts] == [
            ("literal", "x "),
            ("prop", "Stat"),
            ("label", "${LABEL}"),
        ]

    def test_all_properties(self):
        """Every known property is filled from the query."""
        query = _query(metric_name="CPUUtilization", period=300, statistic="Sum")
        template = (
            "${PROP('MetricName')}|${PROP('Namespace')}|${PROP('Region')}|"
            "${PROP('Period')}|${PROP('Stat')}|${LABEL}"
        )
        assert (
            evaluate_label(template, query, RESULT)
            == "CPUUtilization|AWS/EC2|us-east-2|300|Sum|response label"
        )

    def test_pinned_dimension_value(self):
        """A single pinned value comes from the query."""
        query = _query(dimensions={"InstanceId": ["i-123"]})
        assert evaluate_label("${PROP('Dim.InstanceId')}", query, RESULT) == "i-123"

    def test_fanned_out_dimension_uses_series_label(self):
        """Wildcard and multi-value dimensions take the series label."""
        wildcard = _query(dimensions={"InstanceId": ["*"]})
        multi = _query(dimensions={"InstanceId": ["a", "b"]})
        result = MetricDataResult(id="querya", label="i-456")
        assert evaluate_label("${PROP('Dim.InstanceId')}", wildcard, result) == "i-456"
        assert evaluate_label("${PROP('Dim.InstanceId')}", multi, result) == "i-456"

    def test_unknown_dimension_is_empty(self):
        """Dimensions the query doesn't filter on render empty."""
        assert evaluate_label("[${PROP('Dim.Nope')}]", _query(), RESULT) == "[]"

    def test_unknown_property_kept(self):
        """Properties we don't know stay in the name untouched."""
        template = "${PROP('AccountId')} x"
        assert evaluate_label(template, _query(), RESULT) == template
