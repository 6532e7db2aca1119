"""
Tests for explorer/aggregation.py — grouping, top-N folding, range buckets
and series resolution.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from explorer.aggregation import (
    DEMO_SERIES,
    OTHER,
    Bucket,
    ChartSpec,
    SeriesPoint,
    aggregate,
    bucket_counts,
    normalize_key,
    resolve_series,
    series_from_payload,
)
from explorer.records import parse_records
from utils.strings import parse_number


def _names(points):
    return [p.name for p in points]


# ── aggregate ─────────────────────────────────────────────────────────────────

class TestAggregate:
    def test_empty_input_gives_empty_series(self):
        assert aggregate([], key="country") == []

    def test_counts_per_group(self):
        rows = [{"country": "US"}, {"country": "UK"}, {"country": "US"}]
        assert aggregate(rows, key="country") == [
            SeriesPoint("US", 2.0), SeriesPoint("UK", 1.0),
        ]

    def test_sums_value(self):
        rows = [
            {"country": "US", "score": "10.5"},
            {"country": "US", "score": 4},
            {"country": "UK", "score": None},
        ]
        points = aggregate(rows, key="country", value="score")
        assert points[0] == SeriesPoint("US", 14.5)
        assert points[1] == SeriesPoint("UK", 0.0)

    def test_ties_sorted_by_name(self):
        rows = [{"k": "b"}, {"k": "a"}, {"k": "c"}]
        assert _names(aggregate(rows, key="k")) == ["a", "b", "c"]

    @pytest.mark.parametrize("raw", [None, "", "   ", "null", "undefined", "-"])
    def test_placeholders_go_to_other(self, raw):
        points = aggregate([{"location": raw}], key="location")
        assert points == [SeriesPoint(OTHER, 1.0)]

    def test_whitespace_normalized(self):
        rows = [{"location": " Berlin "}, {"location": "Berlin"}]
        assert aggregate(rows, key="location") == [SeriesPoint("Berlin", 2.0)]

    def test_callable_rules(self):
        rows = [{"n": 1}, {"n": 2}, {"n": 3}]
        points = aggregate(rows, key=lambda r: "odd" if r["n"] % 2 else "even",
                           value=lambda r: r["n"])
        assert points == [SeriesPoint("odd", 4.0), SeriesPoint("even", 2.0)]

    def test_attribute_records(self):
        records = parse_records("investor", [
            {"name": "A", "location": "London"},
            {"name": "B", "location": "London"},
        ])
        assert aggregate(records, key="location") == [SeriesPoint("London", 2.0)]

    def test_top_n_folds_tail(self):
        rows = [{"k": k} for k in "aaaabbbccd"]
        points = aggregate(rows, key="k", top_n=3)
        # Ties sort by name, and "Other" sorts before lowercase names
        assert points == [SeriesPoint("a", 4.0), SeriesPoint(OTHER, 3.0), SeriesPoint("b", 3.0)]

    def test_top_n_preserves_total(self):
        rows = [{"k": str(i % 7)} for i in range(50)]
        full = sum(p.value for p in aggregate(rows, key="k"))
        folded = aggregate(rows, key="k", top_n=4)
        assert len(folded) <= 4
        assert sum(p.value for p in folded) == full

    def test_top_n_merges_existing_other(self):
        rows = [{"k": "a"}] * 5 + [{"k": None}] * 4 + [{"k": "b"}] * 2 + [{"k": "c"}]
        points = aggregate(rows, key="k", top_n=2)
        assert points == [SeriesPoint(OTHER, 7.0), SeriesPoint("a", 5.0)]

    def test_top_n_not_applied_when_small(self):
        rows = [{"k": "a"}, {"k": "b"}]
        assert len(aggregate(rows, key="k", top_n=5)) == 2

    def test_non_finite_measures_count_as_zero(self):
        rows = [
            {"k": "a", "v": "5"},
            {"k": "b", "v": "NaN"},
            {"k": "c", "v": "9"},
            {"k": "d", "v": "1"},
            {"k": "e", "v": "inf"},
        ]
        points = aggregate(rows, key="k", value="v")
        assert points == [
            SeriesPoint("c", 9.0), SeriesPoint("a", 5.0), SeriesPoint("d", 1.0),
            SeriesPoint("b", 0.0), SeriesPoint("e", 0.0),
        ]

    def test_non_finite_measures_keep_top_n_total(self):
        rows = [{"k": "a", "v": 4}, {"k": "b", "v": float("nan")},
                {"k": "c", "v": 2}, {"k": "d", "v": "-inf"}]
        points = aggregate(rows, key="k", value="v", top_n=2)
        assert points == [SeriesPoint("a", 4.0), SeriesPoint(OTHER, 2.0)]

    def test_top_n_must_be_positive(self):
        with pytest.raises(ValueError):
            aggregate([], key="k", top_n=0)


class TestNormalizeKey:
    def test_numbers_stringified(self):
        assert normalize_key(2024) == "2024"

    def test_undefined(self):
        assert normalize_key("undefined") == OTHER


# ── bucket_counts ─────────────────────────────────────────────────────────────

BUCKETS = (
    Bucket("< $5M", None, 5),
    Bucket("$5-50M", 5, 50),
    Bucket("$50M+", 50, None),
)


class TestBucketCounts:
    def test_declared_order_and_zero_buckets(self):
        rows = [{"v": "60"}, {"v": "1"}]
        points = bucket_counts(rows, "v", BUCKETS)
        assert points == [
            SeriesPoint("< $5M", 1.0),
            SeriesPoint("$5-50M", 0.0),
            SeriesPoint("$50M+", 1.0),
        ]

    def test_money_strings(self):
        rows = [{"v": "$7M"}, {"v": "$1.5B"}, {"v": "250K"}]
        assert [p.value for p in bucket_counts(rows, "v", BUCKETS)] == [1.0, 1.0, 1.0]

    def test_bounds_are_half_open(self):
        points = bucket_counts([{"v": 5}, {"v": 50}], "v", BUCKETS)
        assert [p.value for p in points] == [0.0, 1.0, 1.0]

    def test_unparseable_goes_to_default(self):
        points = bucket_counts([{"v": "n/a"}, {"v": None}, {"v": 1}], "v", BUCKETS)
        assert points[-1] == SeriesPoint(OTHER, 2.0)

    def test_non_finite_goes_to_default(self):
        points = bucket_counts([{"v": float("nan")}, {"v": float("inf")}, {"v": "NaN"}],
                               "v", BUCKETS)
        assert [p.value for p in points] == [0.0, 0.0, 0.0, 3.0]

    def test_no_overflow_point_when_nothing_overflows(self):
        points = bucket_counts([{"v": 1}], "v", BUCKETS)
        assert OTHER not in _names(points)

    def test_empty_input_keeps_buckets(self):
        assert [p.value for p in bucket_counts([], "v", BUCKETS)] == [0.0, 0.0, 0.0]


# ── Server payloads and resolution ────────────────────────────────────────────

class TestSeriesFromPayload:
    def test_name_value(self):
        assert series_from_payload([{"name": "VC", "value": 3}]) == [SeriesPoint("VC", 3.0)]

    def test_country_and_count_fields(self):
        points = series_from_payload([{"country": "US", "count": "12"}])
        assert points == [SeriesPoint("US", 12.0)]

    def test_not_a_list_raises(self):
        with pytest.raises(ValueError):
            series_from_payload({"name": "x"})

    def test_entry_without_name_raises(self):
        with pytest.raises(ValueError):
            series_from_payload([{"value": 1}])


class TestResolveSeries:
    SPEC = ChartSpec("locations", key="location")

    def test_server_series_wins(self):
        server = {"locations": [SeriesPoint("London", 120.0)]}
        result = resolve_series(self.SPEC, server, [{"location": "Paris"}])
        assert result.source == "server"
        assert result.points == (SeriesPoint("London", 120.0),)

    def test_client_fallback(self):
        result = resolve_series(self.SPEC, {"types": []}, [{"location": "Paris"}])
        assert result.source == "client"
        assert result.points == (SeriesPoint("Paris", 1.0),)

    def test_empty_stays_empty_without_demo(self):
        result = resolve_series(self.SPEC, None, [])
        assert result.is_empty
        assert result.source == "client"

    def test_demo_only_on_request(self):
        result = resolve_series(self.SPEC, None, [], demo=True)
        assert result.source == "demo"
        assert result.points == DEMO_SERIES

    def test_demo_not_used_when_data_exists(self):
        result = resolve_series(self.SPEC, None, [{"location": "Paris"}], demo=True)
        assert result.source == "client"

    def test_bucket_chart_spec(self):
        spec = ChartSpec("ranges", key="v", buckets=BUCKETS)
        result = resolve_series(spec, None, [{"v": "10"}])
        assert _names(result.points) == ["< $5M", "$5-50M", "$50M+"]

    def test_chart_spec_custom_parser(self):
        spec = ChartSpec("growth", key="pct", parse=parse_number, buckets=(
            Bucket("low", None, 50), Bucket("high", 50, None),
        ))
        points = spec.compute([{"pct": "45%"}, {"pct": "120%"}, {"pct": "7M"}])
        assert [(p.name, p.value) for p in points] == [("low", 1.0), ("high", 0.0), (OTHER, 1.0)]

    def test_to_dict(self):
        result = resolve_series(self.SPEC, None, [{"location": "Paris"}])
        assert result.to_dict() == {
            "name": "locations", "source": "client",
            "points": [{"name": "Paris", "value": 1.0}],
        }
