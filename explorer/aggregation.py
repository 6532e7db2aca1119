"""
Aggregation engine -- chart-ready series from raw records.

One engine, parameterised by key and value rules, replaces the per-chart
reducers a dashboard tends to grow. It is the fallback path: when the backend
supplies a precomputed series for the current filter set, that series is used
verbatim (client-side aggregation usually sees only the current page and
under-counts).

Usage::

    aggregate(records, key="country", top_n=10)
    aggregate(records, key="country", value="research_quality_score")
    bucket_counts(records, "sweet_spot", SWEET_SPOT_BUCKETS)

Rules:
    - missing, blank, "null" and "undefined" keys land in the "Other" bucket
    - groups sort by value descending, ties by name
    - with ``top_n`` the output never exceeds N points; the tail is folded
      into "Other" so the total is preserved
    - empty input gives an empty series; demo data is opt-in only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from utils.strings import is_placeholder, normalize_whitespace, parse_money, safe_float

logger = logging.getLogger(__name__)

OTHER = "Other"

Rule = Union[str, Callable[[Any], Any]]


@dataclass(frozen=True)
class SeriesPoint:
    name: str
    value: float

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class Bucket:
    """Half-open range ``[lower, upper)``; ``None`` leaves a side open."""

    label: str
    lower: float | None = None
    upper: float | None = None

    def contains(self, amount: float) -> bool:
        if self.lower is not None and amount < self.lower:
            return False
        if self.upper is not None and amount >= self.upper:
            return False
        return True


# ── Extraction helpers ────────────────────────────────────────────────────────


def extract(record: Any, rule: Rule) -> Any:
    """Apply a key/value rule to one record (dict or attribute object)."""
    if callable(rule):
        return rule(record)
    if isinstance(record, Mapping):
        return record.get(rule)
    return getattr(record, rule, None)


def normalize_key(raw: Any) -> str:
    """Group name for a raw key; placeholders become ``"Other"``.

    Example:
        normalize_key("  Berlin ") -> "Berlin"
        normalize_key("undefined") -> "Other"
    """
    if is_placeholder(raw):
        return OTHER
    if isinstance(raw, str):
        return normalize_whitespace(raw)
    return str(raw)


def _sorted(totals: Mapping[str, float]) -> list[SeriesPoint]:
    return [
        SeriesPoint(name, value)
        for name, value in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    ]


# ── Engine ────────────────────────────────────────────────────────────────────


def aggregate(records: Iterable[Any], key: Rule, value: Rule | None = None,
              top_n: int | None = None) -> list[SeriesPoint]:
    """Group *records* by *key* and sum *value* per group.

    Args:
        records: Any iterable of dicts or record models.
        key: Field name or callable producing the group name.
        value: Field name or callable producing the measure. ``None`` counts
            one per record. Non-numeric measures count as 0.
        top_n: Maximum number of points. When there are more groups, the
            first N-1 named groups are kept and everything else (including an
            existing "Other" group) is folded into "Other".

    Returns:
        Points sorted descending by value (ties by name).
    """
    if top_n is not None and top_n < 1:
        raise ValueError(f"top_n must be >= 1, got {top_n}")

    totals: dict[str, float] = {}
    for record in records:
        name = normalize_key(extract(record, key))
        amount = 1.0 if value is None else safe_float(extract(record, value))
        totals[name] = totals.get(name, 0.0) + amount

    points = _sorted(totals)
    if top_n is None or len(points) <= top_n:
        return points

    kept = [p for p in points if p.name != OTHER][:top_n - 1]
    kept_names = {p.name for p in kept}
    folded = sum(p.value for p in points if p.name not in kept_names)
    merged = {p.name: p.value for p in kept}
    merged[OTHER] = folded
    return _sorted(merged)


def bucket_counts(records: Iterable[Any], value: Rule, buckets: Sequence[Bucket],
                  default: str = OTHER,
                  parse: Callable[[Any], float | None] = parse_money) -> list[SeriesPoint]:
    """Count records into declared ranges.

    Points come back in declared bucket order (not sorted by size), each
    declared bucket present even at zero. Values that cannot be parsed or
    that fall outside every range are counted under *default*, which is
    appended only when it is not itself a declared bucket and is non-empty.

    Example:
        bucket_counts(rows, "funding", [Bucket("< $1M", None, 1),
                                        Bucket("$1M+", 1, None)])
    """
    counts = {bucket.label: 0.0 for bucket in buckets}
    overflow = 0.0
    for record in records:
        amount = parse(extract(record, value))
        target = None
        if amount is not None:
            target = next((b.label for b in buckets if b.contains(amount)), None)
        if target is None:
            if default in counts:
                counts[default] += 1
            else:
                overflow += 1
        else:
            counts[target] += 1

    points = [SeriesPoint(label, total) for label, total in counts.items()]
    if overflow:
        points.append(SeriesPoint(default, overflow))
    return points


# ── Chart configuration ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChartSpec:
    """One chart of a dataset.

    ``name`` doubles as the field the analytics endpoint uses for the
    precomputed version of this series. With ``buckets`` the chart counts
    ``key`` values into ranges instead of grouping by them, reading each
    value with ``parse`` (money in millions unless told otherwise).
    """

    name: str
    key: Rule
    value: Rule | None = None
    top_n: int | None = 10
    buckets: tuple[Bucket, ...] | None = None
    default_bucket: str = OTHER
    parse: Callable[[Any], float | None] = parse_money
    title: str = ""

    def compute(self, records: Iterable[Any]) -> list[SeriesPoint]:
        if self.buckets:
            return bucket_counts(records, self.key, self.buckets, self.default_bucket,
                                 parse=self.parse)
        return aggregate(records, self.key, self.value, self.top_n)


@dataclass(frozen=True)
class SeriesResult:
    """A resolved series and where it came from: server, client or demo."""

    name: str
    points: tuple[SeriesPoint, ...]
    source: str

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "source": self.source,
            "points": [p.to_dict() for p in self.points],
        }


# Shown only when a caller explicitly asks for demo data; never substituted
# silently for an empty series.
DEMO_SERIES: tuple[SeriesPoint, ...] = (
    SeriesPoint("Demo A", 40.0),
    SeriesPoint("Demo B", 30.0),
    SeriesPoint("Demo C", 20.0),
    SeriesPoint("Demo D", 10.0),
)


_NAME_FIELDS = ("name", "country", "label", "type", "location")
_VALUE_FIELDS = ("value", "count", "total")


def series_from_payload(raw: Any) -> list[SeriesPoint]:
    """Decode one server series (a list of ``{name, value}`` objects).

    A few endpoints label points by ``country`` or carry ``count`` instead of
    ``value``; both are accepted.

    Raises:
        ValueError: if *raw* is not a list of objects with a name.
    """
    if not isinstance(raw, list):
        raise ValueError(f"series must be a list, got {type(raw).__name__}")
    points = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValueError(f"series entries must be objects, got {item!r}")
        name = next((item[f] for f in _NAME_FIELDS if item.get(f) is not None), None)
        if name is None:
            raise ValueError(f"series entry has no name: {item!r}")
        amount = next((item[f] for f in _VALUE_FIELDS if item.get(f) is not None), 0)
        points.append(SeriesPoint(str(name), safe_float(amount)))
    return points


def resolve_series(spec: ChartSpec, analytics: Mapping[str, Sequence[SeriesPoint]] | None,
                   records: Iterable[Any], demo: bool = False) -> SeriesResult:
    """Pick the series for *spec*.

    A precomputed series in *analytics* wins and is used as-is; otherwise the
    engine runs over *records*. An empty result stays empty unless *demo* is
    set, in which case ``DEMO_SERIES`` is returned with ``source="demo"``.
    """
    if analytics is not None and analytics.get(spec.name) is not None:
        points = tuple(analytics[spec.name])
        source = "server"
    else:
        points = tuple(spec.compute(records))
        source = "client"

    if not points and demo:
        logger.info("Series %s is empty; substituting demo data", spec.name)
        return SeriesResult(spec.name, DEMO_SERIES, "demo")
    return SeriesResult(spec.name, points, source)
