"""
Dataset registry -- static description of every selectable tab.

A ``DatasetDescriptor`` says where a dataset's records, count and analytics
live, which filter keys its requests consume (in the order they go on the
wire), how it paginates, and which values need translating before they are
sent. An ``ExplorerView`` groups datasets that are shown as tabs of one page
and carries the view-level rules (defaults, resets on tab switch, keys a
search clears).

Descriptors are defined once at import time and never mutated; see
``explorer.catalog`` for the built-in set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

from explorer.aggregation import ChartSpec
from explorer.errors import UnknownDatasetError

PAGINATION_STYLES = ("page", "offset", "both")

# Translator names a descriptor may declare for a filter key
TRANSLATORS = ("month_number",)


@dataclass(frozen=True)
class OptionSource:
    """Where the unfiltered option list for one filter key comes from.

    ``field`` picks a named member out of an object payload (e.g. ``types``
    or ``locations``). ``item_field`` reads the option name from each element
    when the payload is a list of full records rather than of names. A source
    without an endpoint serves the fixed ``values`` (range menus, years).
    """

    endpoint: str | None = None
    field: str | None = None
    item_field: str | None = None
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChartRecordsSource:
    """A wide, page-independent record fetch that feeds client-side charts.

    Aggregating only the visible page under-counts, so a dataset without
    server analytics may declare one: the record endpoint is called with
    ``limit`` and only the listed filter keys (fallbacks apply), never with
    page or offset.
    """

    limit: int = 1000
    filter_keys: tuple[str, ...] = ()

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError(f"chart records limit must be > 0, got {self.limit}")
        object.__setattr__(self, "filter_keys", tuple(self.filter_keys))


def _freeze(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, eq=False)
class DatasetDescriptor:
    """Immutable description of one dataset ("tab")."""

    id: str
    label: str
    record_endpoint: str
    count_endpoint: str
    record_type: str
    relevant_filter_keys: tuple[str, ...] = ()
    analytics_endpoint: str | None = None
    # False when the analytics endpoint always describes the whole dataset
    analytics_filtered: bool = True
    stats_endpoint: str | None = None
    chart_records: ChartRecordsSource | None = None
    pagination: str = "both"
    translations: Mapping[str, str] = field(default_factory=dict)
    fallback_values: Mapping[str, str] = field(default_factory=dict)
    option_sources: Mapping[str, OptionSource] = field(default_factory=dict)
    charts: tuple[ChartSpec, ...] = ()

    def __post_init__(self):
        if self.pagination not in PAGINATION_STYLES:
            raise ValueError(
                f"{self.id}: pagination must be one of {PAGINATION_STYLES}, "
                f"got {self.pagination!r}"
            )
        keys = tuple(self.relevant_filter_keys)
        if len(set(keys)) != len(keys):
            raise ValueError(f"{self.id}: duplicate relevant filter keys {keys}")
        if self.chart_records is not None:
            stray = set(self.chart_records.filter_keys) - set(keys)
            if stray:
                raise ValueError(f"{self.id}: chart record keys {sorted(stray)} are not relevant keys")
        for key, translator in dict(self.translations).items():
            if translator not in TRANSLATORS:
                raise ValueError(f"{self.id}: unknown translator {translator!r} for {key!r}")
        object.__setattr__(self, "relevant_filter_keys", keys)
        object.__setattr__(self, "translations", _freeze(self.translations))
        object.__setattr__(self, "fallback_values", _freeze(self.fallback_values))
        object.__setattr__(self, "option_sources", _freeze(self.option_sources))
        object.__setattr__(self, "charts", tuple(self.charts))

    def chart(self, name: str) -> ChartSpec:
        for spec in self.charts:
            if spec.name == name:
                return spec
        raise KeyError(f"{self.id} has no chart named {name!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "record_endpoint": self.record_endpoint,
            "count_endpoint": self.count_endpoint,
            "analytics_endpoint": self.analytics_endpoint,
            "stats_endpoint": self.stats_endpoint,
            "record_type": self.record_type,
            "relevant_filter_keys": list(self.relevant_filter_keys),
            "pagination": self.pagination,
            "charts": [spec.name for spec in self.charts],
        }


@dataclass(frozen=True, eq=False)
class ExplorerView:
    """A page that shows several datasets as tabs."""

    id: str
    title: str
    dataset_ids: tuple[str, ...]
    default_dataset: str
    default_filters: Mapping[str, str] = field(default_factory=dict)
    page_size: int = 20
    reset_on_switch: tuple[str, ...] = ()
    clear_on_search: tuple[str, ...] = ()
    search_key: str = "search"

    def __post_init__(self):
        ids = tuple(self.dataset_ids)
        if self.default_dataset not in ids:
            raise ValueError(
                f"{self.id}: default dataset {self.default_dataset!r} is not one of {ids}"
            )
        if self.page_size <= 0:
            raise ValueError(f"{self.id}: page_size must be > 0")
        object.__setattr__(self, "dataset_ids", ids)
        object.__setattr__(self, "default_filters", _freeze(self.default_filters))
        object.__setattr__(self, "reset_on_switch", tuple(self.reset_on_switch))
        object.__setattr__(self, "clear_on_search", tuple(self.clear_on_search))


class DatasetRegistry:
    """Lookup table of descriptors and views, keyed by id."""

    def __init__(self, datasets: tuple[DatasetDescriptor, ...] = (),
                 views: tuple[ExplorerView, ...] = ()):
        self._datasets: dict[str, DatasetDescriptor] = {}
        self._views: dict[str, ExplorerView] = {}
        for descriptor in datasets:
            self.register(descriptor)
        for view in views:
            self.register_view(view)

    def register(self, descriptor: DatasetDescriptor) -> None:
        if descriptor.id in self._datasets:
            raise ValueError(f"Dataset {descriptor.id!r} is already registered")
        self._datasets[descriptor.id] = descriptor

    def register_view(self, view: ExplorerView) -> None:
        """Register a view; every dataset it names must already be known."""
        if view.id in self._views:
            raise ValueError(f"View {view.id!r} is already registered")
        for dataset_id in view.dataset_ids:
            self.get(dataset_id)
        self._views[view.id] = view

    def get(self, dataset_id: str) -> DatasetDescriptor:
        try:
            return self._datasets[dataset_id]
        except KeyError:
            raise UnknownDatasetError(dataset_id) from None

    def view(self, view_id: str) -> ExplorerView:
        try:
            return self._views[view_id]
        except KeyError:
            raise UnknownDatasetError(view_id) from None

    def view_for(self, dataset_id: str) -> ExplorerView:
        """First registered view that shows *dataset_id* as a tab."""
        self.get(dataset_id)
        for view in self._views.values():
            if dataset_id in view.dataset_ids:
                return view
        raise UnknownDatasetError(dataset_id)

    def datasets_for(self, view: ExplorerView) -> list[DatasetDescriptor]:
        return [self.get(dataset_id) for dataset_id in view.dataset_ids]

    def views(self) -> list[ExplorerView]:
        return list(self._views.values())

    def __contains__(self, dataset_id: object) -> bool:
        return dataset_id in self._datasets

    def __iter__(self) -> Iterator[DatasetDescriptor]:
        return iter(self._datasets.values())

    def __len__(self) -> int:
        return len(self._datasets)
