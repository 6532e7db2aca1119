"""
Explorer session -- the state and control flow of one mounted view.

A session owns the view's filter and pagination state and drives the fetch
coordinator. It enforces the state rules every view shares:

    - switching dataset or changing any filter value resets the page to 1
    - a tab switch resets the view's ``reset_on_switch`` filters
    - a non-blank search clears the view's ``clear_on_search`` filters
    - filters a dataset does not declare never reach its requests or keys

Usage::

    session = ExplorerSession("events", ApiClient())
    session.set_filter("month", "July")
    session.refresh()
    session.snapshot()

Nothing is persisted; dropping the session drops its state.
"""

from __future__ import annotations

import logging
from concurrent.futures import wait
from typing import Any, Mapping

from explorer.aggregation import SeriesResult, resolve_series
from explorer.catalog import DEFAULT_REGISTRY
from explorer.client import ApiClient
from explorer.datasets import DatasetDescriptor, DatasetRegistry, ExplorerView
from explorer.errors import UnknownDatasetError
from explorer.fetch import FetchCoordinator, FetchState, FetchStatus, IDLE
from explorer.filters import FilterState, PaginationState
from explorer.options import DropdownOptionCache
from explorer.query import (
    QueryKey,
    build_aux_key,
    build_chart_records_key,
    build_query_key,
    encode_chart_records_params,
    encode_filter_params,
    encode_params,
)
from explorer.records import parse_records
from utils.strings import is_blank

logger = logging.getLogger(__name__)

RECORDS = "records"
COUNT = "count"
ANALYTICS = "analytics"
OPTIONS = "options"
CHART_RECORDS = "chart_records"
STATS = "stats"

SLOTS = (RECORDS, COUNT, ANALYTICS, OPTIONS, CHART_RECORDS, STATS)


class ExplorerSession:
    """Filter/pagination state plus fetch lanes for one view."""

    def __init__(self, view: ExplorerView | str, client: ApiClient,
                 registry: DatasetRegistry = DEFAULT_REGISTRY,
                 coordinator: FetchCoordinator | None = None,
                 options: DropdownOptionCache | None = None,
                 dataset_id: str | None = None,
                 page_size: int | None = None):
        self.registry = registry
        self.view = registry.view(view) if isinstance(view, str) else view
        self.client = client
        self.coordinator = coordinator or FetchCoordinator()
        self.options = options or DropdownOptionCache(client, registry)

        dataset_id = dataset_id or self.view.default_dataset
        if dataset_id not in self.view.dataset_ids:
            raise UnknownDatasetError(dataset_id)
        self._dataset = registry.get(dataset_id)
        self._filters = FilterState(self.view.default_filters)
        self._pagination = PaginationState(page=1, limit=page_size or self.view.page_size)

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def dataset(self) -> DatasetDescriptor:
        return self._dataset

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def pagination(self) -> PaginationState:
        return self._pagination

    def select_dataset(self, dataset_id: str) -> DatasetDescriptor:
        """Switch tab. Unknown ids (or ids of another view) raise
        ``UnknownDatasetError``; re-selecting the active tab changes nothing."""
        if dataset_id not in self.view.dataset_ids:
            raise UnknownDatasetError(dataset_id)
        if dataset_id == self._dataset.id:
            return self._dataset
        logger.debug("Switching %s from %s to %s", self.view.id, self._dataset.id, dataset_id)
        self._dataset = self.registry.get(dataset_id)
        self._filters = self._filters.reset(*self.view.reset_on_switch)
        self._pagination = self._pagination.reset()
        return self._dataset

    def set_filter(self, key: str, value: str) -> FilterState:
        """Set one filter. The page resets to 1 only if the state changed."""
        updated = self._filters.set(key, value)
        if key == self.view.search_key and not is_blank(value):
            updated = updated.reset(*self.view.clear_on_search)
        return self._replace(updated)

    def replace_filters(self, values: Mapping[str, str]) -> FilterState:
        """Apply a whole filter selection at once, on top of the view defaults.

        Used where the selection arrives in one piece (a query string); the
        search-clears rule does not apply because the caller chose every value.
        """
        return self._replace(FilterState(self.view.default_filters).update(values))

    def reset_filters(self) -> FilterState:
        return self._replace(FilterState(self.view.default_filters))

    def _replace(self, updated: FilterState) -> FilterState:
        if updated != self._filters:
            self._pagination = self._pagination.reset()
        self._filters = updated
        return updated

    def go_to_page(self, page: int) -> PaginationState:
        self._pagination = self._pagination.go_to(page)
        return self._pagination

    def next_page(self) -> PaginationState:
        self._pagination = self._pagination.next()
        return self._pagination

    def previous_page(self) -> PaginationState:
        self._pagination = self._pagination.previous()
        return self._pagination

    # ── Keys and parameters ───────────────────────────────────────────────────

    def record_key(self) -> QueryKey:
        return build_query_key(self._dataset, self._pagination.page, self._filters)

    def count_key(self) -> QueryKey:
        return build_aux_key(self._dataset, self._dataset.count_endpoint, self._filters)

    def _analytics_keys(self) -> tuple[str, ...] | None:
        return None if self._dataset.analytics_filtered else ()

    def analytics_key(self) -> QueryKey | None:
        if not self._dataset.analytics_endpoint:
            return None
        return build_aux_key(self._dataset, self._dataset.analytics_endpoint, self._filters,
                             self._analytics_keys())

    def chart_records_key(self) -> QueryKey | None:
        return build_chart_records_key(self._dataset, self._filters)

    def stats_key(self) -> QueryKey | None:
        # Shared by every tab pointing at the same endpoint
        if not self._dataset.stats_endpoint:
            return None
        return (STATS, self._dataset.stats_endpoint)

    def options_key(self) -> QueryKey:
        # No filter values: options never depend on the selection
        return (OPTIONS, self._dataset.id)

    def record_params(self) -> dict[str, str]:
        return encode_params(self._filters, self._pagination, self._dataset)

    def count_params(self) -> dict[str, str]:
        return encode_filter_params(self._filters, self._dataset)

    def analytics_params(self) -> dict[str, str]:
        return encode_filter_params(self._filters, self._dataset, self._analytics_keys())

    def chart_records_params(self) -> dict[str, str]:
        return encode_chart_records_params(self._filters, self._dataset)

    # ── Loaders ───────────────────────────────────────────────────────────────

    def _records_loader(self):
        dataset, params = self._dataset, self.record_params()
        return lambda: parse_records(
            dataset.record_type, self.client.fetch_records(dataset.record_endpoint, params)
        )

    def _count_loader(self):
        dataset, params = self._dataset, self.count_params()
        return lambda: self.client.fetch_count(dataset.count_endpoint, params)

    def _analytics_loader(self):
        dataset, params = self._dataset, self.analytics_params()
        return lambda: self.client.fetch_analytics(dataset.analytics_endpoint, params)

    def _options_loader(self):
        dataset_id = self._dataset.id
        return lambda: self.options.fetch_options(dataset_id)

    def _chart_records_loader(self):
        dataset, params = self._dataset, self.chart_records_params()
        return lambda: parse_records(
            dataset.record_type, self.client.fetch_records(dataset.record_endpoint, params)
        )

    def _stats_loader(self):
        endpoint = self._dataset.stats_endpoint
        return lambda: self.client.fetch_stats(endpoint)

    def load_records(self) -> FetchState:
        return self.coordinator.fetch(RECORDS, self.record_key(), self._records_loader())

    def load_count(self) -> FetchState:
        return self.coordinator.fetch(COUNT, self.count_key(), self._count_loader())

    def load_analytics(self) -> FetchState:
        """Server series for the current filters; idle when the dataset has
        no analytics endpoint."""
        key = self.analytics_key()
        if key is None:
            return IDLE
        return self.coordinator.fetch(ANALYTICS, key, self._analytics_loader())

    def load_options(self) -> FetchState:
        return self.coordinator.fetch(OPTIONS, self.options_key(), self._options_loader())

    def load_chart_records(self) -> FetchState:
        """Wide record set behind the client-side charts; idle when the
        dataset declares none."""
        key = self.chart_records_key()
        if key is None:
            return IDLE
        return self.coordinator.fetch(CHART_RECORDS, key, self._chart_records_loader())

    def load_stats(self) -> FetchState:
        """Filter-independent headline numbers; idle without a stats endpoint."""
        key = self.stats_key()
        if key is None:
            return IDLE
        return self.coordinator.fetch(STATS, key, self._stats_loader())

    def _lanes(self) -> list[tuple[str, QueryKey, Any]]:
        lanes = [
            (RECORDS, self.record_key(), self._records_loader()),
            (COUNT, self.count_key(), self._count_loader()),
            (OPTIONS, self.options_key(), self._options_loader()),
        ]
        analytics_key = self.analytics_key()
        if analytics_key is not None:
            lanes.append((ANALYTICS, analytics_key, self._analytics_loader()))
        chart_key = self.chart_records_key()
        if chart_key is not None:
            lanes.append((CHART_RECORDS, chart_key, self._chart_records_loader()))
        stats_key = self.stats_key()
        if stats_key is not None:
            lanes.append((STATS, stats_key, self._stats_loader()))
        return lanes

    def load(self, parallel: bool = False) -> dict[str, FetchState]:
        """Load every lane for the current state, reusing cached results."""
        lanes = self._lanes()
        if parallel:
            futures = [self.coordinator.submit(slot, key, loader) for slot, key, loader in lanes]
            wait(futures)
        else:
            for slot, key, loader in lanes:
                self.coordinator.fetch(slot, key, loader)
        return {slot: self.slot_state(slot) for slot, _, _ in lanes}

    def refresh(self, parallel: bool = False) -> dict[str, FetchState]:
        """Manual refresh: drop cached results for the current state and refetch."""
        for _, key, _ in self._lanes():
            self.coordinator.invalidate(key)
        self.options.invalidate(self._dataset.id)
        return self.load(parallel=parallel)

    # ── Results ───────────────────────────────────────────────────────────────

    def _expected_key(self, slot: str) -> QueryKey | None:
        return {
            RECORDS: self.record_key,
            COUNT: self.count_key,
            ANALYTICS: self.analytics_key,
            OPTIONS: self.options_key,
            CHART_RECORDS: self.chart_records_key,
            STATS: self.stats_key,
        }[slot]()

    def slot_state(self, slot: str) -> FetchState:
        """State of *slot* for the current filters and page.

        A lane still holding the result of an earlier state reads as idle, so
        callers never show data for a key they did not ask for.
        """
        state = self.coordinator.state(slot)
        if state.key is None or state.key != self._expected_key(slot):
            return IDLE
        return state

    def _data(self, slot: str) -> Any:
        state = self.slot_state(slot)
        return state.data if state.status is FetchStatus.SUCCESS else None

    def records(self) -> list:
        return self._data(RECORDS) or []

    def total(self) -> int | None:
        return self._data(COUNT)

    def total_pages(self) -> int | None:
        total = self.total()
        return None if total is None else self._pagination.page_count(total)

    def has_next(self) -> bool:
        pages = self.total_pages()
        return pages is not None and self._pagination.page < pages

    def option_lists(self) -> dict:
        return self._data(OPTIONS) or {}

    def stats(self) -> dict[str, float]:
        return self._data(STATS) or {}

    def chart_source_records(self) -> list:
        """Records the client-side charts aggregate: the wide chart set when
        the dataset declares one and it has loaded, else the current page."""
        wide = self._data(CHART_RECORDS)
        return wide if wide is not None else self.records()

    def series(self, chart_name: str, demo: bool = False) -> SeriesResult:
        """Chart series for *chart_name*: the server's when the analytics lane
        holds one, otherwise computed from ``chart_source_records()``."""
        spec = self._dataset.chart(chart_name)
        return resolve_series(spec, self._data(ANALYTICS), self.chart_source_records(),
                              demo=demo)

    def all_series(self, demo: bool = False) -> dict[str, SeriesResult]:
        return {spec.name: self.series(spec.name, demo=demo) for spec in self._dataset.charts}

    def snapshot(self, demo: bool = False) -> dict:
        """Plain-data view of the session for a presentation layer."""
        total = self.total()
        first, last = self._pagination.window(total or 0)
        return {
            "view": self.view.id,
            "dataset": self._dataset.id,
            "filters": self._filters.as_dict(),
            "page": self._pagination.page,
            "limit": self._pagination.limit,
            "offset": self._pagination.offset,
            "total": total,
            "total_pages": self.total_pages(),
            "has_next": self.has_next(),
            "showing": {"first": first, "last": last},
            "slots": {
                slot: self.slot_state(slot).to_dict()
                for slot in SLOTS
            },
            "stats": self.stats(),
            "records": [r.to_dict() for r in self.records()],
            "series": {name: s.to_dict() for name, s in self.all_series(demo=demo).items()},
            "options": {
                key: [entry.to_dict() for entry in entries]
                for key, entries in self.option_lists().items()
            },
        }
