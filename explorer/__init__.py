"""
Explorer package -- faceted dataset explorer core.

Re-exports key entry points so callers can do::

    from explorer import ExplorerSession, DEFAULT_REGISTRY, ApiClient
"""

from explorer.errors import ExplorerError, UnknownDatasetError, FetchError
from explorer.filters import FilterState, PaginationState
from explorer.datasets import ChartRecordsSource, DatasetDescriptor, ExplorerView, DatasetRegistry
from explorer.catalog import DEFAULT_REGISTRY, build_registry
from explorer.query import (
    QueryKey,
    build_query_key,
    build_key,
    build_aux_key,
    build_chart_records_key,
    encode_params,
    encode_filter_params,
    encode_chart_records_params,
    translate_month,
)
from explorer.aggregation import (
    OTHER,
    SeriesPoint,
    Bucket,
    ChartSpec,
    SeriesResult,
    aggregate,
    bucket_counts,
    resolve_series,
)
from explorer.client import ApiClient
from explorer.fetch import FetchCoordinator, FetchState, FetchStatus
from explorer.options import DropdownOptionCache, OptionEntry
from explorer.session import ExplorerSession

__all__ = [
    "ExplorerError",
    "UnknownDatasetError",
    "FetchError",
    "FilterState",
    "PaginationState",
    "ChartRecordsSource",
    "DatasetDescriptor",
    "ExplorerView",
    "DatasetRegistry",
    "DEFAULT_REGISTRY",
    "build_registry",
    "QueryKey",
    "build_query_key",
    "build_key",
    "build_aux_key",
    "build_chart_records_key",
    "encode_params",
    "encode_filter_params",
    "encode_chart_records_params",
    "translate_month",
    "OTHER",
    "SeriesPoint",
    "Bucket",
    "ChartSpec",
    "SeriesResult",
    "aggregate",
    "bucket_counts",
    "resolve_series",
    "ApiClient",
    "FetchCoordinator",
    "FetchState",
    "FetchStatus",
    "DropdownOptionCache",
    "OptionEntry",
    "ExplorerSession",
]
