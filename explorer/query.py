"""
Query keys and wire parameters derived from filter and pagination state.

Both functions look only at the dataset's relevant filter keys, in declared
order, so a filter that belongs to another tab can neither leak into a
request nor change a cache key.

Key shape::

    (record_endpoint, dataset_id, page, (value, value, ...))

Values in the key are the raw filter values (``"all"`` for unset) so two
states that differ only by an explicit ``"all"`` versus an absent key give the
same key. Wire parameters go through translation and fallback handling:

    encode_params(FilterState({"month": "July"}), PaginationState(1, 20), events)
    -> {"limit": "20", "page": "1", "offset": "0", "month": "07"}
"""

from __future__ import annotations

from typing import Iterable, Tuple

from explorer.datasets import DatasetDescriptor
from explorer.filters import FilterState, PaginationState
from utils.config import KnownValues

QueryKey = Tuple


def translate_month(value: str) -> str:
    """Month name -> two-digit month; anything else passes through unchanged.

    Example:
        translate_month("July") -> "07"
        translate_month("07") -> "07"
        translate_month("Juli") -> "Juli"
    """
    return KnownValues.get_month_number(value) or value


_TRANSLATORS = {
    "month_number": translate_month,
}


# ── Keys ──────────────────────────────────────────────────────────────────────


def build_key(dataset_id: str, page: int, filter_state: FilterState,
              relevant_keys: Iterable[str], record_endpoint: str = "") -> QueryKey:
    """Canonical cache key for one page of one dataset.

    Pure: equal inputs give equal, equally hashed tuples.
    """
    return (record_endpoint, dataset_id, int(page), filter_state.project(relevant_keys))


def build_query_key(dataset: DatasetDescriptor, page: int,
                    filters: FilterState) -> QueryKey:
    return build_key(dataset.id, page, filters,
                     dataset.relevant_filter_keys, dataset.record_endpoint)


def build_aux_key(dataset: DatasetDescriptor, endpoint: str, filters: FilterState,
                  keys: Iterable[str] | None = None) -> QueryKey:
    """Key for a count, analytics or chart-records request: no page.

    *keys* narrows the projection (``()`` for a request that ignores every
    filter); by default it is the dataset's relevant keys.
    """
    if keys is None:
        keys = dataset.relevant_filter_keys
    return (endpoint, dataset.id, filters.project(keys))


def build_chart_records_key(dataset: DatasetDescriptor, filters: FilterState) -> QueryKey | None:
    """Key for the wide chart fetch; ``None`` when the dataset declares none.

    Distinct from every page key of the same endpoint: it carries no page.
    """
    source = dataset.chart_records
    if source is None:
        return None
    return build_aux_key(dataset, dataset.record_endpoint, filters, source.filter_keys) + (
        "chart", source.limit,
    )


# ── Parameters ────────────────────────────────────────────────────────────────


def encode_filter_params(filters: FilterState, descriptor: DatasetDescriptor,
                         keys: Iterable[str] | None = None) -> dict[str, str]:
    """Filter parameters only, as used by count and analytics endpoints.

    A key is emitted only when its value constrains the request; an unset key
    with a declared fallback emits the fallback instead. *keys* restricts the
    encoding to a subset of the relevant keys (default: all). Never raises.
    """
    params: dict[str, str] = {}
    wanted = descriptor.relevant_filter_keys
    if keys is not None:
        subset = set(keys)
        wanted = tuple(k for k in wanted if k in subset)
    for key in wanted:
        value = filters.get(key)
        if KnownValues.is_sentinel(value):
            fallback = descriptor.fallback_values.get(key)
            if fallback is None:
                continue
            value = fallback
        translator = _TRANSLATORS.get(descriptor.translations.get(key, ""))
        if translator is not None:
            value = translator(value)
        params[key] = str(value)
    return params


def encode_params(filters: FilterState, pagination: PaginationState,
                  descriptor: DatasetDescriptor) -> dict[str, str]:
    """Full record-endpoint parameters: ``limit``, page/offset, then filters."""
    params: dict[str, str] = {"limit": str(pagination.limit)}
    if descriptor.pagination in ("page", "both"):
        params["page"] = str(pagination.page)
    if descriptor.pagination in ("offset", "both"):
        params["offset"] = str(pagination.offset)
    params.update(encode_filter_params(filters, descriptor))
    return params


def encode_chart_records_params(filters: FilterState,
                                descriptor: DatasetDescriptor) -> dict[str, str]:
    """Parameters of the wide chart fetch: ``limit`` then the source's filters.

    Example:
        encode_chart_records_params(FilterState({"year": "all"}), universities)
        -> {"limit": "1000", "year": "2024"}
    """
    source = descriptor.chart_records
    if source is None:
        raise ValueError(f"{descriptor.id} declares no chart records source")
    params: dict[str, str] = {"limit": str(source.limit)}
    params.update(encode_filter_params(filters, descriptor, source.filter_keys))
    return params
