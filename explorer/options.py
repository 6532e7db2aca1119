"""
Dropdown option cache.

Filter menus are populated from the *unfiltered* universe of values, so
picking a location never shrinks the location menu itself. Option endpoints
are therefore always fetched without parameters, once per dataset per
revalidation window (an hour by default), independent of any filter state
and of the record fetch.

Accepted payloads for one option source:
    ["Berlin", "Paris"]                         list of names
    [{"name": "Berlin", "value": 12}, ...]      named entries (value or count)
    {"types": ["Conference", ...]}              object with one list member
    {"locations": [...], "types": [...]}        object; OptionSource.field picks
    [{"location": "Berlin", ...}, ...]          full records; item_field picks
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from explorer.client import ApiClient
from explorer.datasets import DatasetRegistry, OptionSource
from explorer.errors import FetchError
from utils.cache import TTLCache
from utils.strings import is_placeholder, normalize_whitespace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionEntry:
    name: str
    count: int | None = None

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}


def _entry(item: Any, item_field: str | None) -> OptionEntry | None:
    if isinstance(item, Mapping):
        raw_name = item.get(item_field) if item_field else None
        if raw_name is None:
            raw_name = item.get("name")
        raw_count = item.get("value", item.get("count"))
    else:
        raw_name, raw_count = item, None
    if is_placeholder(raw_name):
        return None
    count = None
    if raw_count is not None and not isinstance(raw_count, bool):
        try:
            count = int(float(raw_count))
        except (TypeError, ValueError):
            count = None
    return OptionEntry(normalize_whitespace(str(raw_name)), count)


def decode_options(payload: Any, source: OptionSource) -> list[OptionEntry]:
    """Turn one option payload into entries: blanks dropped, duplicates
    collapsed onto their first occurrence, order preserved.

    Raises:
        ValueError: if the payload has none of the accepted shapes.
    """
    items = payload
    if isinstance(payload, Mapping):
        if source.field is not None:
            items = payload.get(source.field)
        else:
            lists = [v for v in payload.values() if isinstance(v, list)]
            items = lists[0] if len(lists) == 1 else None
    if not isinstance(items, list):
        raise ValueError(f"unexpected option payload from {source.endpoint}")

    entries: list[OptionEntry] = []
    seen: set[str] = set()
    for item in items:
        entry = _entry(item, source.item_field)
        if entry is None or entry.name in seen:
            continue
        seen.add(entry.name)
        entries.append(entry)
    return entries


class DropdownOptionCache:
    """Per-dataset option lists with coarse revalidation."""

    def __init__(self, client: ApiClient, registry: DatasetRegistry,
                 ttl_seconds: float = 3600, cache: TTLCache | None = None):
        self.client = client
        self.registry = registry
        self._cache = cache if cache is not None else TTLCache(maxsize=64, ttl_seconds=ttl_seconds)

    def fetch_options(self, dataset_id: str) -> dict[str, list[OptionEntry]]:
        """All option lists of *dataset_id*, keyed by filter key.

        Several filter keys may share one endpoint (investor analytics carries
        both locations and types); each endpoint is requested once.

        Raises:
            UnknownDatasetError: unknown dataset id.
            FetchError: an option endpoint failed; nothing is cached.
        """
        descriptor = self.registry.get(dataset_id)
        return self._cache.get_or_load(dataset_id, lambda: self._load(descriptor.id))

    def options_for(self, dataset_id: str, filter_key: str) -> list[OptionEntry]:
        return self.fetch_options(dataset_id).get(filter_key, [])

    def invalidate(self, dataset_id: str | None = None) -> None:
        if dataset_id is None:
            self._cache.clear()
        else:
            self._cache.delete(dataset_id)

    def _load(self, dataset_id: str) -> dict[str, list[OptionEntry]]:
        descriptor = self.registry.get(dataset_id)
        payloads: dict[str, Any] = {}
        options: dict[str, list[OptionEntry]] = {}
        for filter_key, source in descriptor.option_sources.items():
            if source.endpoint is None:
                options[filter_key] = decode_options(list(source.values), source)
                continue
            if source.endpoint not in payloads:
                # Deliberately no params: options reflect the unfiltered universe
                payloads[source.endpoint] = self.client.get_json(source.endpoint)
            try:
                options[filter_key] = decode_options(payloads[source.endpoint], source)
            except ValueError as exc:
                raise FetchError(str(exc), kind="decode", endpoint=source.endpoint) from exc
        logger.info("Loaded dropdown options for %s: %s", dataset_id,
                    {k: len(v) for k, v in options.items()})
        return options
