"""
Shared backend client and option cache for the explore service.

Provides ``get_client()`` / ``get_option_cache()`` dependencies. One pooled
``ApiClient`` serves every request; tests swap it out through
``app.dependency_overrides``.
"""

import threading

from explorer.catalog import DEFAULT_REGISTRY
from explorer.client import ApiClient
from explorer.datasets import DatasetRegistry
from explorer.options import DropdownOptionCache
from utils.config import ExplorerConfig

_cfg = ExplorerConfig.from_env()
_lock = threading.Lock()
_client: ApiClient | None = None
_option_cache: DropdownOptionCache | None = None


def get_config() -> ExplorerConfig:
    """Return the configuration the service was started with."""
    return _cfg


def get_registry() -> DatasetRegistry:
    return DEFAULT_REGISTRY


def get_client() -> ApiClient:
    """FastAPI dependency: the process-wide backend client (created lazily)."""
    global _client
    with _lock:
        if _client is None:
            _client = ApiClient(config=_cfg)
        return _client


def get_option_cache() -> DropdownOptionCache:
    """FastAPI dependency: process-wide dropdown options, revalidated hourly."""
    global _option_cache
    client = get_client()
    with _lock:
        if _option_cache is None:
            _option_cache = DropdownOptionCache(
                client, DEFAULT_REGISTRY, ttl_seconds=_cfg.options_ttl_seconds
            )
        return _option_cache


def close_client() -> None:
    """Release pooled connections (called on application shutdown)."""
    global _client, _option_cache
    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _option_cache = None
