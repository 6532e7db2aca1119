"""
Backend API client.

Thin wrapper over a pooled ``requests`` session (``utils.http``) that turns
every failure into a ``FetchError``:

    non-2xx status             -> kind="http"
    connection error, timeout  -> kind="transport"
    non-JSON or wrong shape    -> kind="decode"

Endpoints are the backend's paths (``/api/events``); the base URL comes from
``ExplorerConfig``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import requests

from explorer.aggregation import SeriesPoint, series_from_payload
from explorer.errors import FetchError
from utils.config import ExplorerConfig
from utils.http import RetryStrategy, SessionManager, TimeoutManager
from utils.strings import safe_float

logger = logging.getLogger(__name__)


class ApiClient:
    """GETs JSON from the backend with adaptive timeouts."""

    def __init__(self, base_url: str | None = None,
                 session_manager: SessionManager | None = None,
                 timeouts: TimeoutManager | None = None,
                 config: ExplorerConfig | None = None):
        config = config or ExplorerConfig.from_env()
        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self.sessions = session_manager or SessionManager(
            retry_strategy=RetryStrategy(max_retries=config.max_retries)
        )
        self.timeouts = timeouts or TimeoutManager(base_timeout=config.timeout_seconds)

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        """Issue one GET and decode the JSON body.

        Raises:
            FetchError: for HTTP, transport and decode failures.
        """
        url = self.url_for(endpoint)
        timeout = self.timeouts.get_timeout(url)
        logger.debug("GET %s params=%s timeout=%.1fs", url, dict(params or {}), timeout)
        started = time.monotonic()
        try:
            response = self.sessions.session.get(url, params=dict(params or {}), timeout=timeout)
        except requests.RequestException as exc:
            raise FetchError(
                f"Request to {endpoint} failed: {exc}", kind="transport", endpoint=endpoint
            ) from exc
        self.timeouts.record_time(url, time.monotonic() - started)

        if not response.ok:
            raise FetchError(
                f"{endpoint} returned HTTP {response.status_code}",
                kind="http", status=response.status_code, endpoint=endpoint,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                f"{endpoint} returned a body that is not JSON", kind="decode",
                status=response.status_code, endpoint=endpoint,
            ) from exc

    # ── Typed helpers ─────────────────────────────────────────────────────────

    def fetch_records(self, endpoint: str, params: Mapping[str, str] | None = None) -> list[dict]:
        """Records as a list of objects. ``{"items": [...]}`` and
        ``{"data": [...]}`` envelopes are unwrapped."""
        payload = self.get_json(endpoint, params)
        if isinstance(payload, Mapping):
            for envelope in ("items", "data"):
                if isinstance(payload.get(envelope), list):
                    payload = payload[envelope]
                    break
        if not isinstance(payload, list) or not all(isinstance(r, Mapping) for r in payload):
            raise FetchError(
                f"{endpoint} did not return a list of records", kind="decode", endpoint=endpoint
            )
        return [dict(r) for r in payload]

    def fetch_count(self, endpoint: str, params: Mapping[str, str] | None = None) -> int:
        payload = self.get_json(endpoint, params)
        count = payload.get("count") if isinstance(payload, Mapping) else None
        # bool is an int subclass; a true/false count is a shape error
        if isinstance(count, bool) or not isinstance(count, (int, str)):
            raise FetchError(f"{endpoint} did not return a count", kind="decode", endpoint=endpoint)
        try:
            return int(count)
        except ValueError:
            raise FetchError(
                f"{endpoint} returned a non-integer count {count!r}", kind="decode", endpoint=endpoint
            ) from None

    def fetch_analytics(self, endpoint: str,
                        params: Mapping[str, str] | None = None) -> dict[str, list[SeriesPoint]]:
        """Named server series. Non-list members (totals, labels) are skipped."""
        payload = self.get_json(endpoint, params)
        if not isinstance(payload, Mapping):
            raise FetchError(f"{endpoint} did not return an object", kind="decode", endpoint=endpoint)
        series: dict[str, list[SeriesPoint]] = {}
        for name, raw in payload.items():
            if not isinstance(raw, list):
                continue
            try:
                series[name] = series_from_payload(raw)
            except ValueError as exc:
                raise FetchError(
                    f"{endpoint} series {name!r} is malformed: {exc}", kind="decode", endpoint=endpoint
                ) from exc
        return series

    def fetch_stats(self, endpoint: str,
                    params: Mapping[str, str] | None = None) -> dict[str, float]:
        """Headline numbers (``{"totalInvestors": 1200, ...}``).

        Numeric members, including numeric strings, are kept; anything else
        (labels, nested objects, booleans) is skipped.
        """
        payload = self.get_json(endpoint, params)
        if not isinstance(payload, Mapping):
            raise FetchError(f"{endpoint} did not return an object", kind="decode", endpoint=endpoint)
        stats: dict[str, float] = {}
        for name, raw in payload.items():
            if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
                continue
            amount = safe_float(raw, default=None)
            if amount is not None:
                stats[name] = amount
        return stats

    def close(self) -> None:
        self.sessions.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
