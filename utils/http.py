"""HTTP transport utilities for the explorer.

Provides reusable pieces for:
- HTTP requests with an optional retry policy
- Adaptive timeout management
- Connection pooling and session management

Retry policy lives here, in the transport, and nowhere else: the explorer
core treats a failed fetch as failed.
"""

from typing import Optional, Dict, List
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry


DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "market-intel-explorer/1.0",
}


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 0, backoff_factor: float = 0.5,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 0, the
                         explorer surfaces failures instead of retrying)
            backoff_factor: Exponential backoff multiplier (default: 0.5)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        ``raise_on_status`` is off so an exhausted retry hands the final
        response back to the caller, which maps it to an HTTP failure.
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 10, pool_maxsize: int = 20,
                 headers: Optional[Dict[str, str]] = None):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: no retries)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool; records,
                          count, analytics and options fetches for one view
                          run side by side
            headers: Extra default headers merged over DEFAULT_HEADERS
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the pooled HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.headers)

            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class TimeoutManager:
    """Manages adaptive timeouts based on response history.

    The backend publishes no timeout contract, so each host starts at
    ``base_timeout`` and moves toward the observed 95th percentile.
    """

    def __init__(self, base_timeout: float = 30, min_timeout: float = 5,
                 max_timeout: float = 120, history_size: int = 20):
        """Initialize timeout manager.

        Args:
            base_timeout: Timeout in seconds for hosts with little history
            min_timeout: Minimum timeout in seconds
            max_timeout: Maximum timeout in seconds
            history_size: Number of response times to track per host
        """
        self.base_timeout = base_timeout
        self.min_timeout = min_timeout
        self.max_timeout = max_timeout
        self.history_size = history_size
        self.response_times: Dict[str, List[float]] = {}

    def _get_domain(self, url: str) -> str:
        return urlparse(url).netloc

    def get_timeout(self, url: str) -> float:
        """Get adaptive timeout for URL based on response history.

        Uses 95th percentile of past response times + 50% buffer.
        """
        times = self.response_times.get(self._get_domain(url))
        if not times or len(times) < 3:
            return self.base_timeout

        sorted_times = sorted(times)
        idx = min(int(len(sorted_times) * 0.95), len(sorted_times) - 1)
        adaptive = sorted_times[idx] * 1.5
        return min(max(adaptive, self.min_timeout), self.max_timeout)

    def record_time(self, url: str, elapsed_seconds: float) -> None:
        """Record response time for a URL."""
        history = self.response_times.setdefault(self._get_domain(url), [])
        history.append(elapsed_seconds)

        # Keep only recent history
        if len(history) > self.history_size:
            history.pop(0)
