"""
Tests for HTTP transport utilities — utils/http.py

Tests RetryStrategy, SessionManager and TimeoutManager without requiring
actual network calls.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.http import DEFAULT_HEADERS, RetryStrategy, SessionManager, TimeoutManager


# ── RetryStrategy tests ──────────────────────────────────────────────────────

class TestRetryStrategy:
    def test_defaults_do_not_retry(self):
        rs = RetryStrategy()
        assert rs.max_retries == 0
        assert rs.backoff_factor == 0.5
        assert 429 in rs.status_forcelist
        assert 503 in rs.status_forcelist

    def test_custom_params(self):
        rs = RetryStrategy(max_retries=2, backoff_factor=1.0,
                           status_forcelist=[500, 502])
        assert rs.max_retries == 2
        assert rs.status_forcelist == [500, 502]

    def test_get_retry_object(self):
        retry = RetryStrategy(max_retries=4, backoff_factor=3.0).get_retry_object()
        assert retry.total == 4
        assert retry.backoff_factor == 3.0

    def test_final_response_is_returned(self):
        """Exhausted retries hand the response back instead of raising."""
        assert RetryStrategy().get_retry_object().raise_on_status is False

    def test_only_idempotent_methods(self):
        allowed = RetryStrategy().get_retry_object().allowed_methods
        assert "GET" in allowed
        assert "POST" not in allowed


# ── SessionManager tests ─────────────────────────────────────────────────────

class TestSessionManager:
    def test_session_cached(self):
        """Accessing .session twice returns the same object."""
        sm = SessionManager()
        assert sm.session is sm.session
        sm.close()

    def test_default_headers(self):
        sm = SessionManager()
        assert sm.session.headers["Accept"] == "application/json"
        assert sm.session.headers["User-Agent"] == DEFAULT_HEADERS["User-Agent"]
        sm.close()

    def test_extra_headers_merged(self):
        sm = SessionManager(headers={"Authorization": "Bearer t"})
        assert sm.session.headers["Authorization"] == "Bearer t"
        assert sm.session.headers["Accept"] == "application/json"
        sm.close()

    def test_adapter_carries_retry_policy(self):
        sm = SessionManager(retry_strategy=RetryStrategy(max_retries=2))
        adapter = sm.session.get_adapter("https://backend.example/api/events")
        assert adapter.max_retries.total == 2
        sm.close()

    def test_close_idempotent(self):
        sm = SessionManager()
        sm.close()  # no session yet
        sm.close()  # still fine

    def test_context_manager(self):
        with SessionManager() as sm:
            assert sm.session is not None
        # After exit, session should be closed
        assert sm._session is None


# ── TimeoutManager tests ─────────────────────────────────────────────────────

class TestTimeoutManager:
    def test_defaults(self):
        tm = TimeoutManager()
        assert tm.base_timeout == 30
        assert tm.min_timeout == 5
        assert tm.max_timeout == 120

    def test_new_host_returns_base_timeout(self):
        tm = TimeoutManager(base_timeout=25)
        assert tm.get_timeout("https://backend.example/api/events") == 25

    def test_few_samples_returns_base(self):
        """With fewer than 3 data points, returns base_timeout."""
        tm = TimeoutManager(base_timeout=30)
        tm.record_time("https://backend.example/api/events", 5.0)
        tm.record_time("https://backend.example/api/events/count", 6.0)
        assert tm.get_timeout("https://backend.example/api/investors") == 30

    def test_adaptive_timeout_per_host(self):
        tm = TimeoutManager(base_timeout=30, min_timeout=5, max_timeout=120)
        for _ in range(9):
            tm.record_time("https://backend.example/api/events", 2.0)
        tm.record_time("https://backend.example/api/events", 10.0)
        # 95th percentile of [2 x 9, 10] is 10 -> * 1.5 = 15
        assert tm.get_timeout("https://backend.example/api/rankings") == 15
        assert tm.get_timeout("https://other.example/") == 30

    def test_respects_min_timeout(self):
        tm = TimeoutManager(min_timeout=10)
        for _ in range(5):
            tm.record_time("https://fast.example/x", 0.1)
        assert tm.get_timeout("https://fast.example/y") == 10

    def test_respects_max_timeout(self):
        tm = TimeoutManager(max_timeout=60)
        for _ in range(5):
            tm.record_time("https://slow.example/x", 100.0)
        assert tm.get_timeout("https://slow.example/y") == 60

    def test_history_trimmed(self):
        tm = TimeoutManager(history_size=3)
        for t in (1.0, 2.0, 3.0, 4.0):
            tm.record_time("https://backend.example/x", t)
        assert tm.response_times["backend.example"] == [2.0, 3.0, 4.0]
