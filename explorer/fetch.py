"""
Fetch coordinator -- loading state per slot with stale-response suppression.

A session has a handful of independent fetch lanes ("slots"): records, count,
analytics, options and a few more. Each slot shows the state of the most recently requested
key only:

    Idle -> Loading -> Success(data) | Failed(error)

and goes back to Loading whenever a different key is requested. Every request
gets a ticket; a response is applied only if its ticket is still the slot's
current one, so a slow response for page 1 can never replace the page 2 the
user already moved to.

Other rules:
    - requesting the key a slot is already loading reuses the in-flight ticket
    - successful results are cached by query key (TTL)
    - a failed key stays failed until the key changes or ``invalidate()``
    - no retries here; retry policy belongs to the transport

Usage::

    coordinator = FetchCoordinator()
    state = coordinator.fetch("records", key, lambda: client.fetch_records(...))
    future = coordinator.submit("count", count_key, load_count)
"""

from __future__ import annotations

import enum
import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from explorer.errors import FetchError
from utils.cache import TTLCache

logger = logging.getLogger(__name__)


class FetchStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState:
    """What one slot currently shows."""

    status: FetchStatus = FetchStatus.IDLE
    key: Hashable | None = None
    data: Any = None
    error: str | None = None
    error_kind: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is FetchStatus.LOADING

    @property
    def display(self) -> str:
        """``idle``, ``loading``, ``error``, ``empty`` or ``ready``.

        A successful fetch of zero rows is ``empty``, never ``error``.
        """
        if self.status is FetchStatus.IDLE:
            return "idle"
        if self.status is FetchStatus.LOADING:
            return "loading"
        if self.status is FetchStatus.FAILED:
            return "error"
        if self.data is None:
            return "empty"
        if hasattr(self.data, "__len__") and len(self.data) == 0:
            return "empty"
        return "ready"

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "display": self.display,
            "error": self.error,
            "error_kind": self.error_kind,
        }


IDLE = FetchState()


@dataclass(frozen=True)
class Ticket:
    """Identity of one issued request."""

    slot: str
    key: Hashable
    serial: int


class FetchCoordinator:
    """Tracks the fetch state of each slot of one explorer session."""

    def __init__(self, cache: TTLCache | None = None, max_workers: int = 4):
        self._cache = cache if cache is not None else TTLCache(maxsize=256, ttl_seconds=300)
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.RLock()
        self._serial = itertools.count(1)
        self._states: dict[str, FetchState] = {}
        self._current: dict[str, Ticket] = {}
        self._inflight: dict[Ticket, Future] = {}
        # Tickets with a loader running (from fetch or submit, not begin)
        self._driven: set[Ticket] = set()

    # ── state ─────────────────────────────────────────────────────────────

    def state(self, slot: str) -> FetchState:
        with self._lock:
            return self._states.get(slot, IDLE)

    def states(self) -> dict[str, FetchState]:
        with self._lock:
            return dict(self._states)

    def is_current(self, ticket: Ticket) -> bool:
        with self._lock:
            return self._current.get(ticket.slot) == ticket

    # ── transitions ───────────────────────────────────────────────────────

    def _start(self, slot: str, key: Hashable,
               drive: bool = True) -> tuple[Ticket | None, Future | None, bool]:
        """Returns ``(ticket, future, fresh)``; ticket is None when no request
        is needed (cached success, or a failure for this same key).

        With *drive* the caller runs the loader whenever *fresh* is true. A
        loading ticket from ``begin()`` has no loader behind it, so a driving
        caller takes it over instead of waiting on it.
        """
        with self._lock:
            state = self._states.get(slot, IDLE)
            current = self._current.get(slot)
            if current is not None and current.key == key and state.is_loading:
                future = self._inflight.get(current)
                if drive and current not in self._driven:
                    self._driven.add(current)
                    logger.debug("Slot %s: running loader for undriven request #%d",
                                 slot, current.serial)
                    return current, future, True
                return current, future, False

            if state.status is FetchStatus.FAILED and state.key == key:
                return None, None, False

            found, data = self._cache.lookup(key)
            if found:
                self._current.pop(slot, None)
                self._states[slot] = FetchState(FetchStatus.SUCCESS, key, data)
                return None, None, False

            ticket = Ticket(slot, key, next(self._serial))
            if current is not None:
                logger.debug("Slot %s: %s supersedes %s", slot, key, current.key)
            future: Future = Future()
            self._current[slot] = ticket
            self._inflight[ticket] = future
            if drive:
                self._driven.add(ticket)
            self._states[slot] = FetchState(FetchStatus.LOADING, key)
            logger.debug("Slot %s: issuing request #%d for %s", slot, ticket.serial, key)
            return ticket, future, True

    def begin(self, slot: str, key: Hashable) -> Ticket | None:
        """Mark *slot* as loading *key*.

        Returns the ticket to settle with :meth:`complete` / :meth:`fail`, the
        in-flight ticket when *key* is already loading, or ``None`` when the
        slot could be settled without a request.

        Until settled, a later :meth:`fetch` or :meth:`submit` of the same key
        runs its own loader under this ticket rather than waiting on it;
        whichever response lands first wins.
        """
        return self._start(slot, key, drive=False)[0]

    def complete(self, ticket: Ticket, data: Any) -> bool:
        """Apply a successful response. Returns False if it was stale."""
        with self._lock:
            future = self._inflight.pop(ticket, None)
            self._driven.discard(ticket)
            applied = self._current.get(ticket.slot) == ticket
            if applied:
                del self._current[ticket.slot]
                self._cache.set(ticket.key, data)
                self._states[ticket.slot] = FetchState(FetchStatus.SUCCESS, ticket.key, data)
            else:
                logger.info("Slot %s: discarding stale response #%d for %s",
                            ticket.slot, ticket.serial, ticket.key)
        if future is not None and not future.done():
            future.set_result(FetchState(FetchStatus.SUCCESS, ticket.key, data))
        return applied

    def fail(self, ticket: Ticket, error: Exception | str) -> bool:
        """Apply a failure. Returns False if it was stale."""
        message = str(error)
        kind = getattr(error, "kind", None)
        with self._lock:
            future = self._inflight.pop(ticket, None)
            self._driven.discard(ticket)
            applied = self._current.get(ticket.slot) == ticket
            if applied:
                del self._current[ticket.slot]
                self._states[ticket.slot] = FetchState(
                    FetchStatus.FAILED, ticket.key, error=message, error_kind=kind
                )
                logger.warning("Slot %s: fetch for %s failed: %s",
                               ticket.slot, ticket.key, message)
            else:
                logger.info("Slot %s: discarding stale failure #%d for %s",
                            ticket.slot, ticket.serial, ticket.key)
        if future is not None and not future.done():
            future.set_result(
                FetchState(FetchStatus.FAILED, ticket.key, error=message, error_kind=kind)
            )
        return applied

    # ── running loaders ───────────────────────────────────────────────────

    def _run(self, ticket: Ticket, loader: Callable[[], Any], reraise: bool) -> None:
        try:
            data = loader()
        except FetchError as exc:
            self.fail(ticket, exc)
            return
        except ValueError as exc:
            # Rows that fail record validation
            self.fail(ticket, FetchError(str(exc), kind="decode"))
            return
        except Exception as exc:
            self.fail(ticket, exc)
            if reraise:
                raise
            logger.exception("Slot %s: loader raised unexpectedly", ticket.slot)
            return
        self.complete(ticket, data)

    def fetch(self, slot: str, key: Hashable, loader: Callable[[], Any]) -> FetchState:
        """Synchronously load *key* into *slot* and return the slot's state.

        If another thread is already loading the same key, waits for it
        instead of issuing a second request.
        """
        ticket, future, fresh = self._start(slot, key)
        if ticket is not None:
            if fresh:
                self._run(ticket, loader, reraise=True)
            elif future is not None:
                wait([future])
        return self.state(slot)

    def submit(self, slot: str, key: Hashable, loader: Callable[[], Any]) -> Future:
        """Load *key* into *slot* on the worker pool.

        The returned future resolves to the ``FetchState`` produced for *key*
        (which may already be stale for the slot by then). Slots run
        concurrently with no ordering between them.
        """
        ticket, future, fresh = self._start(slot, key)
        if ticket is None:
            done: Future = Future()
            done.set_result(self.state(slot))
            return done
        if fresh:
            self._pool().submit(self._run, ticket, loader, False)
        return future

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="explorer-fetch"
                )
            return self._executor

    # ── refresh ───────────────────────────────────────────────────────────

    def invalidate(self, key: Hashable | None = None) -> None:
        """Forget cached results (all, or one key) so the next request refetches.

        Failed slots for the affected keys go back to idle; in-flight requests
        are left alone.
        """
        with self._lock:
            if key is None:
                self._cache.clear()
            else:
                self._cache.delete(key)
            for slot, state in list(self._states.items()):
                if state.is_loading:
                    continue
                if key is None or state.key == key:
                    self._states[slot] = IDLE

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
