"""
Filter and pagination state for one explorer view.

Both types are immutable: every mutation returns a new instance so a caller
can compare the before and after states (the session uses this to decide
whether the page must go back to 1).

Usage::

    filters = FilterState({"search": "", "month": "all"})
    filters = filters.set("month", "July")
    filters.get("location")          # -> "all"

    page = PaginationState(page=3, limit=20)
    page.offset                      # -> 40
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from utils.config import ALL, KnownValues


class FilterState:
    """Mapping of filter key -> string value with ``"all"`` as the unset value.

    Absent keys read as ``"all"``. Keys that the active dataset does not use
    are kept so switching tabs back and forth preserves them; the encoder and
    the key builder simply never look at them.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values: dict[str, str] = dict(values or {})

    # ── access ────────────────────────────────────────────────────────────

    def get(self, key: str) -> str:
        """Return the value for *key*, or ``"all"`` when it was never set."""
        return self._values.get(key, ALL)

    def __getitem__(self, key: str) -> str:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def keys(self):
        return self._values.keys()

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    def project(self, keys: Iterable[str]) -> tuple[str, ...]:
        """Values for *keys* in the given order; unset keys read as ``"all"``."""
        return tuple(self.get(k) for k in keys)

    def active(self) -> dict[str, str]:
        """Only the keys that actually constrain a request."""
        return {
            k: v for k, v in self._values.items()
            if not KnownValues.is_sentinel(v)
        }

    # ── transitions ───────────────────────────────────────────────────────

    def set(self, key: str, value: str) -> FilterState:
        """Return a new state with *key* set to *value*.

        No domain validation happens here; select inputs constrain values.
        """
        values = dict(self._values)
        values[key] = value
        return FilterState(values)

    def update(self, changes: Mapping[str, str]) -> FilterState:
        values = dict(self._values)
        values.update(changes)
        return FilterState(values)

    def reset(self, *keys: str) -> FilterState:
        """Return a new state with *keys* back at ``"all"``."""
        values = dict(self._values)
        for key in keys:
            values[key] = ALL
        return FilterState(values)

    # ── value semantics ───────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterState):
            return NotImplemented
        return self._normalized() == other._normalized()

    def __hash__(self) -> int:
        return hash(frozenset(self._normalized().items()))

    def _normalized(self) -> dict[str, str]:
        # Explicit "all" and absence mean the same thing
        return {k: v for k, v in self._values.items() if v != ALL}

    def __repr__(self) -> str:
        return f"FilterState({self._values!r})"


@dataclass(frozen=True)
class PaginationState:
    """Page number and page size. ``offset`` is derived, never stored."""

    page: int = 1
    limit: int = 20

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.limit <= 0:
            raise ValueError(f"limit must be > 0, got {self.limit}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def go_to(self, page: int) -> PaginationState:
        """Move to *page*, clamped to 1. There is no upper bound here: a page
        past the end of the data is a valid request that returns no rows."""
        return PaginationState(page=max(1, int(page)), limit=self.limit)

    def reset(self) -> PaginationState:
        return PaginationState(page=1, limit=self.limit)

    def next(self) -> PaginationState:
        return self.go_to(self.page + 1)

    def previous(self) -> PaginationState:
        return self.go_to(self.page - 1)

    def page_count(self, total: int) -> int:
        """Number of pages needed for *total* rows (0 when there are none)."""
        if total <= 0:
            return 0
        return math.ceil(total / self.limit)

    def window(self, total: int) -> tuple[int, int]:
        """1-based ``(first, last)`` row numbers shown on this page.

        Returns ``(0, 0)`` when the page holds no rows.

        Example:
            PaginationState(page=3, limit=20).window(45) -> (41, 45)
        """
        first = self.offset + 1
        last = min(self.offset + self.limit, max(total, 0))
        if first > last:
            return (0, 0)
        return (first, last)
