"""
Explorer error taxonomy.

The explorer core branches only on "the fetch failed". ``FetchError.kind``
exists for display and logging:

    http       -- the backend answered with a non-success status
    transport  -- no usable response (connection refused, timeout, ...)
    decode     -- body is not JSON, or not the shape the endpoint promises

An empty result is not an error and never raises.
"""

from __future__ import annotations


class ExplorerError(Exception):
    """Base class for every error raised by the explorer core."""


class UnknownDatasetError(ExplorerError, KeyError):
    """Raised when a dataset or view id is not in the registry."""

    def __init__(self, dataset_id: str):
        super().__init__(dataset_id)
        self.dataset_id = dataset_id

    def __str__(self) -> str:
        return f"Unknown dataset: {self.dataset_id!r}"


class FetchError(ExplorerError):
    """A record, count, analytics or option fetch failed."""

    KINDS = ("http", "transport", "decode")

    def __init__(self, message: str, kind: str = "http",
                 status: int | None = None, endpoint: str = ""):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown fetch error kind: {kind!r}")
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status = status
        self.endpoint = endpoint

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "kind": self.kind,
            "status": self.status,
            "endpoint": self.endpoint,
        }
