"""
Pydantic response models for the explore service.

Optional fields default to None so that a response stays valid when an
auxiliary lane (count, analytics, options) is unavailable.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Reference models ──────────────────────────────────────────────────────────

class DatasetOut(BaseModel):
    """One selectable dataset (tab)."""
    id: str = Field(..., description="Dataset id used in /explore paths", examples=["general"])
    label: str = Field(..., description="Human-readable tab label", examples=["Events"])
    record_type: str = Field(..., description="Record variant returned in `records`", examples=["event"])
    filter_keys: list[str] = Field(..., description="Filter keys this dataset consumes, in wire order",
                                   examples=[["search", "eventType", "location", "month"]])
    pagination: str = Field(..., description="page | offset | both", examples=["both"])
    has_analytics: bool = Field(..., description="Whether the backend precomputes chart series")
    has_stats: bool = Field(False, description="Whether `stats` carries headline numbers")
    charts: list[str] = Field(default_factory=list, description="Chart names available in `series`")


class ViewOut(BaseModel):
    """A page that shows several datasets as tabs."""
    id: str = Field(..., description="View id", examples=["events"])
    title: str = Field(..., description="Page title", examples=["Events"])
    default_dataset: str = Field(..., description="Tab selected on first load", examples=["general"])
    page_size: int = Field(..., description="Rows per page", examples=[20])
    default_filters: dict[str, str] = Field(default_factory=dict, description="Initial filter values")
    datasets: list[DatasetOut] = Field(..., description="Tabs of this view")


# ── Explore models ────────────────────────────────────────────────────────────

class SeriesPointOut(BaseModel):
    name: str = Field(..., description="Group name; 'Other' collects missing and long-tail keys",
                      examples=["Berlin"])
    value: float = Field(..., description="Count or summed measure", examples=[12])


class SeriesOut(BaseModel):
    """One chart-ready series."""
    name: str = Field(..., description="Chart name", examples=["locations"])
    source: str = Field(..., description="server | client | demo", examples=["server"])
    points: list[SeriesPointOut] = Field(..., description="Points sorted for display")


class SlotOut(BaseModel):
    """Fetch state of one lane."""
    status: str = Field(..., description="idle | loading | success | failed", examples=["success"])
    display: str = Field(..., description="idle | loading | empty | error | ready", examples=["ready"])
    error: str | None = Field(None, description="Failure message when status is failed")
    error_kind: str | None = Field(None, description="http | transport | decode")


class ExploreResponse(BaseModel):
    """Response body for GET /api/v1/explore/{dataset_id}."""
    dataset: str = Field(..., description="Dataset id", examples=["general"])
    view: str = Field(..., description="View the dataset belongs to", examples=["events"])
    filters: dict[str, str] = Field(..., description="Effective filter values ('all' = unset)")
    page: int = Field(..., ge=1, description="Current page (1-based)", examples=[3])
    limit: int = Field(..., gt=0, description="Page size", examples=[20])
    offset: int = Field(..., ge=0, description="(page - 1) * limit", examples=[40])
    total: int | None = Field(None, description="Total matching rows, when the count lane succeeded")
    page_count: int | None = Field(None, description="Number of pages for `total`")
    has_next: bool = Field(False, description="Whether another page follows")
    query_key: list[Any] = Field(..., description="Canonical key of this request")
    records: list[dict[str, Any]] = Field(..., description="Records of this page (camelCase fields)")
    series: dict[str, SeriesOut] = Field(default_factory=dict, description="Chart series by name")
    stats: dict[str, float] = Field(default_factory=dict,
                                    description="Filter-independent headline numbers",
                                    examples=[{"totalInvestors": 1200, "vcFunds": 300}])
    slots: dict[str, SlotOut] = Field(default_factory=dict, description="Fetch state per lane")


class OptionEntryOut(BaseModel):
    name: str = Field(..., description="Selectable value", examples=["Berlin"])
    count: int | None = Field(None, description="Rows carrying this value, when the backend reports it")


class OptionsResponse(BaseModel):
    """Response body for GET /api/v1/explore/{dataset_id}/options."""
    dataset: str = Field(..., description="Dataset id", examples=["investors"])
    options: dict[str, list[OptionEntryOut]] = Field(..., description="Unfiltered option lists by filter key")


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Fetch failed"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[502])
