"""
Explore endpoints.

GET /api/v1/explore/{dataset_id}          -> one page of records + total + series
GET /api/v1/explore/{dataset_id}/options  -> unfiltered dropdown options

Each request runs a transient ``ExplorerSession``: filters arrive in the query
string (keys the dataset does not declare are ignored), and every lane the
dataset has (records, count, analytics, chart records, stats, options) is
fetched in parallel, and the assembled page
is cached by query key for ``EXPLORER_RESULT_TTL_SECONDS``.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi import Query as FQuery

from api.client import get_client, get_config, get_option_cache, get_registry
from api.models import ErrorResponse, ExploreResponse, OptionsResponse
from explorer.client import ApiClient
from explorer.datasets import DatasetRegistry
from explorer.errors import FetchError
from explorer.fetch import FetchStatus
from explorer.options import DropdownOptionCache
from explorer.session import COUNT, RECORDS, ExplorerSession
from utils.cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/explore", tags=["explore"])

_explore_cache: TTLCache = TTLCache(maxsize=256, ttl_seconds=get_config().result_ttl_seconds)


def clear_cache() -> None:
    """Drop every cached page (used by tests and manual refresh)."""
    _explore_cache.clear()


@router.get(
    "/{dataset_id}",
    response_model=ExploreResponse,
    summary="Explore one page of a dataset",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown dataset"},
        502: {"model": ErrorResponse, "description": "Backend fetch failed"},
    },
)
def explore(
    request: Request,
    response: Response,
    dataset_id: str,
    page: int = FQuery(1, ge=1, description="Page number (1-based)"),
    limit: int | None = FQuery(None, ge=1, le=1000, description="Page size (default: the view's)"),
    demo: bool = FQuery(False, description="Substitute labelled demo data for empty series"),
    refresh: bool = FQuery(False, description="Bypass cached results"),
    client: ApiClient = Depends(get_client),
    options: DropdownOptionCache = Depends(get_option_cache),
    registry: DatasetRegistry = Depends(get_registry),
) -> ExploreResponse:
    """Return records, total and chart series for one page of *dataset_id*.

    Filter values are passed as query parameters named after the dataset's
    filter keys (e.g. ``?month=July&location=Berlin``); ``all`` or an empty
    value means unset.
    """
    descriptor = registry.get(dataset_id)
    view = registry.view_for(dataset_id)
    filters = {
        key: value for key, value in request.query_params.items()
        if key in descriptor.relevant_filter_keys
    }

    session = ExplorerSession(view, client, registry=registry, options=options,
                              dataset_id=dataset_id, page_size=limit)
    session.replace_filters(filters)
    session.go_to_page(page)

    cache_key = (session.record_key(), session.pagination.limit, demo)
    if refresh:
        _explore_cache.delete(cache_key)
        options.invalidate(dataset_id)
    else:
        cached = _explore_cache.get(cache_key)
        if cached is not None:
            response.headers["X-Cache"] = "hit"
            return cached

    try:
        states = session.load(parallel=True)
    finally:
        session.coordinator.close()

    records_state = states[RECORDS]
    if records_state.status is FetchStatus.FAILED:
        raise FetchError(
            records_state.error or "Record fetch failed",
            kind=records_state.error_kind or "transport",
            endpoint=descriptor.record_endpoint,
        )

    snap = session.snapshot(demo=demo)
    result = ExploreResponse(
        dataset=snap["dataset"],
        view=snap["view"],
        filters=snap["filters"],
        page=snap["page"],
        limit=snap["limit"],
        offset=snap["offset"],
        total=snap["total"],
        page_count=snap["total_pages"],
        has_next=snap["has_next"],
        query_key=list(session.record_key()),
        records=snap["records"],
        series=snap["series"],
        stats=snap["stats"],
        slots=snap["slots"],
    )
    # A page without its total is served but not cached
    if states[COUNT].status is FetchStatus.SUCCESS:
        _explore_cache.set(cache_key, result)
    response.headers["X-Cache"] = "miss"
    return result


@router.get(
    "/{dataset_id}/options",
    response_model=OptionsResponse,
    summary="Dropdown options for a dataset",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown dataset"},
        502: {"model": ErrorResponse, "description": "Backend fetch failed"},
    },
)
def explore_options(
    dataset_id: str,
    response: Response,
    options: DropdownOptionCache = Depends(get_option_cache),
) -> OptionsResponse:
    """Return every selectable value per filter key, independent of filters."""
    lists = options.fetch_options(dataset_id)
    response.headers["Cache-Control"] = "public, max-age=3600"
    return OptionsResponse(
        dataset=dataset_id,
        options={key: [entry.to_dict() for entry in entries] for key, entries in lists.items()},
    )
