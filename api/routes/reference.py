"""
Reference data endpoints.

GET /api/v1/views  -> every view with its datasets and filter keys
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.client import get_registry
from api.models import DatasetOut, ViewOut
from explorer.datasets import DatasetRegistry

router = APIRouter(tags=["reference"])

_CACHE_HEADER = {"Cache-Control": "max-age=3600"}


@router.get(
    "/views",
    response_model=list[ViewOut],
    summary="List explorer views",
)
def list_views(registry: DatasetRegistry = Depends(get_registry)) -> JSONResponse:
    """Return all views, their tabs, and the filter keys each tab consumes."""
    data = []
    for view in registry.views():
        datasets = [
            DatasetOut(
                id=d.id,
                label=d.label,
                record_type=d.record_type,
                filter_keys=list(d.relevant_filter_keys),
                pagination=d.pagination,
                has_analytics=d.analytics_endpoint is not None,
                has_stats=d.stats_endpoint is not None,
                charts=[spec.name for spec in d.charts],
            )
            for d in registry.datasets_for(view)
        ]
        out = ViewOut(
            id=view.id,
            title=view.title,
            default_dataset=view.default_dataset,
            page_size=view.page_size,
            default_filters=dict(view.default_filters),
            datasets=datasets,
        )
        data.append(out.model_dump())
    return JSONResponse(content=data, headers=_CACHE_HEADER)
