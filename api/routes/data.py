"""
Merged data endpoint.

GET /api/v1/data                 → merged dataset of all active files
GET /api/v1/data?view=working    → caller's working view (after enrichment),
                                   falling back to the merged dataset
GET /api/v1/data?refresh=true    → rebuild from the registry and drop the
                                   caller's working view
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_cache,
    get_config,
    get_current_user,
    get_registry,
    load_merged,
)
from api.models import DatasetOut
from pipeline.registry import FileRegistry
from utils.cache import MergeCache
from utils.config import AppConfig

router = APIRouter(prefix="/data", tags=["data"])


@router.get(
    "",
    response_model=DatasetOut,
    responses={503: {"description": "File registry unavailable"}},
    summary="Merged call dataset",
)
def get_data(
    refresh: bool = Query(False, description="Force a rebuild from the registered files"),
    view: Literal["merged", "working"] = Query("merged", description="merged | working"),
    user: str = Depends(get_current_user),
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
    config: AppConfig = Depends(get_config),
) -> dict:
    """Return ``{rows, columns, columnTypes, files, skippedFiles}``."""
    if refresh:
        cache.clear_working(user)
    elif view == "working":
        working = cache.get_working(user)
        if working is not None:
            return working.to_dict()
    return load_merged(cache, registry, config, force_refresh=refresh).to_dict()
