"""
Enrichment endpoints.

POST /api/v1/enrich/{pass_name}   pass_name ∈ carrier | geocode | timezone |
                                               property-tax | property-links

The body may carry the caller's current rows as ``{"data": [...]}``; when it
is omitted the pass runs on the caller's working view, or on the merged
dataset if there is none.  The result replaces the caller's working view
only.  The file registry and the merged dataset are never touched.
"""

import logging

from fastapi import APIRouter, Body, Depends

from api.dependencies import (
    get_boe,
    get_cache,
    get_config,
    get_current_user,
    get_registry,
    working_or_merged,
)
from api.models import EnrichOut, EnrichRequest
from pipeline.boe import BOEClient
from pipeline.enrichment import ENRICHMENT_PASSES, run_pass
from pipeline.errors import NotFoundError
from pipeline.ingest import MergedDataset
from pipeline.registry import FileRegistry
from utils.cache import MergeCache
from utils.config import AppConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrich", tags=["enrich"])


def _known_source_files(user: str, cache: MergeCache) -> list:
    """Source files of whatever is already cached, without parsing anything."""
    for dataset in (cache.get_working(user), cache.get()):
        if dataset is not None:
            return dataset.source_files
    return []


@router.post(
    "/{pass_name}",
    response_model=EnrichOut,
    responses={
        404: {"description": "Unknown enrichment pass"},
        502: {"description": "BOE reference data unavailable"},
    },
    summary="Run one enrichment pass",
)
def enrich(
    pass_name: str,
    body: EnrichRequest | None = Body(None),
    user: str = Depends(get_current_user),
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
    config: AppConfig = Depends(get_config),
    boe: BOEClient = Depends(get_boe),
) -> dict:
    """Return ``{data, columns, message, enrichedCount, addedColumns}``."""
    if pass_name not in ENRICHMENT_PASSES:
        raise NotFoundError(f"Unknown enrichment '{pass_name}'")
    # Read before resolving the base so a file change mid-pass is detected
    epoch = cache.epoch()
    if body is not None and body.data is not None:
        rows, columns = body.data, None
        source_files = _known_source_files(user, cache)
    else:
        base = working_or_merged(user, cache, registry, config)
        rows, columns, source_files = base.rows, base.columns, base.source_files

    result = run_pass(pass_name, rows, columns=columns, boe_client=boe)
    view = MergedDataset.from_rows(result.rows, result.columns, source_files=source_files)
    if not cache.set_working(user, view, epoch=epoch):
        logger.info("Files changed during %s pass; working view for %s not kept",
                    pass_name, user)
    return result.to_dict()
