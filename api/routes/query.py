"""
Ad-hoc query endpoint.

POST /api/v1/query   {"message": "..."}  → translated, then executed
POST /api/v1/query   {"spec": {...}}     → executed directly

Queries run against the caller's working view when one exists, otherwise
against the merged dataset.  ``results`` is capped at QUERY_RESULT_LIMIT.
"""

from fastapi import APIRouter, Depends

from api.dependencies import (
    get_cache,
    get_config,
    get_current_user,
    get_registry,
    get_translator,
    working_or_merged,
)
from api.models import QueryOut, QueryRequest
from pipeline.errors import QuerySpecError, TranslatorUnavailable
from pipeline.query import run_query
from pipeline.registry import FileRegistry
from pipeline.translator import QueryTranslator
from utils.cache import MergeCache
from utils.config import AppConfig

router = APIRouter(prefix="/query", tags=["query"])


@router.post(
    "",
    response_model=QueryOut,
    responses={
        400: {"description": "Malformed query specification"},
        503: {"description": "Natural-language translation not configured"},
    },
    summary="Filter, sort and aggregate the dataset",
)
def query(
    req: QueryRequest,
    user: str = Depends(get_current_user),
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
    config: AppConfig = Depends(get_config),
    translator: QueryTranslator | None = Depends(get_translator),
) -> dict:
    """Return ``{resultCount, results, aggregation, explanation}``."""
    if req.spec is None and not (req.message or "").strip():
        raise QuerySpecError("Provide either 'message' or 'spec'")

    dataset = working_or_merged(user, cache, registry, config)
    if req.spec is not None:
        spec = req.spec
    else:
        if translator is None:
            raise TranslatorUnavailable(
                "Natural-language queries are not configured; send a 'spec' instead"
            )
        spec = translator.translate(req.message.strip(), dataset.columns)

    return run_query(dataset, spec, limit=config.query_result_limit).to_dict()
