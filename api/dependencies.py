"""
Request-scoped dependencies shared by the route modules.

Process-wide collaborators (merge cache, BOE client, translator, config) are
created once by create_app() and stored on ``app.state``; these helpers hand
them to route functions through ``Depends`` so tests can swap them per app.
"""

import sqlite3

from fastapi import Depends, Header, HTTPException, Request, status

from api.database import get_db
from pipeline.boe import BOEClient
from pipeline.ingest import MergedDataset, load_all
from pipeline.registry import FileRegistry
from pipeline.translator import QueryTranslator
from utils.cache import MergeCache
from utils.config import AppConfig


def get_current_user(
    x_remote_user: str | None = Header(None, description="Authenticated caller"),
) -> str:
    """Caller identity set by the upstream auth proxy; 401 when absent."""
    user = (x_remote_user or "").strip()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_cache(request: Request) -> MergeCache:
    return request.app.state.merge_cache


def get_boe(request: Request) -> BOEClient:
    return request.app.state.boe_client


def get_translator(request: Request) -> QueryTranslator | None:
    return request.app.state.translator


def get_registry(conn: sqlite3.Connection = Depends(get_db)) -> FileRegistry:
    return FileRegistry(conn)


# ── Dataset resolution ───────────────────────────────────────────────────────


def load_merged(
    cache: MergeCache,
    registry: FileRegistry,
    config: AppConfig,
    force_refresh: bool = False,
) -> MergedDataset:
    """Merged dataset for the active file set (cached per epoch)."""
    return load_all(cache, registry, config.default_data_file, force_refresh=force_refresh)


def working_or_merged(
    user: str,
    cache: MergeCache,
    registry: FileRegistry,
    config: AppConfig,
) -> MergedDataset:
    """The caller's working view when one exists, else the merged dataset."""
    working = cache.get_working(user)
    if working is not None:
        return working
    return load_merged(cache, registry, config)
