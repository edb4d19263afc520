"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    APP_DB_PATH=/data/calls.sqlite python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Process-wide collaborators are built once per app and kept on ``app.state``:

    config        AppConfig
    merge_cache   MergeCache (merged dataset + per-caller working views)
    boe_client    BOEClient (24 h in-memory BOE reference cache)
    translator    QueryTranslator or None

Callers are identified by the ``X-Remote-User`` header set by the upstream
auth proxy.  Structured JSON logging is enabled with APP_LOG_FORMAT=json.
"""

import json
import logging
import sqlite3
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.database import connect, init_database
from api.models import ErrorResponse
from api.routes import data, enrich, files, query
from pipeline.boe import BOEClient
from pipeline.errors import (
    CallDataError,
    ExternalFetchError,
    IngestionError,
    NotFoundError,
    ParseError,
    TranslatorUnavailable,
    UploadTooLargeError,
    ValidationError,
)
from pipeline.registry import FileRegistry
from pipeline.translator import build_translator
from utils.cache import MergeCache
from utils.config import AppConfig

_logger = logging.getLogger("call_dashboard_api")

# ── Structured JSON logging ──────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "user", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


def _configure_logging(log_format: str) -> None:
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=logging.INFO, force=True)


# ── Error mapping ────────────────────────────────────────────────────────────
# Most specific class first; the first isinstance() match wins.

_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (UploadTooLargeError, 413, "Payload too large"),
    (ValidationError, 400, "Bad request"),
    (ParseError, 400, "Unparseable file"),
    (NotFoundError, 404, "Not found"),
    (ExternalFetchError, 502, "Upstream data source unavailable"),
    (IngestionError, 503, "Dataset unavailable"),
    (TranslatorUnavailable, 503, "Query translation unavailable"),
]


def _error_response(status_code: int, error: str, detail: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "status_code": status_code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the BOE HTTP session on shutdown."""
    yield
    app.state.boe_client.close()


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Explicit configuration (tests pass temp paths); defaults to
            AppConfig.from_env().

    Returns:
        Configured FastAPI application instance.
    """
    config = config or AppConfig.from_env()
    _configure_logging(config.log_format)
    init_database(config.db_path)
    _logger.info("Starting Call Dashboard API with %s", config.to_dict(redact=True))

    app = FastAPI(
        title="Call Dashboard API",
        summary="Upload, merge, enrich and query call-record logs.",
        description=(
            "## Call Dashboard API\n\n"
            "Merges every active uploaded call log into one rectangular dataset, "
            "runs enrichment passes over it and answers ad-hoc queries.\n\n"
            "### Key concepts\n"
            "- **Merged dataset**: union of all active files' columns; every row "
            "carries every column plus `_sourceFile` / `_sourceFileId`.\n"
            "- **Working view**: the caller's latest enrichment output, kept "
            "separately from the merged dataset and dropped on any file change.\n"
            "- **Authentication** is handled upstream; send `X-Remote-User`."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "files", "description": "Upload, list, soft-delete and restore call logs."},
            {"name": "data", "description": "Merged dataset and working view."},
            {"name": "enrich", "description": "Carrier, geocode, timezone, property-tax and property-links passes."},
            {"name": "query", "description": "Filter / sort / aggregate, structured or natural language."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    app.state.config = config
    app.state.merge_cache = MergeCache()
    app.state.boe_client = BOEClient(
        config.boe_base_url,
        timeout=config.boe_timeout,
        ttl_hours=config.boe_ttl_hours,
    )
    app.state.translator = build_translator(config.anthropic_api_key, config.query_model)

    # ── CORS middleware ──────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ───────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path
        user = request.headers.get("X-Remote-User", "-")

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if config.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "user": user,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f user=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                user, request_id,
            )
        if duration_ms > 2000:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ───────────────────────────────────────────────────────

    @app.exception_handler(CallDataError)
    async def call_data_error_handler(request: Request, exc: CallDataError):
        """Map pipeline errors to JSON responses; none of them mutate state."""
        for exc_type, status_code, error in _ERROR_STATUS:
            if isinstance(exc, exc_type):
                if status_code >= 500:
                    _logger.error("%s %s: %s", request.method, request.url.path, exc)
                return _error_response(status_code, error, str(exc))
        return _error_response(500, "Internal server error", str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, "Request failed", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error", str(exc))

    # ── Health check ─────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the API is running and can read the file registry."""
        try:
            conn = connect(config.db_path)
            try:
                active = len(FileRegistry(conn).list_files())
            finally:
                conn.close()
        except (sqlite3.Error, IngestionError) as e:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        return {
            "status": "ok",
            "database": str(config.db_path),
            "active_files": active,
            "cache": app.state.merge_cache.stats(),
            "boe_cached": app.state.boe_client.is_fresh(),
            "translator": app.state.translator is not None,
        }

    # ── Register routers ─────────────────────────────────────────────────────

    prefix = "/api/v1"
    errors = {
        401: {"model": ErrorResponse, "description": "X-Remote-User header missing"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    }
    app.include_router(files.router,  prefix=prefix, responses=errors)
    app.include_router(data.router,   prefix=prefix, responses=errors)
    app.include_router(enrich.router, prefix=prefix, responses=errors)
    app.include_router(query.router,  prefix=prefix, responses=errors)

    return app


if __name__ == "__main__":
    import uvicorn
    _cfg = AppConfig.from_env()
    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
