"""FastAPI application setup for COR Matrix."""

from __future__ import annotations

import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from cor_matrix.api.routes_cors import router as cors_router
from cor_matrix.api.routes_tokens import router as tokens_router
from cor_matrix.api.routes_workspaces import router as workspaces_router
from cor_matrix.core.config import Settings, get_settings
from cor_matrix.core.errors import CorError
from cor_matrix.core.logging import configure_logging, get_logger
from cor_matrix.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, metrics_response
from cor_matrix.db.sqlite import SQLiteDatabase

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, database: SQLiteDatabase | None = None) -> FastAPI:
    """Build the API with explicit collaborators.

    ``settings`` defaults to the YAML/env configuration and ``database`` to a
    SQLite file at ``settings.db_path``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, use_json=settings.log_json)

    app = FastAPI(
        title="COR Matrix",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.database = database or SQLiteDatabase(settings.db_path)

    app.include_router(workspaces_router, prefix="/v1/workspaces", tags=["workspaces"])
    app.include_router(tokens_router, prefix="/v1/tokens", tags=["tokens"])
    app.include_router(cors_router, prefix="/v1/cors", tags=["cors"])

    @app.on_event("startup")
    async def startup() -> None:
        """Open the database and apply the schema."""
        app.state.database.ensure_schema()
        logger.info("COR Matrix API started", extra={"ctx_db_path": str(settings.db_path)})

    @app.on_event("shutdown")
    async def shutdown() -> None:
        app.state.database.close()

    @app.exception_handler(CorError)
    async def handle_cor_error(_request: Request, exc: CorError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def handle_http_error(_request: Request, exc: HTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = {"success": False, "code": "HTTP_ERROR", "error": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.middleware("http")
    async def record_request_metrics(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - started)
        return response

    @app.get("/health", tags=["admin"])
    def health() -> dict[str, bool]:
        """Simple liveness check."""
        return {"ok": True}

    @app.get("/metrics", tags=["admin"], summary="Prometheus metrics")
    async def get_metrics():
        return metrics_response()

    return app


__all__ = ["create_app"]
