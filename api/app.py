"""
FastAPI application factory for the explore service.

Usage:
    python -m api.app                    # Dev server on port 8000
    EXPLORER_API_BASE_URL=https://backend.example python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The service wraps the explorer core for presentation layers that prefer HTTP
over an in-process ``ExplorerSession``:
    - structured JSON logging when APP_LOG_FORMAT=json
    - CORS middleware with configurable origins via APP_CORS_ORIGINS
    - request logging with a short request id (X-Request-ID)
    - JSON error bodies: 404 unknown dataset, 502 backend fetch failure,
      400 bad input, 500 anything else
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.client import close_client, get_config
from api.routes import explorer, reference
from explorer.errors import FetchError, UnknownDatasetError

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = get_config()

# ── Structured JSON logging ───────────────────────────────────────────────────


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
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id", "endpoint", "kind"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("explorer_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

_app_start_time: float = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the backend in use on startup; release pooled connections on shutdown."""
    _logger.info("Explore service starting; backend=%s", _cfg.api_base_url)
    yield
    close_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Market Intelligence Explorer API",
        summary="Paged, filtered and chart-ready views over the market intelligence backend.",
        description=(
            "## Market Intelligence Explorer API\n\n"
            "Each dataset (tab) exposes paged records, a total count, chart "
            "series and unfiltered dropdown options.\n\n"
            "### Key concepts\n"
            "- **Filters** are query parameters named after the dataset's filter keys; "
            "the value `all` (or an empty value) means *no constraint*.\n"
            "- **Series** come from the backend's analytics when available "
            "(`source=server`), otherwise they are computed from the page of records "
            "(`source=client`).\n"
            "- **Options** never depend on the current filters."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "explore",
                "description": "Records, totals, series and options per dataset.",
            },
            {
                "name": "reference",
                "description": "Views, datasets and their filter keys.",
            },
            {
                "name": "meta",
                "description": "Health check.",
            },
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its duration and a short request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if _cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        if duration_ms > 2000:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    @app.exception_handler(UnknownDatasetError)
    async def unknown_dataset_handler(request: Request, exc: UnknownDatasetError):
        return JSONResponse(
            status_code=404,
            content={"error": "Not found", "detail": str(exc), "status_code": 404},
        )

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError):
        _logger.warning(
            "fetch_failed endpoint=%s kind=%s status=%s",
            exc.endpoint, exc.kind, exc.status,
            extra={"endpoint": exc.endpoint, "kind": exc.kind},
        )
        return JSONResponse(
            status_code=502,
            content={"error": "Fetch failed", "detail": exc.message, "status_code": 502},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK while the service is running.

        The backend is not contacted; a backend outage shows up as 502s on
        the explore endpoints instead.
        """
        return {
            "status": "ok",
            "backend": _cfg.api_base_url,
            "uptime_seconds": round(time.time() - _app_start_time, 2),
        }

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(explorer.router,  prefix=prefix)
    app.include_router(reference.router, prefix=prefix)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
