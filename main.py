"""
Yayasan ERP Finance - FastAPI Backend

Journal entry screens for the Yayasan ERP finance module: account selector,
journal list, and the double-entry journal form with live balance checks.

Run Instructions:
-----------------
1. Install dependencies:
   pip install -e .

2. Point the app at the ERP backend:
   export YAYASAN_API_BASE_URL=http://localhost:8080/api/v1
   export YAYASAN_API_TOKEN=...

3. Run the app locally with uvicorn:
   uvicorn main:app --host 0.0.0.0 --port 8000 --reload

4. Test /health endpoint:
   curl http://localhost:8000/health

5. Preview a journal draft:
   curl -X POST http://localhost:8000/finance/journals/preview \
     -H "Content-Type: application/json" \
     -d '{"journal_date": "2026-10-19", "description": "Setoran kas", "items": [...]}'
"""
import time
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from yayasan_erp.api import accounts_router, journals_router
from yayasan_erp.core.config import Settings
from yayasan_erp.di.container import ServiceContainer
from yayasan_erp.services.errors import YayasanError
from yayasan_erp.services.logging import log_error, log_request, logger
from yayasan_erp.services.metrics import get_metrics, record_error, record_request

VERSION = "1.0.0"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and record metrics."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_id = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            log_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
                client_id=client_id
            )
            record_request(request.method, request.url.path, response.status_code, duration_ms)

            if response.status_code >= 400:
                record_error(f"http_{response.status_code}", request.url.path)

            return response
        except Exception as e:
            record_error("exception", request.url.path)
            log_error("request_exception", str(e), {"path": request.url.path, "method": request.method})
            raise


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application with its own service container."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Yayasan ERP Finance API",
        description="""
    Yayasan ERP Finance - Journal Entries

    ## Journal form
    - Every line is either a debit or a credit
    - At least two lines; the last two cannot be removed
    - Total debit must equal total credit and be greater than zero

    ## Backend
    Reads and writes go to the ERP REST API configured by `YAYASAN_API_BASE_URL`.
    Reads are cached per application and invalidated after each successful write.
    """,
        version=VERSION,
    )
    app.state.container = ServiceContainer(settings=settings, transport=transport)

    app.include_router(accounts_router)
    app.include_router(journals_router)

    # Last added is first executed
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(YayasanError)
    async def yayasan_exception_handler(request: Request, exc: YayasanError):
        """Handle all YayasanErrors with structured responses."""
        status_code = exc.status_code
        if status_code >= 500:
            log_error(exc.code.value, str(exc), {"path": request.url.path, "detail": exc.detail})
        else:
            logger.warning(
                "%s %s -> %s (%s)", request.method, request.url.path, status_code, exc.code.value
            )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log_error(
            "unhandled_exception",
            str(exc),
            {"path": request.url.path, "method": request.method},
            exception=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again.",
            }
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close the backend connection pool."""
        await app.state.container.aclose()

    @app.get("/health", tags=["System"], summary="Health Check")
    async def health():
        return {
            "status": "ok",
            "version": VERSION,
            "backend": settings.api_base_url,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/metrics", tags=["System"], summary="Get Metrics")
    async def metrics_endpoint():
        metrics = get_metrics()
        metrics["cache_entries"] = len(app.state.container.cache())
        return metrics

    return app


app = create_app()
