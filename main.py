"""FastAPI application entrypoint for the primer service.

Run with ``uvicorn main:app --reload`` or ``python main.py``.
"""
import sys
import time
import uuid

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router
from app.core.logging import get_logger, setup_logging
from app.core.config import settings
from app.infrastructure.redis import StorageError, get_item_store

setup_logging(level=settings.log_level, json_format=settings.is_production)
logger = get_logger(__name__)

# Application metadata
APP_VERSION = "1.0.0"
APP_NAME = "FastAPI Primer"

app = FastAPI(
    title=APP_NAME,
    description="Path, query and body parameters with FastAPI and Pydantic",
    version=APP_VERSION,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with timing, and tag the response with a request id."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
        }
    )

    try:
        response = await call_next(request)
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
                "error": str(e),
            },
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": request_id},
            headers={"X-Request-ID": request_id},
        )

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"Request completed: {request.method} {request.url.path}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    """Storage failures, including ones raised while creating the store, are 503s."""
    logger.error(
        f"Storage unavailable: {exc}",
        extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path}
    )
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up", extra={"version": APP_VERSION})


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down")


app.include_router(router)


@app.get("/health")
def health_check():
    """Liveness check; also reports which backend holds the items."""
    return {
        "status": "healthy",
        "version": APP_VERSION,
        "checks": {
            "api": "ok",
            "storage": get_item_store().backend,
        }
    }


def run():
    """Start Uvicorn with host, port and reload taken from settings."""
    logger.info(f"Starting {APP_NAME} on {settings.host}:{settings.port} ({settings.environment})")
    try:
        uvicorn.run(
            "main:app",
            host=settings.host,
            port=settings.port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
