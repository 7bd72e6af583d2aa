"""
Menu Engine API.

Wires the import, export and sync routers into one FastAPI app and
configures structlog for the whole process.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError

logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log store reachability on startup; nothing to release on shutdown."""
    logger.info("menu_engine_starting", environment=settings.environment)

    store = check_connection()
    if store["status"] == "healthy":
        logger.info("store_ready", **store["counts"])
    else:
        logger.error("store_unavailable", error=store.get("error"))

    yield

    logger.info("menu_engine_stopping")


app = FastAPI(
    title="Menu Engine",
    description="Bulk import, export and cross-outlet sync of restaurant menus",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """Store reachability plus row counts per menu table."""
    store = check_connection()

    return {
        "status": "healthy" if store["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "store": store
    }


@app.get("/")
async def root():
    return {
        "name": "Menu Engine API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
        "endpoints": {
            "import": "/api/outlets/{outlet_id}/menu/import",
            "import_upload": "/api/outlets/{outlet_id}/menu/import/upload",
            "export": "/api/outlets/{outlet_id}/menu/export",
            "export_xlsx": "/api/outlets/{outlet_id}/menu/export/xlsx",
            "sync_preview": "/api/outlets/{outlet_id}/menu/sync/preview",
            "sync": "/api/outlets/{outlet_id}/menu/sync"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors that escape a router keep their own status and code."""
    logger.warning(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 in the standard error envelope."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# ROUTERS
# ===================
from routes import menu_import_router, menu_export_router, menu_sync_router

app.include_router(menu_import_router)
app.include_router(menu_export_router)
app.include_router(menu_sync_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
