"""
Main Application - AgriShield Reports API

FastAPI web application serving the enforcement reports and dashboard
statistics of the AgriShield field-enforcement platform over the shared
SQLite case store.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

# ============================================================================
# IMPORTS
# ============================================================================
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .config import config
from .database import get_database_manager
from .reports import reports_router, dashboard_stats_router

# Global state
app_state = {
    "db_manager": None
}

# Initialize logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    app_state["db_manager"] = get_database_manager()
    logger.info(
        f"AgriShield reports API started ({config.environment.value}) - "
        f"database: {app_state['db_manager'].db_path}"
    )
    logger.debug(f"Active configuration: {config.to_dict()}")
    yield

    # Shutdown
    logger.info("Shutting down application...")
    if app_state.get("db_manager"):
        app_state["db_manager"].close()
        logger.info("Database connections closed")


# Create FastAPI app
app = FastAPI(
    title="AgriShield Reports API",
    description="Enforcement reporting and dashboard statistics",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.web.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports_router)
app.include_router(dashboard_stats_router)


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/api/health")
async def health_check():
    """Health check with store row counts and connection pool usage"""
    db_manager = app_state.get("db_manager")
    return {
        "status": "healthy" if db_manager else "starting",
        "environment": config.environment.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tables": db_manager.get_table_stats() if db_manager else {},
        "pool": db_manager.pool.get_pool_stats() if db_manager else {}
    }


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTP exceptions rendered as {"error": ...}"""
    # 401s are expected for anonymous callers
    if exc.status_code == 401:
        logger.debug(
            f"HTTP Exception: {request.method} {request.url.path} - "
            f"Status: {exc.status_code} - Detail: {exc.detail}"
        )
    elif exc.status_code < 500:
        logger.warning(
            f"HTTP Exception: {request.method} {request.url.path} - "
            f"Status: {exc.status_code} - Detail: {exc.detail}"
        )
    else:
        logger.error(
            f"HTTP Exception: {request.method} {request.url.path} - "
            f"Status: {exc.status_code} - Detail: {exc.detail}"
        )
    content = {"error": exc.detail}
    # 401 bodies carry the error message only
    if exc.status_code != 401:
        content["status_code"] = exc.status_code
        content["path"] = str(request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Query parameter type/range failures"""
    logger.warning(f"Validation failed: {request.method} {request.url.path} - {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request parameters",
            "details": jsonable_encoder(exc.errors()),
            "path": str(request.url.path)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler for unhandled errors"""
    logger.error(
        f"Unhandled Exception: {request.method} {request.url.path}\n"
        f"  Exception Type: {type(exc).__name__}\n"
        f"  Message: {str(exc)}",
        exc_info=True
    )
    content = {
        "error": "An unexpected error occurred",
        "path": str(request.url.path)
    }
    if config.is_development():
        content["exception_type"] = type(exc).__name__
        content["message"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# ============================================================================
# MAIN APPLICATION ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "agrishield.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=config.web.reload,
        log_level=config.web.log_level
    )
