"""
FastAPI application for masteryflow.

Provides REST API for:
- User registration and gamification stats
- Track and item management
- Daily mission generation and task settlement
- Scheduled triggers (daily assembly, overdue expiry)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from src.core.exceptions import (
    ConflictError,
    InvalidInputError,
    MasteryFlowError,
    NotFoundError,
)
from src.core.log_setup import configure_logging
from src.db.database import check_connection, init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging()
    logger.info("Starting masteryflow service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down masteryflow service...")


app = FastAPI(
    title="MasteryFlow",
    description="""
    Daily learning missions with load balancing and gamified settlement.

    ## Data Flow

    ```
    Tracks (ordered items)
        ↓ rotation selector + item picker
    Candidate items
        ↓ cognitive load balancer
    Daily mission (tasks)
        ↓ completion settlement
    XP ledger / track progress / streaks
    ```
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Error mapping
# ========================================

_STATUS_BY_ERROR: list[tuple[type[MasteryFlowError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, 422),
]


@app.exception_handler(MasteryFlowError)
async def domain_error_handler(request: Request, exc: MasteryFlowError) -> JSONResponse:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=code, content={"error": exc.message})
    logger.error(f"Unmapped domain error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "masteryflow",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round trip."""
    db_status, db_error = check_connection()

    result = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
        "config": settings.get_mission_config(),
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from src.api.routers import (  # noqa: E402
    cron_router,
    missions_router,
    tracks_router,
    users_router,
)

app.include_router(users_router.router, prefix="/api/users", tags=["Users"])
app.include_router(tracks_router.router, prefix="/api/users", tags=["Tracks"])
app.include_router(missions_router.router, prefix="/api", tags=["Missions"])
app.include_router(cron_router.router, prefix="/api/cron", tags=["Cron"])
