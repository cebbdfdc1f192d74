"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from api.schemas.common import ErrorResponse
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import (
    applications,
    directory,
    groups,
    jobs,
    notifications,
    profiles,
    quiz,
    roster,
)

from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Shift roster for venue hostesses: jobs, applications, giveaways and monthly releases",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
    responses={
        code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409)
    },
)

# Domain errors, HTTP errors and validation errors share one envelope
setup_error_handlers(app, debug=settings.debug)

# Middleware executes in reverse order of registration
# 1. Error handling middleware (innermost - turns escaped errors into responses)
app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

# 2. Structured logging middleware (sees the final status of every request)
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    log_response_body=settings.log_response_body,
    max_body_size=settings.log_max_body_size,
)

# 3. CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
app.include_router(
    profiles.session_router,
    prefix=f"{settings.api_v1_prefix}/session",
    tags=["Session"],
)
app.include_router(
    jobs.router,
    prefix=f"{settings.api_v1_prefix}/jobs",
    tags=["Jobs"],
)
app.include_router(
    applications.router,
    prefix=f"{settings.api_v1_prefix}/applications",
    tags=["Applications"],
)
app.include_router(
    groups.router,
    prefix=f"{settings.api_v1_prefix}/groups",
    tags=["Groups"],
)
app.include_router(
    groups.releases_router,
    prefix=f"{settings.api_v1_prefix}/releases",
    tags=["Releases"],
)
app.include_router(
    roster.router,
    prefix=f"{settings.api_v1_prefix}/roster",
    tags=["Roster"],
)
app.include_router(
    quiz.router,
    prefix=f"{settings.api_v1_prefix}/quiz",
    tags=["Quiz"],
)
app.include_router(
    profiles.router,
    prefix=f"{settings.api_v1_prefix}/profiles",
    tags=["Profiles"],
)
app.include_router(
    notifications.router,
    prefix=f"{settings.api_v1_prefix}/notifications",
    tags=["Notifications"],
)
app.include_router(
    directory.locations_router,
    prefix=f"{settings.api_v1_prefix}/locations",
    tags=["Locations"],
)
app.include_router(
    directory.settings_router,
    prefix=f"{settings.api_v1_prefix}/settings",
    tags=["Settings"],
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
