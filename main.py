"""
Chronos meeting scheduler - Application Entry Point

This file initializes the FastAPI app, configures middleware,
and includes all routers. Run with: python main.py
"""
import time
import uuid

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from chronos.config import settings
from chronos.database import init_db, close_db
from chronos.exceptions import ChronosException, RecalculationError
from chronos.logging_config import setup_logging, get_logger, LogContext
from chronos.monitoring import record_error
from chronos.schemas import ErrorResponse
from chronos.api import router

setup_logging(debug=settings.debug)
logger = get_logger(__name__)


# ============================================
# LIFESPAN CONTEXT MANAGER
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    await init_db()
    logger.info(
        "server_started",
        environment="development" if settings.debug else "production",
        cors_origins=settings.cors_origins_list,
        oauth_configured=settings.is_oauth_configured,
    )

    yield

    await close_db()


# ============================================
# CREATE FASTAPI APP
# ============================================

app = FastAPI(
    title="Chronos",
    description="Find a date that works for everyone and vote on it",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)


# ============================================
# MIDDLEWARE CONFIGURATION
# ============================================

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Session middleware
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="chronos_session",
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=not settings.debug,
)

# Trusted host middleware (production only)
if not settings.debug:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts_list
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    # Everything logged while serving the request carries these keys
    with LogContext(request_id=request_id, method=request.method, path=request.url.path):
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 1),
        )
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================
# ERROR HANDLERS
# ============================================

@app.exception_handler(ChronosException)
async def chronos_exception_handler(request: Request, exc: ChronosException):
    if isinstance(exc, RecalculationError):
        # The triggering change may already be stored; clients should re-fetch
        logger.error("mutation_recalculation_failed", path=request.url.path, error=str(exc))
    record_error(type(exc).__name__, "api")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=type(exc).__name__, details=str(exc)).model_dump(),
    )


# ============================================
# INCLUDE ROUTERS
# ============================================

app.include_router(router)


# ============================================
# RUN APPLICATION
# ============================================

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
