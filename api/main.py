"""
FastAPI API Service Entry Point
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from agent.routing.errors import ChatError
from api.routes import chat, facilities
from shared.config import get_settings
from shared.logging_config import configure_logging

# Configure structured JSON logging on startup
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CourtConnect Chat API",
    version="1.0.0",
)

# Load settings for CORS configuration
settings = get_settings()
origins = settings.CORS_ORIGINS.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(chat.router, tags=["chat"])
app.include_router(facilities.router, tags=["facilities"])


@app.on_event("startup")
async def startup_init_db():
    """Create missing tables so a fresh database is usable immediately."""
    from database.connection import init_db

    logger.info("Initializing database tables...")
    await init_db()


@app.on_event("shutdown")
async def shutdown_close_connections():
    from database.connection import dispose_engine
    from shared.redis_client import close_redis_client

    await dispose_engine()
    if settings.PENDING_CONTEXT_BACKEND == "redis":
        await close_redis_client()


# =========================================================================
# EXCEPTION HANDLERS - every error body is {"error": "..."}
# =========================================================================
@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Return 400 with validation error details."""
    return JSONResponse(
        status_code=400,
        content={"error": "Validation error", "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: ValidationError | RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.get("/health")
async def health_check() -> JSONResponse:
    """
    Health check endpoint for Docker health checks and monitoring.

    Checks:
    - Database connectivity (SELECT 1 query)
    - Redis connectivity (PING), only when it backs the pending context

    Returns:
        200 OK if all systems healthy
        503 Service Unavailable if degraded
    """
    from sqlalchemy import text

    from database.connection import get_async_session
    from shared.redis_client import get_redis_client

    health_status = {
        "status": "healthy",
        "database": "unknown",
    }
    status_code = 200

    try:
        async with get_async_session() as session:
            await session.execute(text("SELECT 1"))
            health_status["database"] = "connected"
    except Exception:
        logger.exception("Database health check failed")
        health_status["database"] = "disconnected"
        health_status["status"] = "degraded"
        status_code = 503

    if settings.PENDING_CONTEXT_BACKEND == "redis":
        try:
            await get_redis_client().ping()
            health_status["redis"] = "connected"
        except Exception:
            logger.exception("Redis health check failed")
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
            status_code = 503

    return JSONResponse(status_code=status_code, content=health_status)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "CourtConnect Chat API - POST /chat to talk, /health for health checks"}
