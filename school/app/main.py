from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from school import __version__
from school.app.api.attendance import router as attendance_router
from school.app.api.classrooms import router as classrooms_router
from school.app.api.execs import router as execs_router
from school.app.api.students import router as students_router
from school.app.api.teachers import router as teachers_router
from school.app.core.cache import close_cache, get_cache
from school.app.core.config import settings
from school.app.core.logging import get_logger, setup_logging
from school.app.db.async_session import close_async_engine, get_async_engine
from school.app.db.init_db import init_database, verify_connection
from school.app.exceptions import SchoolAPIException
from school.app.middleware.rate_limit import RateLimitMiddleware, TokenBucketRateLimiter
from school.app.middleware.request_id import RequestIdMiddleware, get_request_id

logger = get_logger(__name__)

API_PREFIX = "/v1"


def install_exception_handlers(app: FastAPI) -> None:
    """Render application errors as ``{"error": ..., "message": ...}``."""

    @app.exception_handler(SchoolAPIException)
    async def school_exception_handler(request: Request, exc: SchoolAPIException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        request_id = get_request_id(request)
        logger.exception(
            f"Database error [request_id={request_id}]",
            extra={"request_id": request_id},
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "database_error",
                "message": str(exc) if settings.debug else "Database error occurred",
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global handler for unhandled exceptions.

        The traceback is logged server-side only. Debug mode adds the
        exception message to the body.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )

        content = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()

    limiter = TokenBucketRateLimiter(
        requests_per_window=settings.rate_limiter_requests_count,
        window_seconds=settings.rate_limiter_window_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Verify the database, create tables and run the limiter sweep."""
        if not await verify_connection():
            logger.error("Database connection failed!")
            raise RuntimeError("Cannot connect to database")

        await init_database()

        if settings.rate_limiter_enabled:
            await app.state.rate_limiter.start_cleanup()

        logger.info(
            "Application startup complete",
            extra={
                "env": settings.env,
                "rate_limiter_enabled": settings.rate_limiter_enabled,
                "cache_enabled": settings.redis_enabled,
            },
        )

        yield

        await app.state.rate_limiter.stop_cleanup()
        await close_cache()
        await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="ClassNama API",
        description="School management backend: execs, teachers, students, classrooms and attendance",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.rate_limiter = limiter

    # Add middleware (order matters: last added = first executed)
    if settings.rate_limiter_enabled:
        app.add_middleware(RateLimitMiddleware, limiter=limiter)

    # Wraps the limiter so 429s carry CORS headers and preflights are free
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
        max_age=600,
    )

    # Outermost, so throttled requests are still logged with an id
    app.add_middleware(RequestIdMiddleware)

    for router in (
        execs_router,
        teachers_router,
        students_router,
        classrooms_router,
        attendance_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get(f"{API_PREFIX}/health")
    async def health() -> dict[str, Any]:
        """Health check with database and cache status."""
        health_status: dict[str, Any] = {
            "status": "ok",
            "env": settings.env,
            "version": __version__,
            "components": {},
        }

        try:
            async with get_async_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except (SQLAlchemyError, OSError) as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100],
            }

        cache = get_cache()
        if cache is None:
            health_status["components"]["cache"] = {"status": "disabled"}
        else:
            try:
                await cache.ping()
                health_status["components"]["cache"] = {
                    "status": "ok",
                    "type": settings.cache_backend,
                }
            except (RedisError, OSError) as e:
                health_status["status"] = "degraded"
                health_status["components"]["cache"] = {
                    "status": "error",
                    "error": str(e)[:100],
                }

        return health_status

    install_exception_handlers(app)
    return app


# Create the application instance
app = create_app()
