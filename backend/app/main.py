"""
PURPOSE: Main FastAPI application factory and lifecycle management for Strategy Forge.

Initializes the FastAPI application with:
- All API routers (strategies, marketplace, wallet, system)
- CORS middleware for the frontend
- slowapi rate limiting
- Exception handlers for common errors
- Startup (logging, persistence connection, wallet restore) and shutdown events
- Metadata from version.json
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api import api_router
from app.api.guard import OperationGuard
from app.bridge.chain_client import SimulatedChainClient
from app.config.settings import settings
from app.core.rate_limit import limiter
from app.services.strategy_service import StrategyService
from app.storage.kv_store import RedisKVStore, build_store
from app.utils.logger import get_logger, setup_logging
from app.version import get_version

logger = get_logger(__name__)


# ════════════════════════════════════════════════════════════════
# Lifecycle Events
# ════════════════════════════════════════════════════════════════


async def on_startup(app: FastAPI) -> None:
    """
    PURPOSE: Execute startup tasks.

    CALLED BY: FastAPI lifespan startup

    Tasks:
        1. Setup logging with configured level
        2. Connect the Redis store when that backend is selected
        3. Restore a wallet the chain backend already holds
    """
    try:
        setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
        logger.info(
            "application_startup_starting",
            log_level=settings.LOG_LEVEL,
            storage_backend=settings.STORAGE_BACKEND,
        )

        store = app.state.store
        if isinstance(store, RedisKVStore):
            await store.connect()

        await app.state.strategy_service.restore_wallet()

        logger.info("application_startup_complete")

    except Exception as e:
        logger.critical("application_startup_failed", error=str(e))
        raise


async def on_shutdown(app: FastAPI) -> None:
    """
    PURPOSE: Execute shutdown tasks to gracefully close resources.

    CALLED BY: FastAPI lifespan shutdown
    """
    logger.info("application_shutdown_starting")

    store = app.state.store
    if isinstance(store, RedisKVStore):
        await store.disconnect()

    logger.info("application_shutdown_complete")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    PURPOSE: Manage application lifespan with startup and shutdown events.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    await on_startup(app)

    yield

    await on_shutdown(app)


# ════════════════════════════════════════════════════════════════
# Exception Handlers
# ════════════════════════════════════════════════════════════════


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    PURPOSE: Handle Pydantic validation errors with consistent JSON response.

    CALLED BY: FastAPI when request validation fails

    Args:
        request: HTTP request that failed validation
        exc: RequestValidationError with validation details

    Returns:
        JSONResponse: Formatted error response with validation details
    """
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        method=request.method,
        error_count=len(exc.errors())
    )

    safe_errors = jsonable_encoder(
        exc.errors(),
        custom_encoder={
            ValueError: lambda e: str(e),
            Exception: lambda e: str(e),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "status": "error",
            "detail": "Request validation failed",
            "errors": safe_errors,
        },
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    PURPOSE: Handle unexpected exceptions with logging and safe error response.

    Args:
        request: HTTP request that raised exception
        exc: Exception that was raised

    Returns:
        JSONResponse: Safe error response without exposing internals
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exception_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "detail": "Internal server error",
        },
    )


# ════════════════════════════════════════════════════════════════
# FastAPI Application Factory
# ════════════════════════════════════════════════════════════════


def create_app(service: Optional[StrategyService] = None) -> FastAPI:
    """
    PURPOSE: Create and configure FastAPI application with all routers, middleware, and handlers.

    CALLED BY: Application entrypoint (uvicorn) and the API tests

    Args:
        service: Pre-built lifecycle service. When omitted, one is built from
            settings with the configured store and the simulated chain backend.

    Returns:
        FastAPI: Configured FastAPI application ready to run
    """
    try:
        version_data = get_version()
        version = version_data.get("version", "unknown")
        description = f"Conversational trading strategy builder - {version_data.get('codename', 'Forge')}"
    except (OSError, ValueError) as e:
        logger.warning("version_data_unavailable", error=str(e))
        version = "unknown"
        description = "Conversational trading strategy builder"

    app = FastAPI(
        title="Strategy Forge",
        description=description,
        version=version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ────────────────────────────────────────────────────────────
    # Application state
    # ────────────────────────────────────────────────────────────

    if service is None:
        store = build_store(settings)
        service = StrategyService(store, SimulatedChainClient.from_settings(settings))
        app.state.store = store
    else:
        app.state.store = None
    app.state.strategy_service = service
    app.state.operation_guard = OperationGuard()

    # ────────────────────────────────────────────────────────────
    # Middleware
    # ────────────────────────────────────────────────────────────

    # Limiter state must be on the app before any limited route runs.
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # ────────────────────────────────────────────────────────────
    # Routes
    # ────────────────────────────────────────────────────────────

    app.include_router(api_router)

    @app.get("/", tags=["root"])
    async def root():
        """Service information and version."""
        return {
            "status": "ok",
            "service": "Strategy Forge API",
            "version": version,
            "docs": "/docs",
        }

    # ────────────────────────────────────────────────────────────
    # Exception Handlers
    # ────────────────────────────────────────────────────────────

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app


# Create the application
app = create_app()


if __name__ == "__main__":
    """
    PURPOSE: Run FastAPI application with Uvicorn server.

    Usage:
        python -m app.main
        OR
        uvicorn app.main:app --host 0.0.0.0 --port 8000 --reload
    """
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )
