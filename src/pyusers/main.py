"""
PyUsers FastAPI Application Entry Point.

This module builds the service container and the FastAPI application.
``create_app`` is a factory so tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pyusers.api.v1 import router as v1_router
from pyusers.cache.user_cache import UserCache, build_user_cache
from pyusers.core.config import Settings, get_settings
from pyusers.core.container import ServiceContainer
from pyusers.core.exceptions import PyUsersException
from pyusers.core.logging import get_logger, setup_logging
from pyusers.db.schema import init_schema
from pyusers.db.session import Database
from pyusers.services.user import UserService

logger = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./pyusers.db"


def build_container(
    settings: Settings,
    database_url: Optional[str] = None,
    cache_namespace: str = "default",
) -> ServiceContainer:
    """
    Register the application's long-lived services.

    Args:
        settings: Application settings
        database_url: Overrides ``settings.database_url``
        cache_namespace: Key namespace for the user cache

    Returns:
        Service container; services are built on first use
    """
    url = database_url or settings.database_url or DEFAULT_DATABASE_URL

    container = ServiceContainer()
    container.register_instance(Settings, settings)
    container.register_factory(Database, lambda c: Database(url, c.get(Settings)))
    container.register_factory(
        UserCache, lambda c: build_user_cache(c.get(Settings), namespace=cache_namespace)
    )
    container.register_factory(
        UserService, lambda c: UserService(c.get(UserCache), c.get(Settings))
    )
    return container


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Handles startup and shutdown events.
    """
    container: ServiceContainer = app.state.container
    settings = container.get(Settings)
    database = container.get(Database)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    try:
        async with database.engine.begin() as conn:
            await conn.run_sync(init_schema)
        logger.info("Database connection established")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    logger.info("Shutting down...")
    await container.get(UserCache).close()
    await database.dispose()


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (global settings when omitted)
        container: Prebuilt service container (built from settings when omitted)

    Returns:
        Configured FastAPI application instance
    """
    if container is None:
        container = build_container(settings or get_settings())
    settings = container.get(Settings)

    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.use_json_logs,
    )

    app = FastAPI(
        title=settings.app_name,
        description="User accounts keyed by external identity providers",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    app.include_router(v1_router, prefix=settings.api_v1_prefix)

    return app


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(PyUsersException)
    async def pyusers_exception_handler(
        request: Request,
        exc: PyUsersException,
    ) -> JSONResponse:
        """Handle PyUsers custom exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {"errors": errors},
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error: {exc}")

        # In production, don't expose internal error details
        message = "An unexpected error occurred" if settings.is_production else str(exc)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": message,
                }
            },
        )


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pyusers.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_config=None,
    )
