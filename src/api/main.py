"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    cron_router,
    health_router,
    notifications_router,
    push_router,
    reminders_router,
)
from src.application.services import build_services
from src.config import configure_logging, get_logger, get_settings
from src.core.exceptions import DatabaseError
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Migrates the database, wires the services, tops up every schedule and
    starts the in-app dispatcher; stops them again on shutdown.
    """
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        environment=settings.environment,
    )

    try:
        results = await initialize_database(settings.storage.db_path)
        failed = [r.version for r in results if not r.success]
        if failed:
            raise DatabaseError("migrate", f"failed versions: {', '.join(failed)}")
        logger.info("database_initialized", applied=len(results))

        services = build_services(settings)
        await services.start()
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    app.state.services = services
    logger.info(
        "application_started",
        dispatcher=services.dispatcher.is_running,
        push_enabled=settings.push.enabled,
    )

    yield

    logger.info("application_stopping")
    try:
        await services.close()
    except Exception as e:
        logger.warning("service_shutdown_failed", error=str(e))
    app.state.services = None
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Recurring reminders with in-app and web push notifications",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(cron_router)
    app.include_router(push_router)
    app.include_router(reminders_router)
    app.include_router(notifications_router)

    # Root health endpoint (for k8s/docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
