"""
FastAPI application factory.

``create_app`` wires logging, middleware, error handlers and routers; the
lifespan validates the role catalog and brings the configured deadline
store online before the first request.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deadline_tracker.api.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    setup_exception_handlers,
)
from deadline_tracker.api.routes import deadlines_router, health_router, sessions_router
from deadline_tracker.config import Settings, configure_logging, get_logger, get_settings
from deadline_tracker.core.exceptions import ConfigurationError
from deadline_tracker.core.services import get_template_catalog

logger = get_logger(__name__)


async def _open_storage(settings: Settings) -> None:
    if settings.storage.backend != "sqlite":
        logger.warning("volatile_storage_backend", backend=settings.storage.backend)
        return

    from deadline_tracker.infrastructure.storage.sqlite import get_pool
    from deadline_tracker.infrastructure.storage.sqlite.migrations import run_migrations

    results = await run_migrations()
    failed = [r.version for r in results if not r.success]
    if failed:
        raise ConfigurationError(
            f"Database migration failed: {', '.join(failed)}",
            code="MIGRATION_FAILED",
            details={"versions": failed},
        )
    await get_pool()
    logger.info("database_ready", db_path=str(settings.storage.db_path), applied=len(results))


async def _close_storage(settings: Settings) -> None:
    if settings.storage.backend == "sqlite":
        from deadline_tracker.infrastructure.storage.sqlite import close_pool

        await close_pool()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Fail fast on a bad catalog or schema; release the pool on shutdown."""
    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        backend=settings.storage.backend,
    )

    catalog = get_template_catalog()
    logger.info("template_catalog_ready", roles=catalog.roles)
    await _open_storage(settings)

    try:
        yield
    finally:
        await _close_storage(settings)
        logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Compliance deadlines with role-based seeding and recurrence",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: errors are caught outside the request log
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    for router in (health_router, deadlines_router, sessions_router):
        app.include_router(router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "deadline_tracker.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
