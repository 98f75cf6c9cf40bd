"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tariffsync.core.config import get_settings
from tariffsync.core.database import get_engine, get_session_maker
from tariffsync.core.exceptions import register_exception_handlers
from tariffsync.core.health import router as health_router
from tariffsync.core.logging import configure_logging, get_logger
from tariffsync.core.middleware import RequestIdMiddleware
from tariffsync.features.export.routes import router as export_router
from tariffsync.features.export.service import ExportService
from tariffsync.features.export.sheets import GoogleSheetsClient, SheetsError
from tariffsync.features.sync.pipeline import SyncPipeline
from tariffsync.features.sync.routes import router as sync_router
from tariffsync.features.sync.scheduler import SyncScheduler
from tariffsync.features.tariffs.client import WbTariffsClient
from tariffsync.features.tariffs.routes import router as tariffs_router
from tariffsync.features.tariffs.service import TariffService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown.

    Builds the provider client, Sheets client, pipeline and scheduler once and
    parks them on ``app.state``. Missing Google credentials disable export but
    never block startup.

    Args:
        app: FastAPI application instance.

    Yields:
        None after startup, cleans up on shutdown.
    """
    settings = get_settings()

    # Startup
    configure_logging()
    logger.info(
        "app.startup_started",
        app_name=settings.app_name,
        app_env=settings.app_env,
        debug=settings.debug,
    )

    wb_client = WbTariffsClient.from_settings(settings)
    sheets_client = GoogleSheetsClient.from_settings(settings)
    try:
        await sheets_client.initialize()
    except SheetsError as e:
        logger.warning("app.sheets_unavailable", error=e.message)

    tariff_service = TariffService()
    export_service = ExportService(sheets_client, tariff_service)
    pipeline = SyncPipeline(
        session_maker=get_session_maker(),
        client=wb_client,
        export_service=export_service,
        tariff_service=tariff_service,
    )
    scheduler = SyncScheduler(pipeline, settings.scheduler_interval_hours)

    app.state.wb_client = wb_client
    app.state.sheets_client = sheets_client
    app.state.export_service = export_service
    app.state.pipeline = pipeline
    app.state.scheduler = scheduler

    if settings.scheduler_enabled:
        await scheduler.start()
    else:
        logger.info("app.scheduler_disabled")

    logger.info("app.startup_completed", sheets_initialized=sheets_client.is_initialized())

    yield

    # Shutdown
    if scheduler.is_running:
        scheduler.stop()
    await scheduler.drain()
    await wb_client.aclose()
    await sheets_client.aclose()
    await get_engine().dispose()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Wildberries box tariff sync with Google Sheets export",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware
    app.add_middleware(RequestIdMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(tariffs_router)
    app.include_router(sync_router)
    app.include_router(export_router)

    return app


app = create_app()
