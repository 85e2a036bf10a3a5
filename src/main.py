"""
Production FastAPI Application

Payment webhooks, health and metrics; the reservation and refund use cases
are wired for the surrounding API through the same container.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import os

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Payments Service] Starting up...')

    tracing = TracingConfig(service_name='ticketing-payments')
    tracing.setup()
    tracing.instrument_httpx()
    Logger.base.info('📊 [Payments Service] OpenTelemetry tracing configured')

    setup()
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Payments Service] Dependency injection wired')

    database = container.database()
    if settings.DEBUG:
        # Local development only; deployed schemas are managed by migrations
        await database.create_tables()
        Logger.base.info('🗄️  [Payments Service] Tables ensured (DEBUG)')

    Logger.base.info('✅ [Payments Service] Ready to serve requests')
    yield
    Logger.base.info('🛑 [Payments Service] Shutting down...')

    await cleanup()
    Logger.base.info('🗄️  [Payments Service] Database and notifier closed')

    tracing.shutdown()
    Logger.base.info('📊 [Payments Service] Tracing shutdown complete')

    container.unwire()
    Logger.base.info('👋 [Payments Service] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'src.main:app',
        host='0.0.0.0',
        port=int(os.getenv('PORT', '8000')),
        reload=settings.DEBUG,
        log_level='info',
    )
