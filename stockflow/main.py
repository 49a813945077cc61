# stockflow/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stockflow import models  # noqa: F401  registers every table on Base.metadata
from stockflow.core.config import get_settings
from stockflow.core.exceptions import register_exception_handlers
from stockflow.core.logging_config import configure_logging
from stockflow.database import engine
from stockflow.dependencies import close_notification_queue
from stockflow.routes import auth, health, orders, products, webhooks
from stockflow.scheduler import start_scheduler, stop_scheduler

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(f"Starting stockflow ({settings.ENVIRONMENT})")

    await start_scheduler()
    try:
        yield  # This is where the app runs
    finally:
        await stop_scheduler()
        close_notification_queue()
        await engine.dispose()
        logger.info("Shutdown complete")


app = FastAPI(
    title="Stockflow",
    description="Orders, product catalogue and inventory API",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(webhooks.router)
app.include_router(health.router)  # Health check should be accessible without auth
