"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from payroll_engine.api.routes import router
from payroll_engine.calculators.tax_data import shipped_tax_years

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: load and validate tax-year tables. Shutdown: nothing to release."""
    logging.basicConfig(level=settings.log_level)
    logger.info("Starting up...")

    # Raises ConfigurationInvariantViolation on a broken table, failing startup.
    app.state.tax_years = shipped_tax_years()
    if settings.default_tax_year not in app.state.tax_years:
        logger.warning("Default tax year %s is not configured", settings.default_tax_year)

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Payroll Deduction Engine", lifespan=lifespan)
    app.include_router(router)
    return app
