"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from zimtax.advisory import AdvisoryService
from zimtax.api.routes import router
from zimtax.calculators.errors import InvalidInputError, RateTableError
from zimtax.llm.gateway import LLMGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: configure logging and build the advisory service."""
    logging.basicConfig(level=settings.log_level)
    logger.info("Starting up (tax year %s)...", settings.tax_year)

    app.state.advisory = AdvisoryService(LLMGateway())

    yield

    logger.info("Shutting down...")


async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": exc.message, "field": exc.field}, status_code=422)


async def rate_table_handler(request: Request, exc: RateTableError) -> JSONResponse:
    logger.error("Rate table error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": "Tax rate table is misconfigured"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine errors to HTTP responses."""
    app.add_exception_handler(InvalidInputError, invalid_input_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateTableError, rate_table_handler)  # type: ignore[arg-type]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Zimbabwe Tax Engine", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(router)
    return app
