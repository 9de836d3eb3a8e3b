"""Practice Compliance Engine service entry point.

Initializes the FastAPI application with structured logging configured from
Settings and the API router mounted under /api/v1.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from practice_compliance_engine.api.router import router
from practice_compliance_engine.observability import configure_logging, get_logger
from practice_compliance_engine.settings import get_settings

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    app.state.settings = settings
    logger.info(
        "Compliance engine startup complete",
        service=settings.service_name,
        upcoming_window_days=settings.upcoming_window_days,
        strict_frequency=settings.strict_frequency,
    )

    yield

    logger.info("Compliance engine shutdown complete", service=settings.service_name)


app = FastAPI(
    title="practice-compliance-engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")
