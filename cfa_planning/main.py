# cfa_planning/main.py
"""
FastAPI application for the planning core.

Run with:
    uvicorn cfa_planning.main:app
"""

import logging

from fastapi import FastAPI
from fastapi.responses import Response

from . import __version__
from .core.config import settings
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import scheduling as scheduling_v1

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application and mount the v1 routers."""
    app = FastAPI(
        title="CFA Planning",
        description="Recurring schedule materialization and conflict detection",
        version=__version__,
    )
    app.include_router(scheduling_v1.router, prefix="/api/v1/scheduling")

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "healthy", "environment": settings.environment}

    if settings.metrics_enabled:

        @app.get("/metrics", include_in_schema=False)
        def metrics() -> Response:
            return Response(
                content=prometheus_metrics.get_metrics(),
                media_type=prometheus_metrics.get_content_type(),
            )

    logger.info(f"CFA Planning API started in {settings.environment} mode")
    return app


app = create_app()
