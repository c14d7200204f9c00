from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.exception_handlers import register_exception_handlers
from app.api.schemas import HealthOut, iso_timestamp
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMetricsMiddleware, metrics_router
from app.core.middleware.http_logging import HttpLoggingMiddleware
from app.core.settings import get_settings
from app.query.router import router as query_router

setup_logging()
logger = logging.getLogger("app")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Mobile LLM Gateway",
        description=(
            "Forwards prompts to a hosted language model and reshapes replies for "
            "small-screen clients.\n\n"
            "Design principles:\n"
            "- Every reply is normalized into a fixed, bounded-size mobile summary.\n"
            "- Failures are reported as a small set of classified error codes.\n"
            "- Logging and metrics carry metadata only (no prompts, no model output)."
        ),
        docs_url="/swagger",
        redoc_url="/docs",
        openapi_tags=[
            {
                "name": "health",
                "description": "Basic uptime check for load balancers and monitoring.",
            },
            {
                "name": "query",
                "description": "Prompt the model and receive a mobile-optimized summary.",
            },
            {
                "name": "metrics",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running.\n\n"
            "This endpoint intentionally does not call the upstream model so it can be "
            "used safely for basic uptime checks."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="healthy", timestamp=iso_timestamp())

    app.include_router(metrics_router)
    app.include_router(query_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""

    import uvicorn

    settings = get_settings()
    logger.info("LLM gateway starting", extra={"path": f"{settings.host}:{settings.port}"})
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
