"""
OpenTelemetry Instrumentation for FastAPI

Creates spans for incoming requests and MongoDB operations. Export is left to
whatever OpenTelemetry SDK/collector the deployment configures.
"""

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from rating_service.core.config import config
from rating_service.core.logger import logger


def instrument_app(app):
    """
    Instrument FastAPI application with OpenTelemetry for automatic span creation.

    Args:
        app: FastAPI application instance
    """
    if not config.tracing_enabled:
        logger.info("OpenTelemetry instrumentation disabled")
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumented with OpenTelemetry")

        if config.storage_backend == "mongodb":
            PymongoInstrumentor().instrument()
            logger.info("PyMongo instrumented with OpenTelemetry")

    except Exception as e:
        logger.error(f"Failed to instrument application: {e}", error=e)
