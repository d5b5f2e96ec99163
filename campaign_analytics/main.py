"""
FastAPI application entry point for the Campaign Analytics API.

Configures logging and CORS, builds the data source and pipeline context at
startup, and registers the metrics router.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campaign_analytics import __version__
from campaign_analytics.api import api_router
from campaign_analytics.core.config import get_settings
from campaign_analytics.core.database import close_db
from campaign_analytics.services.datasource import build_data_source
from campaign_analytics.services.runs import PipelineContext

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup:
        - Build the configured data source
        - Attach a PipelineContext to app.state

    On shutdown:
        - Close the database connection pool (no-op for the Supabase source)
    """
    logger.info("Campaign Analytics API starting")
    app.state.pipeline_context = None
    try:
        source = await build_data_source(get_settings())
        app.state.pipeline_context = PipelineContext(source=source)
        logger.info("Pipeline context initialized")
    except Exception as e:
        logger.error(f"Failed to initialize data source: {e}")
        # Continue startup; metrics endpoints answer 503 until restarted with a working source

    yield

    logger.info("Campaign Analytics API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Campaign Analytics API",
    version=__version__,
    description=(
        "Aggregation service for outbound campaign reporting. "
        "Provides campaign stats, quick view, sales, funnel, firmographic "
        "and deep insight endpoints."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint providing API information."""
    return {
        "name": "Campaign Analytics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campaign_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
