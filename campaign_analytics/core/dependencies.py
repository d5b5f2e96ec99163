"""
FastAPI dependency injection module.

Provides:
- get_pipeline_context: the application's PipelineContext (data source + run
  tracker), created in the lifespan handler and stored on app.state
- PipelineContextDep: Annotated alias for endpoint signatures

Tests swap the context through app.dependency_overrides:

    app.dependency_overrides[get_pipeline_context] = lambda: PipelineContext(source=fake)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from campaign_analytics.services.runs import PipelineContext


# =============================================================================
# Pipeline Context Dependency
# =============================================================================

def get_pipeline_context(request: Request) -> PipelineContext:
    """
    Return the PipelineContext attached to the application.

    Raises:
        HTTPException 503: If the lifespan handler could not build a data source.
    """
    context = getattr(request.app.state, 'pipeline_context', None)
    if context is None:
        raise HTTPException(status_code=503, detail="Data source not available")
    return context


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

PipelineContextDep = Annotated[PipelineContext, Depends(get_pipeline_context)]
