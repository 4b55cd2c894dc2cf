"""Property analysis API route.

Thin adapter: validates the request body, runs the orchestrator and maps
typed pipeline errors onto HTTP status codes.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from propyield.app.config import get_settings
from propyield.domain.errors import AnalysisInputError, ExternalDependencyError
from propyield.domain.schemas import AnalysisRequest, AnalysisResult
from propyield.services.analysis_orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    """Process-wide orchestrator built from settings."""
    return AnalysisOrchestrator.from_settings(get_settings())


@router.post("", response_model=AnalysisResult, response_model_by_alias=True)
async def analyze_property(
    body: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Run the full monetization analysis for one property."""
    try:
        return await orchestrator.run(body)
    except AnalysisInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ExternalDependencyError as exc:
        logger.error("Analysis aborted at %s: %s", exc.step.value, exc.message)
        raise HTTPException(
            status_code=502,
            detail={"step": exc.step.value, "message": exc.message},
        )
