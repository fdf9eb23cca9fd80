"""
analyses.py — Repository Analysis Endpoints (API Layer)

Purpose:
- Start an analysis for a GitHub repository URL.
- Let clients poll an analysis until it reaches "completed" or "error".
- Recalculate the market model of a completed analysis from new hypotheses.

Endpoints:
- POST /api/v1/analyses                         - Start an analysis
- GET  /api/v1/analyses/steps                   - Pipeline step catalogue
- GET  /api/v1/analyses/hypotheses/defaults     - Default hypothesis set
- GET  /api/v1/analyses/{analysis_id}           - Current analysis record
- POST /api/v1/analyses/{analysis_id}/recalculate

Polling contract:
- Fetch every few seconds while status is "pending" or "in-progress".
- Stop once status is "completed" or "error"; no later fetch changes it.

This API module should NOT:
- Run pipeline stages or market formulas itself.
"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.core.exceptions import (
    AnalysisAlreadyRunningError,
    AnalysisNotCompletedError,
    AnalysisNotFoundError,
    HypothesisOutOfRangeError,
    InvalidRepositoryUrlError,
)
from app.core.logging import get_logger
from app.core.store import AnalysisStore, get_store
from app.models.analysis import AnalysisResult, Hypothesis, default_hypotheses
from app.services.analyses import get_analysis, recalculate_analysis, start_analysis
from app.services.analysis.orchestrator import AnalysisOrchestrator, get_orchestrator
from app.services.analysis.stages import PIPELINE_STEPS

logger = get_logger(__name__)

router = APIRouter(
    prefix="/analyses",
    tags=["analyses"]
)

# -----------------------------------------------------------------------------
# Request/Response Schemas
# -----------------------------------------------------------------------------


class StartAnalysisRequest(BaseModel):
    # Optional so a missing URL is reported as 400 like a malformed one
    repositoryUrl: Optional[str] = None


class RecalculateRequest(BaseModel):
    hypotheses: List[Hypothesis]


class PipelineStepOut(BaseModel):
    number: int
    key: str
    title: str
    description: str


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("", response_model=AnalysisResult)
async def create_analysis(
    request: StartAnalysisRequest,
    store: AnalysisStore = Depends(get_store),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """
    Start analyzing a repository.

    Returns the freshly created record (status "pending") immediately; the
    pipeline continues in the background. Poll GET /analyses/{id} for progress.
    """
    try:
        return start_analysis(request.repositoryUrl, store, orchestrator)
    except InvalidRepositoryUrlError as exc:
        logger.warning("Rejected analysis request for %r: %s", request.repositoryUrl, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except AnalysisAlreadyRunningError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.get("/steps", response_model=List[PipelineStepOut])
async def list_pipeline_steps():
    """Titles and descriptions for each value of currentStep (1..6)."""
    return [PipelineStepOut(**asdict(step)) for step in PIPELINE_STEPS]


@router.get("/hypotheses/defaults", response_model=List[Hypothesis])
async def list_default_hypotheses():
    """Hypothesis set attached to every new analysis."""
    return default_hypotheses()


@router.get("/{analysis_id}", response_model=AnalysisResult)
async def read_analysis(analysis_id: str, store: AnalysisStore = Depends(get_store)):
    """
    GET /analyses/{analysis_id}

    Returns the record verbatim, or 404 if the id was never created.
    """
    try:
        return get_analysis(analysis_id, store)
    except AnalysisNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/{analysis_id}/recalculate", response_model=AnalysisResult)
async def recalculate(
    analysis_id: str,
    request: RecalculateRequest,
    store: AnalysisStore = Depends(get_store),
):
    """
    Recompute market sizing and valuation from a full hypothesis set.

    Only allowed once the analysis has completed. Every hypothesis value
    must lie within its own [min, max] bounds.
    """
    try:
        return recalculate_analysis(analysis_id, request.hypotheses, store)
    except AnalysisNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except HypothesisOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except AnalysisNotCompletedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
