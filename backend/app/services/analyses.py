"""
analyses.py — Creating, Inspecting and Recalculating Analyses

Purpose:
- Provide the three operations the API exposes:
    * start an analysis for a repository URL
    * fetch the current state of an analysis
    * recalculate the market model of a completed analysis
- Keeps validation and store access out of the API layer.

This module does NOT:
- Execute pipeline stages (see app.services.analysis.orchestrator).
- Contain market formulas (see app.services.modeling.market_model).
"""

from typing import List

from app.core.exceptions import AnalysisNotCompletedError
from app.core.logging import get_logger
from app.core.store import AnalysisStore
from app.models.analysis import AnalysisResult, AnalysisStatus, Hypothesis, new_analysis_record
from app.services.analysis.orchestrator import AnalysisOrchestrator
from app.services.modeling.market_model import recalculate
from app.validation.validator import validate_hypotheses, validate_repository_url

logger = get_logger(__name__)


def start_analysis(
    repository_url: str,
    store: AnalysisStore,
    orchestrator: AnalysisOrchestrator,
) -> AnalysisResult:
    """
    Validate the URL, create a pending record and schedule its pipeline run.

    Must be called with an event loop running (the run is an asyncio task).
    Returns the record as created: status "pending", currentStep 0.

    Raises:
        InvalidRepositoryUrlError before anything is stored.
        Whatever `orchestrator.start` raises, after marking the record "error".
    """
    url = validate_repository_url(repository_url)
    record = new_analysis_record(url)
    store.create(record)
    try:
        orchestrator.start(record.id)
    except Exception:
        logger.exception("Could not schedule analysis %s", record.id)
        store.update(record.id, lambda r: r.model_copy(update={"status": AnalysisStatus.ERROR}))
        raise
    logger.info("Queued analysis %s for %s", record.id, url)
    return record


def get_analysis(analysis_id: str, store: AnalysisStore) -> AnalysisResult:
    """Return the current record. Raises AnalysisNotFoundError if unknown."""
    return store.get(analysis_id)


def recalculate_analysis(
    analysis_id: str,
    hypotheses: List[Hypothesis],
    store: AnalysisStore,
) -> AnalysisResult:
    """
    Re-run the market model of a completed analysis with new hypotheses.

    Only `marketAnalysis` and `valuationEstimate` change; status,
    currentStep and the other sections are left as they are. The updated
    record is written back to the store and returned.

    Raises:
        AnalysisNotFoundError if the id is unknown.
        HypothesisOutOfRangeError if a value lies outside its bounds.
        AnalysisNotCompletedError if the pipeline has not completed.
    """
    store.get(analysis_id)
    validate_hypotheses(hypotheses)

    def apply(record: AnalysisResult) -> AnalysisResult:
        if record.status != AnalysisStatus.COMPLETED:
            raise AnalysisNotCompletedError(
                f"Analysis {analysis_id} is '{record.status.value}', not completed"
            )
        market, valuation = recalculate(
            hypotheses, record.marketAnalysis, record.valuationEstimate
        )
        return record.model_copy(
            update={"marketAnalysis": market, "valuationEstimate": valuation}
        )

    updated = store.update(analysis_id, apply)
    logger.info("Recalculated analysis %s with %s hypotheses", analysis_id, len(hypotheses))
    return updated
