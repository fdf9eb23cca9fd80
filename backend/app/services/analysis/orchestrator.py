"""
orchestrator.py — Repository Analysis Pipeline Orchestrator

Drives one analysis record through its stages:

    pending → in-progress → completed | error

    step 1  technical analysis       ← repository URL
    step 2  product function         ← repository URL + step 1
    step 3  similar companies        ← step 2
    step 4  market analysis          ← steps 2, 3
    step 5  valuation estimate       ← steps 3, 4
    step 6  completed                (status transition only)

Each stage result is written back to the store before the next stage starts,
so readers always observe results in stage order. Any stage failure ends the
run with status "error"; nothing is retried. Runs are started detached from
the request that created the record and communicate only through the store.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Set

from app.core.exceptions import AnalysisAlreadyRunningError
from app.core.logging import get_logger
from app.core.store import AnalysisStore, get_store
from app.models.analysis import FINAL_STEP, AnalysisResult, AnalysisStatus
from app.services.analysis.stages import StageFunctions, default_stage_functions

logger = get_logger(__name__)


class AnalysisOrchestrator:
    """
    Runs analysis pipelines against an `AnalysisStore`.

    At most one run per analysis id: `start()` refuses ids that already have
    an active run or whose record has left the "pending" state.
    """

    def __init__(self, store: AnalysisStore, stages: Optional[StageFunctions] = None) -> None:
        self._store = store
        self._stages = stages or default_stage_functions()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._active: Set[str] = set()

    # ------------------------------------------------------------------ #
    @property
    def store(self) -> AnalysisStore:
        return self._store

    def is_running(self, analysis_id: str) -> bool:
        return analysis_id in self._active

    def task_for(self, analysis_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(analysis_id)

    def start(self, analysis_id: str) -> asyncio.Task:
        """
        Schedule a detached pipeline run on the running event loop.

        Raises:
            AnalysisNotFoundError if the id is unknown.
            AnalysisAlreadyRunningError if a run is active or the record
            is no longer pending.
        """
        if analysis_id in self._active:
            raise AnalysisAlreadyRunningError(f"Analysis {analysis_id} is already running")

        record = self._store.get(analysis_id)
        if record.status != AnalysisStatus.PENDING:
            raise AnalysisAlreadyRunningError(
                f"Analysis {analysis_id} cannot be started from status '{record.status.value}'"
            )

        loop = asyncio.get_running_loop()
        self._active.add(analysis_id)
        task = loop.create_task(self.run(analysis_id), name=f"analysis:{analysis_id}")
        self._tasks[analysis_id] = task
        task.add_done_callback(lambda _t: self._release(analysis_id))
        return task

    def _release(self, analysis_id: str) -> None:
        self._active.discard(analysis_id)
        self._tasks.pop(analysis_id, None)

    # ------------------------------------------------------------------ #
    async def run(self, analysis_id: str) -> AnalysisResult:
        """
        Execute every stage in order and return the terminal record.

        Stage failures are recorded on the record (status "error") and
        logged; they are never raised to the caller.

        Raises:
            AnalysisAlreadyRunningError if the record is not pending.
        """
        def begin(r: AnalysisResult) -> AnalysisResult:
            if r.status != AnalysisStatus.PENDING:
                raise AnalysisAlreadyRunningError(
                    f"Analysis {analysis_id} cannot be run from status '{r.status.value}'"
                )
            return r.model_copy(update={"status": AnalysisStatus.IN_PROGRESS, "currentStep": 1})

        record = self._store.update(analysis_id, begin)
        repository_url = record.repositoryUrl
        logger.info("Starting analysis %s for %s", analysis_id, repository_url)

        stages = self._stages
        completed = 0
        try:
            technical = await stages.technical(repository_url)
            completed = self._record_stage(analysis_id, 1, technicalAnalysis=technical)

            product = await stages.product_function(repository_url, technical)
            completed = self._record_stage(analysis_id, 2, productFunction=product)

            companies = await stages.similar_companies(product)
            completed = self._record_stage(analysis_id, 3, similarCompanies=list(companies))

            market = await stages.market_analysis(product, companies)
            completed = self._record_stage(analysis_id, 4, marketAnalysis=market)

            valuation = await stages.valuation(market, companies)
            completed = self._record_stage(analysis_id, 5, valuationEstimate=valuation)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception(
                "Analysis %s failed after step %s: %s", analysis_id, completed, exc
            )
            return self._store.update(
                analysis_id,
                lambda r: r.model_copy(
                    update={"status": AnalysisStatus.ERROR, "currentStep": completed}
                ),
            )

        final = self._store.update(
            analysis_id,
            lambda r: r.model_copy(
                update={"status": AnalysisStatus.COMPLETED, "currentStep": FINAL_STEP}
            ),
        )
        logger.info("Analysis %s completed for %s", analysis_id, repository_url)
        return final

    def _record_stage(self, analysis_id: str, step: int, **sections: Any) -> int:
        self._store.update(
            analysis_id,
            lambda r: r.model_copy(update={**sections, "currentStep": step}),
        )
        logger.info("Analysis %s: step %s/%s stored", analysis_id, step, FINAL_STEP)
        return step


# -----------------------------------------------------------------------------
# Shared instance & FastAPI dependency
# -----------------------------------------------------------------------------

_orchestrator: Optional[AnalysisOrchestrator] = None


def get_orchestrator() -> AnalysisOrchestrator:
    """FastAPI dependency: the process-wide orchestrator bound to the shared store."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AnalysisOrchestrator(get_store())
    return _orchestrator
