"""
Pytest fixtures for the analysis backend.

Every test gets a fresh in-memory store; stand-in stage delays are set to
zero so pipelines finish immediately.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import pytest

from app.core.config import settings
from app.core.store import AnalysisStore, get_store
from app.models.analysis import AnalysisResult
from app.services.analysis import stages as stand_ins
from app.services.analysis.orchestrator import AnalysisOrchestrator, get_orchestrator
from app.services.analysis.stages import StageFunctions

VALID_REPO_URL = "https://github.com/vercel/next.js"


class StageFailure(RuntimeError):
    """Raised by RecordingStages when told to fail."""


class RecordingStages:
    """
    Stage functions that delegate to the stand-ins, record every call with its
    arguments, snapshot the stored record before each stage returns, and can
    be told to fail at a given step.
    """

    def __init__(self, store: AnalysisStore, fail_at: Optional[int] = None):
        self.store = store
        self.fail_at = fail_at
        self.calls: List[Dict[str, Any]] = []
        self.snapshots: List[AnalysisResult] = []

    def _observe(self, step: int, args: tuple) -> None:
        self.calls.append({"step": step, "args": args})
        for analysis_id in self.store.ids():
            self.snapshots.append(self.store.get(analysis_id))
        if self.fail_at == step:
            raise StageFailure(f"stage {step} exploded")

    async def technical(self, *args):
        self._observe(1, args)
        return await stand_ins.analyze_technical(*args)

    async def product_function(self, *args):
        self._observe(2, args)
        return await stand_ins.analyze_product_function(*args)

    async def similar_companies(self, *args):
        self._observe(3, args)
        return await stand_ins.find_similar_companies(*args)

    async def market_analysis(self, *args):
        self._observe(4, args)
        return await stand_ins.analyze_market(*args)

    async def valuation(self, *args):
        self._observe(5, args)
        return await stand_ins.estimate_valuation(*args)

    def bundle(self) -> StageFunctions:
        return StageFunctions(
            technical=self.technical,
            product_function=self.product_function,
            similar_companies=self.similar_companies,
            market_analysis=self.market_analysis,
            valuation=self.valuation,
        )

    @property
    def steps_called(self) -> List[int]:
        return [c["step"] for c in self.calls]


@pytest.fixture(autouse=True)
def instant_stages(monkeypatch):
    monkeypatch.setattr(settings, "STAGE_DELAY_SECONDS", 0.0)


@pytest.fixture
def store() -> AnalysisStore:
    return AnalysisStore()


@pytest.fixture
def orchestrator(store) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(store)


@pytest.fixture
def client(store, orchestrator):
    """FastAPI TestClient bound to the per-test store and orchestrator."""
    from fastapi.testclient import TestClient

    from app.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    # The context manager keeps the event loop alive between requests so
    # background pipeline runs can progress.
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def poll_until_terminal(client, analysis_id: str, attempts: int = 200, interval: float = 0.01) -> dict:
    """Fetch the analysis until its status is completed or error."""
    body: dict = {}
    for _ in range(attempts):
        response = client.get(f"/api/v1/analyses/{analysis_id}")
        assert response.status_code == 200
        body = response.json()
        if body["status"] in ("completed", "error"):
            return body
        time.sleep(interval)
    raise AssertionError(f"analysis {analysis_id} never finished: {body}")
