"""
Tests for the analysis service layer outside of HTTP.
"""

from __future__ import annotations

import pytest

from app.models.analysis import AnalysisStatus
from app.services.analyses import start_analysis

from conftest import VALID_REPO_URL


def test_start_without_event_loop_marks_record_error(store, orchestrator):
    with pytest.raises(RuntimeError):
        start_analysis(VALID_REPO_URL, store, orchestrator)

    [analysis_id] = store.ids()
    record = store.get(analysis_id)
    assert record.status == AnalysisStatus.ERROR
    assert record.currentStep == 0
    assert not orchestrator.is_running(analysis_id)
