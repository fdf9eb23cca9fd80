"""
Tests for the polling HTTP client.

A scripted fake session stands in for `requests.Session`; polling sleeps are
recorded instead of slept.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest

from app.core.exceptions import AnalysisNotFoundError
from app.models.analysis import AnalysisStatus, default_hypotheses, new_analysis_record
from app.services.clients.analysis_client import (
    AnalysisClient,
    AnalysisClientError,
    AnalysisClientSettings,
    AnalysisPollTimeoutError,
)

BASE_URL = "http://analysis.test/api/v1"


class FakeResponse:
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


class FakeSession:
    """Replays queued responses and records every request."""

    def __init__(self, responses: List[FakeResponse]):
        self.headers: Dict[str, str] = {}
        self.responses = list(responses)
        self.requests: List[Tuple[str, str, Any]] = []

    def request(self, method, url, json=None, timeout=None):
        self.requests.append((method, url, json))
        return self.responses.pop(0)


def record_payload(status: AnalysisStatus, step: int) -> Dict[str, Any]:
    record = new_analysis_record("https://github.com/vercel/next.js")
    record = record.model_copy(update={"id": "analysis_1_abc", "status": status, "currentStep": step})
    return record.model_dump(mode="json")


def make_client(responses: List[FakeResponse], sleeps: List[float]) -> Tuple[AnalysisClient, FakeSession]:
    session = FakeSession(responses)
    config = AnalysisClientSettings(
        base_url=BASE_URL,
        poll_interval_seconds=2.0,
        poll_timeout_seconds=60.0,
        timeout_seconds=5,
    )
    return AnalysisClient(session=session, config=config, sleep=sleeps.append), session


def test_start_analysis_posts_repository_url():
    sleeps: List[float] = []
    client, session = make_client([FakeResponse(200, record_payload(AnalysisStatus.PENDING, 0))], sleeps)

    record = client.start_analysis("https://github.com/vercel/next.js")

    assert record.status == AnalysisStatus.PENDING
    assert session.requests == [
        ("POST", f"{BASE_URL}/analyses", {"repositoryUrl": "https://github.com/vercel/next.js"})
    ]
    assert session.headers["Accept"] == "application/json"


def test_wait_for_analysis_polls_until_terminal():
    sleeps: List[float] = []
    client, session = make_client(
        [
            FakeResponse(200, record_payload(AnalysisStatus.PENDING, 0)),
            FakeResponse(200, record_payload(AnalysisStatus.IN_PROGRESS, 2)),
            FakeResponse(200, record_payload(AnalysisStatus.IN_PROGRESS, 4)),
            FakeResponse(200, record_payload(AnalysisStatus.COMPLETED, 6)),
        ],
        sleeps,
    )

    record = client.wait_for_analysis("analysis_1_abc")

    assert record.status == AnalysisStatus.COMPLETED
    assert record.currentStep == 6
    assert len(session.requests) == 4
    assert all(r[0] == "GET" and r[1].endswith("/analyses/analysis_1_abc") for r in session.requests)
    assert sleeps == [2.0, 2.0, 2.0]


def test_wait_for_analysis_stops_on_error_status():
    sleeps: List[float] = []
    client, session = make_client(
        [
            FakeResponse(200, record_payload(AnalysisStatus.IN_PROGRESS, 2)),
            FakeResponse(200, record_payload(AnalysisStatus.ERROR, 2)),
        ],
        sleeps,
    )

    record = client.wait_for_analysis("analysis_1_abc", interval=0.5)

    assert record.status == AnalysisStatus.ERROR
    assert sleeps == [0.5]


def test_wait_for_analysis_times_out():
    sleeps: List[float] = []
    client, _ = make_client([FakeResponse(200, record_payload(AnalysisStatus.IN_PROGRESS, 3))], sleeps)

    with pytest.raises(AnalysisPollTimeoutError, match="step 3"):
        client.wait_for_analysis("analysis_1_abc", timeout=0)


def test_unknown_analysis_raises_not_found_without_polling():
    sleeps: List[float] = []
    client, session = make_client([FakeResponse(404, {"detail": "Analysis x not found"})], sleeps)

    with pytest.raises(AnalysisNotFoundError):
        client.wait_for_analysis("analysis_1_abc")
    assert len(session.requests) == 1
    assert sleeps == []


def test_validation_error_surfaces_detail():
    sleeps: List[float] = []
    client, _ = make_client([FakeResponse(400, {"detail": "Invalid GitHub repository URL"})], sleeps)

    with pytest.raises(AnalysisClientError, match="Invalid GitHub repository URL") as excinfo:
        client.start_analysis("not-a-url")
    assert excinfo.value.status_code == 400


def test_recalculate_sends_full_hypothesis_set():
    sleeps: List[float] = []
    client, session = make_client([FakeResponse(200, record_payload(AnalysisStatus.COMPLETED, 6))], sleeps)

    client.recalculate("analysis_1_abc", default_hypotheses())

    method, url, body = session.requests[0]
    assert method == "POST"
    assert url == f"{BASE_URL}/analyses/analysis_1_abc/recalculate"
    assert [h["key"] for h in body["hypotheses"]] == ["avgRevenue", "marketShare", "margin", "growthRate"]
