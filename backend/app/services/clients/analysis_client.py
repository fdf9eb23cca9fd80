"""
analysis_client.py — HTTP client for the analysis API.

Responsibilities:
- Start an analysis, fetch it, and recalculate it over HTTP
- Follow a running analysis by polling at a fixed interval until it reaches
  "completed" or "error" (no push channel exists)
- Stateless apart from the underlying session
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from app.core.config import settings
from app.core.exceptions import AnalysisError, AnalysisNotFoundError
from app.core.logging import get_logger
from app.models.analysis import AnalysisResult, Hypothesis

logger = get_logger(__name__)


class AnalysisClientError(AnalysisError):
    """Raised when the API answers with an unexpected status code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AnalysisPollTimeoutError(AnalysisClientError):
    """Raised when an analysis is still running after the poll timeout."""


@dataclass(frozen=True)
class AnalysisClientSettings:
    base_url: str
    poll_interval_seconds: float
    poll_timeout_seconds: float
    timeout_seconds: int

    @classmethod
    def from_app_settings(cls) -> "AnalysisClientSettings":
        return cls(
            base_url=settings.ANALYSIS_API_BASE_URL,
            poll_interval_seconds=settings.ANALYSIS_POLL_INTERVAL_SECONDS,
            poll_timeout_seconds=settings.ANALYSIS_POLL_TIMEOUT_SECONDS,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        )


class AnalysisClient:
    """
    Thin wrapper over `requests.Session` for the /analyses endpoints.

    `sleep` is injectable so polling can be driven without real delays.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        config: Optional[AnalysisClientSettings] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._session = session or requests.Session()
        self._config = config or AnalysisClientSettings.from_app_settings()
        self._sleep = sleep
        self._session.headers.update({"Accept": "application/json"})

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def start_analysis(self, repository_url: str) -> AnalysisResult:
        payload = self._request("POST", "/analyses", json={"repositoryUrl": repository_url})
        return AnalysisResult.model_validate(payload)

    def get_analysis(self, analysis_id: str) -> AnalysisResult:
        payload = self._request("GET", f"/analyses/{analysis_id}", analysis_id=analysis_id)
        return AnalysisResult.model_validate(payload)

    def recalculate(self, analysis_id: str, hypotheses: List[Hypothesis]) -> AnalysisResult:
        payload = self._request(
            "POST",
            f"/analyses/{analysis_id}/recalculate",
            json={"hypotheses": [h.model_dump() for h in hypotheses]},
            analysis_id=analysis_id,
        )
        return AnalysisResult.model_validate(payload)

    def wait_for_analysis(
        self,
        analysis_id: str,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> AnalysisResult:
        """
        Poll until the analysis reaches a terminal status and return it.

        Raises:
            AnalysisNotFoundError if the id is unknown.
            AnalysisPollTimeoutError if still running after `timeout` seconds.
        """
        interval = self._config.poll_interval_seconds if interval is None else interval
        timeout = self._config.poll_timeout_seconds if timeout is None else timeout

        options: Dict[str, Any] = {
            "retry": retry_if_result(lambda record: not record.status.is_terminal),
            "wait": wait_fixed(interval),
            "stop": stop_after_delay(timeout),
            "before_sleep": before_sleep_log(logger, logging.DEBUG),
        }
        if self._sleep is not None:
            options["sleep"] = self._sleep

        try:
            return Retrying(**options)(self.get_analysis, analysis_id)
        except RetryError as exc:
            last = exc.last_attempt.result()
            raise AnalysisPollTimeoutError(
                f"Analysis {analysis_id} still '{last.status.value}' "
                f"at step {last.currentStep} after {timeout:g}s"
            ) from exc

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #
    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        analysis_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = self._config.base_url.rstrip("/") + path
        response = self._session.request(
            method, url, json=json, timeout=self._config.timeout_seconds
        )
        if response.status_code == 404 and analysis_id is not None:
            raise AnalysisNotFoundError(analysis_id)
        if response.status_code >= 400:
            raise AnalysisClientError(
                f"{method} {url} failed with {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response.json()


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)
