"""
exceptions.py — Domain Exceptions for the Analysis Backend

Purpose:
- Give the service layer one vocabulary of failures.
- Let the API layer map each failure to a single HTTP status code.

Services raise these; routers translate them into `HTTPException`.
Stage failures inside a pipeline run are never raised to callers. They are
recorded on the analysis record instead.
"""


class AnalysisError(RuntimeError):
    """Base exception for analysis backend failures."""


class InvalidRepositoryUrlError(AnalysisError):
    """Raised when the submitted repository URL is missing or ill-formed."""


class AnalysisNotFoundError(AnalysisError):
    """Raised when an analysis id is unknown to the store."""

    def __init__(self, analysis_id: str):
        super().__init__(analysis_id)
        self.analysis_id = analysis_id

    def __str__(self) -> str:
        return f"Analysis {self.analysis_id} not found"


class DuplicateAnalysisError(AnalysisError):
    """Raised when creating a record under an id that already exists."""


class AnalysisAlreadyRunningError(AnalysisError):
    """Raised when a pipeline run is requested for an id that is not startable."""


class AnalysisNotCompletedError(AnalysisError):
    """Raised when recalculating an analysis that has not reached `completed`."""


class HypothesisOutOfRangeError(AnalysisError):
    """Raised when a hypothesis value lies outside its own [min, max] bounds."""
