"""
store.py — In-Process Analysis Record Store

Purpose:
- Hold every analysis record for the lifetime of the process.
- Be the single source of truth for analysis status: the pipeline writes
  here, API requests read from here.
- Expose a FastAPI dependency `get_store()` returning the shared store.

Key Characteristics:
- Plain dict behind a mutex; no eviction, no TTL.
- Whole-record semantics: callers replace a record, never patch a field.
- Records are copied on the way in and out so no caller ever holds a
  reference to the stored object.
- `update()` performs read-modify-write under the lock, so two writers to
  the same id cannot lose each other's update.

This module does NOT:
- Persist anything across restarts.
- Run pipeline stages or compute valuations.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List

from app.core.exceptions import AnalysisNotFoundError, DuplicateAnalysisError
from app.core.logging import get_logger
from app.models.analysis import AnalysisResult

logger = get_logger(__name__)


class AnalysisStore:
    """Keyed map analysis id → AnalysisResult, safe for concurrent use."""

    def __init__(self) -> None:
        self._records: Dict[str, AnalysisResult] = {}
        self._lock = threading.Lock()

    def create(self, record: AnalysisResult) -> None:
        """Insert a new record. Raises DuplicateAnalysisError if the id exists."""
        with self._lock:
            if record.id in self._records:
                raise DuplicateAnalysisError(f"Analysis {record.id} already exists")
            self._records[record.id] = record.model_copy(deep=True)
        logger.debug("Created analysis %s", record.id)

    def get(self, analysis_id: str) -> AnalysisResult:
        """Return a copy of the record. Raises AnalysisNotFoundError if unknown."""
        with self._lock:
            record = self._records.get(analysis_id)
            if record is None:
                raise AnalysisNotFoundError(analysis_id)
            return record.model_copy(deep=True)

    def put(self, analysis_id: str, record: AnalysisResult) -> None:
        """Replace an existing record wholesale."""
        with self._lock:
            if analysis_id not in self._records:
                raise AnalysisNotFoundError(analysis_id)
            self._records[analysis_id] = record.model_copy(deep=True)

    def update(
        self,
        analysis_id: str,
        mutate: Callable[[AnalysisResult], AnalysisResult],
    ) -> AnalysisResult:
        """
        Atomically read, transform and write back one record.

        `mutate` receives a private copy and returns the record to store.
        It runs while the lock is held, so it must not block or await.
        Exceptions raised by `mutate` leave the stored record untouched.
        """
        with self._lock:
            current = self._records.get(analysis_id)
            if current is None:
                raise AnalysisNotFoundError(analysis_id)
            updated = mutate(current.model_copy(deep=True))
            self._records[analysis_id] = updated.model_copy(deep=True)
            return updated.model_copy(deep=True)

    def __contains__(self, analysis_id: object) -> bool:
        with self._lock:
            return analysis_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._records)


# -----------------------------------------------------------------------------
# Shared instance & FastAPI dependency
# -----------------------------------------------------------------------------

_store = AnalysisStore()


def get_store() -> AnalysisStore:
    """
    FastAPI dependency: returns the process-wide analysis store.

    Usage in API endpoint:
        def endpoint(store: AnalysisStore = Depends(get_store)):
            store.get(analysis_id)

    Tests swap it out with `app.dependency_overrides[get_store]`.
    """
    return _store
