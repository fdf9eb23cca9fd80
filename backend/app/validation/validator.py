"""
validator.py — Core validation logic for analysis inputs.

Implements the two gates in front of the pipeline and the market model:
- repository URL well-formedness (owner/repository path on github.com)
- hypothesis bounds (min <= value <= max, with the default bounds for known keys)
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional

from app.core.exceptions import HypothesisOutOfRangeError, InvalidRepositoryUrlError
from app.models.analysis import DEFAULT_HYPOTHESES, Hypothesis

GITHUB_REPOSITORY_PATTERN = re.compile(
    r"^https://github\.com/[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+/?$"
)


def is_valid_repository_url(url: Optional[str]) -> bool:
    """True if `url` (after trimming) is an https://github.com/<owner>/<repo> URL."""
    if not isinstance(url, str):
        return False
    return GITHUB_REPOSITORY_PATTERN.match(url.strip()) is not None


def validate_repository_url(url: Optional[str]) -> str:
    """
    Return the trimmed repository URL or raise InvalidRepositoryUrlError.

    Args:
        url: Raw value submitted by the client (may be None)

    Returns:
        The URL with surrounding whitespace removed
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidRepositoryUrlError("Repository URL is required")

    trimmed = url.strip()
    if not is_valid_repository_url(trimmed):
        raise InvalidRepositoryUrlError("Invalid GitHub repository URL")
    return trimmed


def find_out_of_range(hypotheses: Iterable[Hypothesis]) -> List[Hypothesis]:
    """
    Return every hypothesis that fails its bounds check.

    Known keys are held to the default set's bounds: the submitted
    min/max must equal them and the value must lie within them. Unknown
    keys enter no formula and are checked against their own bounds.
    """
    canonical = {h.key: h for h in DEFAULT_HYPOTHESES}
    offending = []
    for h in hypotheses:
        reference = canonical.get(h.key)
        if reference is not None and (h.min != reference.min or h.max != reference.max):
            offending.append(h)
        elif not all(math.isfinite(v) for v in (h.value, h.min, h.max)):
            offending.append(h)
        elif h.min > h.max or not h.in_bounds():
            offending.append(h)
    return offending


def _describe(hypothesis: Hypothesis) -> str:
    reference = next((h for h in DEFAULT_HYPOTHESES if h.key == hypothesis.key), None)
    low, high = (reference.min, reference.max) if reference else (hypothesis.min, hypothesis.max)
    return f"{hypothesis.key}={hypothesis.value:g} not in [{low:g}, {high:g}]"


def validate_hypotheses(hypotheses: List[Hypothesis]) -> List[Hypothesis]:
    """
    Check bounds before the hypotheses reach the market model.

    The market model itself does not clamp, so anything outside
    [min, max] is rejected here.

    Raises:
        HypothesisOutOfRangeError naming every offending key.
    """
    offending = find_out_of_range(hypotheses)
    if offending:
        details = ", ".join(_describe(h) for h in offending)
        raise HypothesisOutOfRangeError(f"Hypotheses out of range: {details}")
    return hypotheses
