"""
Tests for repository URL and hypothesis validation.
"""

from __future__ import annotations

import pytest

from app.core.exceptions import HypothesisOutOfRangeError, InvalidRepositoryUrlError
from app.models.analysis import Hypothesis, default_hypotheses
from app.validation.validator import (
    find_out_of_range,
    is_valid_repository_url,
    validate_hypotheses,
    validate_repository_url,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/vercel/next.js",
        "https://github.com/octocat/Hello-World/",
        "https://github.com/some_user/repo.name-2",
        "  https://github.com/psf/requests  ",
    ],
)
def test_valid_repository_urls(url):
    assert is_valid_repository_url(url)
    assert validate_repository_url(url) == url.strip()


@pytest.mark.parametrize(
    "url",
    [
        "not-a-url",
        "http://github.com/vercel/next.js",
        "https://gitlab.com/vercel/next.js",
        "https://github.com/vercel",
        "https://github.com/vercel/next.js/tree/main",
        "https://github.com/ver cel/next.js",
    ],
)
def test_invalid_repository_urls(url):
    assert not is_valid_repository_url(url)
    with pytest.raises(InvalidRepositoryUrlError, match="Invalid GitHub repository URL"):
        validate_repository_url(url)


@pytest.mark.parametrize("url", [None, "", "   "])
def test_missing_repository_url(url):
    with pytest.raises(InvalidRepositoryUrlError, match="required"):
        validate_repository_url(url)


def test_default_hypotheses_are_in_range():
    assert find_out_of_range(default_hypotheses()) == []
    assert validate_hypotheses(default_hypotheses()) == default_hypotheses()


def test_bounds_are_inclusive():
    edges = [h.model_copy(update={"value": h.min}) for h in default_hypotheses()]
    edges += [h.model_copy(update={"value": h.max}) for h in default_hypotheses()]
    assert find_out_of_range(edges) == []


def test_out_of_range_value_is_rejected_with_key():
    hypotheses = default_hypotheses()
    hypotheses[1] = hypotheses[1].model_copy(update={"value": 12})

    with pytest.raises(HypothesisOutOfRangeError, match="marketShare=12"):
        validate_hypotheses(hypotheses)


def test_inverted_bounds_are_rejected():
    inverted = Hypothesis(
        key="growthRate", label="Growth", value=10, unit="%", min=50, max=5, description=""
    )
    assert find_out_of_range([inverted]) == [inverted]


def test_known_keys_use_default_bounds_not_submitted_ones():
    hypotheses = default_hypotheses()
    hypotheses[1] = hypotheses[1].model_copy(update={"value": 50, "min": 0, "max": 100})

    assert find_out_of_range(hypotheses) == [hypotheses[1]]
    with pytest.raises(HypothesisOutOfRangeError, match=r"marketShare=50 not in \[0.1, 10\]"):
        validate_hypotheses(hypotheses)


def test_narrowed_bounds_on_known_key_are_rejected():
    hypotheses = default_hypotheses()
    hypotheses[0] = hypotheses[0].model_copy(update={"min": 10, "max": 30})

    assert find_out_of_range(hypotheses) == [hypotheses[0]]


def test_unknown_key_is_checked_against_its_own_bounds():
    churn = Hypothesis(key="churn", label="Churn", value=3, unit="%", min=0, max=5, description="")
    assert find_out_of_range([churn]) == []
    assert find_out_of_range([churn.model_copy(update={"value": 9})]) != []


def test_non_finite_values_are_rejected():
    churn = Hypothesis(
        key="churn", label="Churn", value=float("inf"), unit="%",
        min=0, max=float("inf"), description="",
    )
    assert find_out_of_range([churn]) == [churn]
