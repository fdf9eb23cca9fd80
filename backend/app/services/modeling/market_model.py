"""
market_model.py — Hypothesis-Driven Market Sizing & Valuation

Purpose:
- Recompute TAM / SAM / SOM, the market trend and the valuation range from a
  set of user-edited hypotheses.
- Pure functions: no store access, no I/O.

Formulas (kept exactly as below; clients compare figures, not magnitudes):
    TAM             = 50,000,000,000
    SAM             = TAM * (marketShare / 100) * 10
    SOM             = SAM * 0.01
    annual_revenue  = SOM * (avgRevenue / 100)
    valuation range = annual_revenue * (8.5 - 2) .. annual_revenue * (8.5 + 2)
    cagr            = growthRate
    forecast        = TAM * (1 + growthRate / 100) ** 10
    growth multiple = growthRate / 10

Missing hypotheses fall back to fixed defaults (avgRevenue 20, marketShare 1,
margin 60, growthRate 20). Bounds are NOT checked here; see
app.validation.validator.validate_hypotheses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from app.models.analysis import (
    Hypothesis,
    MarketAnalysis,
    MarketTrends,
    ValuationEstimate,
    ValuationMultiples,
)

TOTAL_ADDRESSABLE_MARKET = 50_000_000_000
SAM_SCALE = 10
SOM_SHARE_OF_SAM = 0.01
REVENUE_MULTIPLE = 8.5
REVENUE_MULTIPLE_SPREAD = 2
FORECAST_YEARS = 10

HYPOTHESIS_FALLBACKS: Dict[str, float] = {
    "avgRevenue": 20,
    "marketShare": 1,
    "margin": 60,
    "growthRate": 20,
}


@dataclass(frozen=True)
class MarketFigures:
    """Intermediate results of one recalculation."""
    tam: float
    sam: float
    som: float
    annual_revenue: float
    valuation_min: float
    valuation_max: float
    cagr: float
    forecast_10_years: float
    growth_multiple: float


def hypothesis_value(hypotheses: List[Hypothesis], key: str) -> float:
    """Value of the first hypothesis with `key`, or its fixed fallback if absent."""
    # Only an absent key falls back; an explicit 0 is used as given.
    for hypothesis in hypotheses:
        if hypothesis.key == key:
            return hypothesis.value
    return HYPOTHESIS_FALLBACKS[key]


def compute_market_figures(hypotheses: List[Hypothesis]) -> MarketFigures:
    avg_revenue = hypothesis_value(hypotheses, "avgRevenue")
    market_share = hypothesis_value(hypotheses, "marketShare")
    # margin is carried in the hypothesis set but enters no formula
    growth_rate = hypothesis_value(hypotheses, "growthRate")

    tam = TOTAL_ADDRESSABLE_MARKET
    sam = tam * (market_share / 100) * SAM_SCALE
    som = sam * SOM_SHARE_OF_SAM

    annual_revenue = som * (avg_revenue / 100)
    valuation_min = annual_revenue * (REVENUE_MULTIPLE - REVENUE_MULTIPLE_SPREAD)
    valuation_max = annual_revenue * (REVENUE_MULTIPLE + REVENUE_MULTIPLE_SPREAD)

    return MarketFigures(
        tam=tam,
        sam=sam,
        som=som,
        annual_revenue=annual_revenue,
        valuation_min=valuation_min,
        valuation_max=valuation_max,
        cagr=growth_rate,
        forecast_10_years=tam * (1 + growth_rate / 100) ** FORECAST_YEARS,
        growth_multiple=growth_rate / 10,
    )


def recalculate(
    hypotheses: List[Hypothesis],
    market: Optional[MarketAnalysis] = None,
    valuation: Optional[ValuationEstimate] = None,
) -> Tuple[MarketAnalysis, ValuationEstimate]:
    """
    Build a new market analysis and valuation estimate from `hypotheses`.

    Args:
        hypotheses: Full hypothesis set submitted by the user
        market: Current market analysis; its methodology is carried over
        valuation: Current valuation; methodology, confidence and the
            revenue / users multiples are carried over

    Returns:
        (market_analysis, valuation_estimate), both new objects
    """
    market = market or MarketAnalysis()
    valuation = valuation or ValuationEstimate()
    figures = compute_market_figures(hypotheses)

    new_market = market.model_copy(
        update={
            "tam": figures.tam,
            "sam": figures.sam,
            "som": figures.som,
            "assumptions": [h.model_copy() for h in hypotheses],
            "marketTrends": MarketTrends(
                cagr=figures.cagr,
                forecast10Years=figures.forecast_10_years,
            ),
        },
        deep=True,
    )
    new_valuation = valuation.model_copy(
        update={
            "range": (figures.valuation_min, figures.valuation_max),
            "multiples": ValuationMultiples(
                revenue=valuation.multiples.revenue,
                users=valuation.multiples.users,
                growth=figures.growth_multiple,
            ),
        },
        deep=True,
    )
    return new_market, new_valuation
