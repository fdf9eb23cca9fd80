"""
analysis.py — Analysis Record & Section Models

Purpose:
- Define the record a client polls while a repository analysis runs.
- Define each result section produced by one pipeline stage.
- Define hypotheses: bounded, user-adjustable inputs of the market model.

Status lifecycle: "pending" → "in-progress" → "completed" | "error"

Key Points:
- Field names are camelCase; the record is serialized verbatim to clients.
- Every section has an empty default so a freshly created record is complete.
- A record is created once per request and never deleted.
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETED, AnalysisStatus.ERROR)


# Final value of currentStep once the valuation stage has been written.
FINAL_STEP = 6


# -----------------------------------------------------------------------------
# Hypotheses
# -----------------------------------------------------------------------------

class Hypothesis(BaseModel):
    """One named, bounded assumption feeding the market model."""
    key: str
    label: str
    value: float
    unit: str
    min: float
    max: float
    description: str

    def in_bounds(self) -> bool:
        return self.min <= self.value <= self.max


DEFAULT_HYPOTHESES: List[Hypothesis] = [
    Hypothesis(
        key="avgRevenue",
        label="Average Revenue per User",
        value=20,
        unit="€/month",
        min=5,
        max=500,
        description="Average monthly revenue per SaaS user",
    ),
    Hypothesis(
        key="marketShare",
        label="Target Market Share",
        value=1,
        unit="%",
        min=0.1,
        max=10,
        description="Realistic market share for MVP launch",
    ),
    Hypothesis(
        key="margin",
        label="Gross Margin",
        value=60,
        unit="%",
        min=20,
        max=90,
        description="Expected gross profit margin",
    ),
    Hypothesis(
        key="growthRate",
        label="Market Growth Rate",
        value=20,
        unit="%/year",
        min=5,
        max=50,
        description="Annual market growth rate",
    ),
]


def default_hypotheses() -> List[Hypothesis]:
    """Fresh copies of the default hypothesis set."""
    return [h.model_copy() for h in DEFAULT_HYPOTHESES]


# -----------------------------------------------------------------------------
# Stage sections
# -----------------------------------------------------------------------------

class SimilarProject(BaseModel):
    name: str
    url: str
    similarity: float
    description: Optional[str] = None


class TechnicalAnalysis(BaseModel):
    """Stage 1: repository structure and technology stack."""
    stack: List[str] = Field(default_factory=list)
    complexity: int = 0
    fileCount: int = 0
    projectType: str = ""
    similarProjects: List[SimilarProject] = Field(default_factory=list)
    confidence: float = 0


class ProductFunction(BaseModel):
    """Stage 2: what the product does and for whom."""
    title: str = ""
    tags: List[str] = Field(default_factory=list)
    useCase: str = ""
    confidence: float = 0
    description: Optional[str] = None


class SimilarCompany(BaseModel):
    """Stage 3: one comparable company."""
    name: str
    sector: str
    pitch: str
    revenue: str
    users: str
    funding: str
    employees: int
    growth: str
    source: Literal["crunchbase", "estimated"]


class MarketTrends(BaseModel):
    cagr: float = 0
    forecast10Years: float = 0


class MarketAnalysis(BaseModel):
    """Stage 4: TAM / SAM / SOM and the hypotheses used to derive them."""
    tam: float = 0
    sam: float = 0
    som: float = 0
    methodology: str = ""
    assumptions: List[Hypothesis] = Field(default_factory=default_hypotheses)
    marketTrends: MarketTrends = Field(default_factory=MarketTrends)


class ValuationMultiples(BaseModel):
    revenue: float = 0
    users: float = 0
    growth: float = 0


class ValuationEstimate(BaseModel):
    """Stage 5: valuation range derived from the market model."""
    range: Tuple[float, float] = (0, 0)
    methodology: str = ""
    confidence: float = 0
    multiples: ValuationMultiples = Field(default_factory=ValuationMultiples)


# -----------------------------------------------------------------------------
# Analysis record
# -----------------------------------------------------------------------------

def generate_analysis_id() -> str:
    """Return an id shaped like `analysis_<epoch ms>_<9 base36 chars>`."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"analysis_{int(time.time() * 1000)}_{suffix}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class AnalysisResult(BaseModel):
    """
    Full, evolving result of one repository analysis.

    Invariants maintained by the orchestrator:
    - currentStep == N (N >= 1, after the stage-N write) means sections 1..N
      are populated and the others hold their empty defaults.
    - status == "completed" iff currentStep == 6.
    - status == "error" means no further section will be written.
    """
    id: str = Field(default_factory=generate_analysis_id)
    repositoryUrl: str
    timestamp: str = Field(default_factory=_utc_timestamp)
    status: AnalysisStatus = AnalysisStatus.PENDING
    currentStep: int = Field(0, ge=0, le=FINAL_STEP)
    technicalAnalysis: TechnicalAnalysis = Field(default_factory=TechnicalAnalysis)
    productFunction: ProductFunction = Field(default_factory=ProductFunction)
    similarCompanies: List[SimilarCompany] = Field(default_factory=list)
    marketAnalysis: MarketAnalysis = Field(default_factory=MarketAnalysis)
    valuationEstimate: ValuationEstimate = Field(default_factory=ValuationEstimate)


def new_analysis_record(repository_url: str) -> AnalysisResult:
    """Create a `pending` record with every section at its empty default."""
    return AnalysisResult(repositoryUrl=repository_url)
