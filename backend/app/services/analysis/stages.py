"""
stages.py — Pipeline Stage Functions

Purpose:
- Define the five stage computations the orchestrator calls, in order:
    1. technical analysis        (repository_url)
    2. product function          (repository_url, technical)
    3. comparable companies      (product_function)
    4. market analysis           (product_function, similar_companies)
    5. valuation estimate        (market_analysis, similar_companies)
- Ship stand-in implementations returning fixed sample results after a
  simulated delay. They are placeholders for a future AI / data service.

The orchestrator only sees a `StageFunctions` bundle, so real services can
replace any stage without touching the pipeline.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List

from app.core.config import settings
from app.models.analysis import (
    MarketAnalysis,
    MarketTrends,
    ProductFunction,
    SimilarCompany,
    SimilarProject,
    TechnicalAnalysis,
    ValuationEstimate,
    ValuationMultiples,
    default_hypotheses,
)

TechnicalStage = Callable[[str], Awaitable[TechnicalAnalysis]]
ProductStage = Callable[[str, TechnicalAnalysis], Awaitable[ProductFunction]]
CompaniesStage = Callable[[ProductFunction], Awaitable[List[SimilarCompany]]]
MarketStage = Callable[[ProductFunction, List[SimilarCompany]], Awaitable[MarketAnalysis]]
ValuationStage = Callable[[MarketAnalysis, List[SimilarCompany]], Awaitable[ValuationEstimate]]


@dataclass(frozen=True)
class StageFunctions:
    """The five stage callables a pipeline run invokes."""
    technical: TechnicalStage
    product_function: ProductStage
    similar_companies: CompaniesStage
    market_analysis: MarketStage
    valuation: ValuationStage


@dataclass(frozen=True)
class PipelineStep:
    number: int
    key: str
    title: str
    description: str


PIPELINE_STEPS: List[PipelineStep] = [
    PipelineStep(1, "technicalAnalysis", "Technical Analysis",
                 "Analyzing repository structure and technology stack"),
    PipelineStep(2, "productFunction", "Product Function",
                 "Identifying core product functionality and use cases"),
    PipelineStep(3, "similarCompanies", "Company Matching",
                 "Finding similar companies and competitive landscape"),
    PipelineStep(4, "marketAnalysis", "Market Analysis",
                 "Calculating TAM, SAM, and SOM estimates"),
    PipelineStep(5, "valuationEstimate", "Valuation Estimate",
                 "Estimating potential valuation ranges"),
    PipelineStep(6, "completed", "Completed",
                 "Analysis complete - modify hypotheses if needed"),
]


# -----------------------------------------------------------------------------
# Stand-in implementations
# -----------------------------------------------------------------------------

async def _simulate_latency(factor: float = 1.0) -> None:
    seconds = settings.STAGE_DELAY_SECONDS
    if seconds > 0:
        await asyncio.sleep(seconds * factor)


async def analyze_technical(repository_url: str) -> TechnicalAnalysis:
    await _simulate_latency()
    return TechnicalAnalysis(
        stack=["TypeScript", "React", "Next.js", "Tailwind CSS"],
        complexity=7,
        fileCount=156,
        projectType="Web Application",
        similarProjects=[
            SimilarProject(
                name="Next.js",
                url="https://github.com/vercel/next.js",
                similarity=0.85,
                description="React framework for production",
            ),
            SimilarProject(
                name="Create React App",
                url="https://github.com/facebook/create-react-app",
                similarity=0.72,
                description="Set up modern web app by running one command",
            ),
        ],
        confidence=0.88,
    )


async def analyze_product_function(
    repository_url: str,
    technical: TechnicalAnalysis,
) -> ProductFunction:
    await _simulate_latency()
    return ProductFunction(
        title="Repository Analysis Platform",
        tags=["SaaS", "Developer Tools", "Analytics"],
        useCase=(
            "Developers analyze GitHub repositories to understand market "
            "potential and technical complexity"
        ),
        confidence=0.82,
        description="AI-powered platform for comprehensive GitHub repository analysis",
    )


async def find_similar_companies(product_function: ProductFunction) -> List[SimilarCompany]:
    await _simulate_latency()
    return [
        SimilarCompany(
            name="GitHub",
            sector="Developer Tools",
            pitch="Platform for version control and collaboration",
            revenue="$1B+",
            users="100M+",
            funding="Acquired by Microsoft for $7.5B",
            employees=3000,
            growth="20%",
            source="crunchbase",
        ),
        SimilarCompany(
            name="GitLab",
            sector="DevOps Platform",
            pitch="Complete DevOps platform",
            revenue="$400M",
            users="30M+",
            funding="IPO - $11B market cap",
            employees=1500,
            growth="35%",
            source="crunchbase",
        ),
    ]


async def analyze_market(
    product_function: ProductFunction,
    similar_companies: List[SimilarCompany],
) -> MarketAnalysis:
    await _simulate_latency(0.75)
    return MarketAnalysis(
        tam=50_000_000_000,
        sam=5_000_000_000,
        som=50_000_000,
        methodology="Bottom-up analysis based on developer tools market",
        assumptions=default_hypotheses(),
        marketTrends=MarketTrends(cagr=22, forecast10Years=125_000_000_000),
    )


async def estimate_valuation(
    market_analysis: MarketAnalysis,
    similar_companies: List[SimilarCompany],
) -> ValuationEstimate:
    await _simulate_latency(0.75)
    return ValuationEstimate(
        range=(500_000, 2_000_000),
        methodology="Revenue multiples based on similar SaaS companies",
        confidence=0.75,
        multiples=ValuationMultiples(revenue=8.5, users=25, growth=15),
    )


def default_stage_functions() -> StageFunctions:
    return StageFunctions(
        technical=analyze_technical,
        product_function=analyze_product_function,
        similar_companies=find_similar_companies,
        market_analysis=analyze_market,
        valuation=estimate_valuation,
    )
