"""
analyze_repository.py — Start a repository analysis and follow it to the end.

Talks to a running backend over HTTP: starts an analysis, polls it until it
completes or fails, then prints the market and valuation figures. Optionally
writes the final record to a JSON file.

Example:
    python scripts/analyze_repository.py \
        --url https://github.com/vercel/next.js \
        --base-url http://localhost:8000/api/v1 \
        --output downloads/next_js_analysis.json
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from app.core.config import settings
from app.core.exceptions import AnalysisError
from app.core.logging import configure_logging, get_logger
from app.models.analysis import AnalysisStatus
from app.services.clients.analysis_client import AnalysisClient, AnalysisClientSettings

logger = get_logger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Start a repository analysis and poll until it finishes"
    )
    parser.add_argument(
        "--url",
        type=str,
        required=True,
        help="GitHub repository URL (e.g., https://github.com/owner/repo)",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=settings.ANALYSIS_API_BASE_URL,
        help=f"API base URL (default: {settings.ANALYSIS_API_BASE_URL})",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.ANALYSIS_POLL_INTERVAL_SECONDS,
        help="Seconds between two polls",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.ANALYSIS_POLL_TIMEOUT_SECONDS,
        help="Give up after this many seconds",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the final analysis record to this JSON file (optional)",
    )

    args = parser.parse_args()
    configure_logging(settings.LOG_LEVEL)

    config = replace(AnalysisClientSettings.from_app_settings(), base_url=args.base_url)
    client = AnalysisClient(config=config)

    try:
        started = client.start_analysis(args.url)
        logger.info("Started analysis %s", started.id)

        result = client.wait_for_analysis(started.id, interval=args.interval, timeout=args.timeout)

        if args.output:
            output_file = Path(args.output)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with output_file.open("w", encoding="utf-8") as f:
                json.dump(result.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            logger.info("Wrote analysis to %s", output_file)

        if result.status == AnalysisStatus.ERROR:
            print(f"Analysis {result.id} failed after step {result.currentStep}", file=sys.stderr)
            sys.exit(1)

        market = result.marketAnalysis
        low, high = result.valuationEstimate.range
        print(f"\nAnalysis {result.id} completed for {result.repositoryUrl}")
        print(f"  TAM: ${market.tam:,.0f}")
        print(f"  SAM: ${market.sam:,.0f}")
        print(f"  SOM: ${market.som:,.0f}")
        print(f"  Valuation: ${low:,.0f} - ${high:,.0f}")

    except AnalysisError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
