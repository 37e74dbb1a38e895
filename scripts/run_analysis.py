#!/usr/bin/env python3
"""
Batch driver for the gemstone image analysis.

Analyzes pending gemstones (ai_analyzed false or null) or an explicit list
of IDs, then prints a summary with failures grouped by kind.

Usage:
    python scripts/run_analysis.py --limit 10 --concurrency 3
    python scripts/run_analysis.py --ids <uuid> <uuid>
    python scripts/run_analysis.py --pending
"""

import argparse
import asyncio
import os
import sys

sys.stdout.reconfigure(line_buffering=True)
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "python"))

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "python", ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
else:
    load_dotenv()

from core.config import settings
from core.logging import setup_logging
from infrastructure import SupabaseClient, create_openai_client, create_vision_model
from repositories import GemstonesRepository, GemstoneImagesRepository, AnalysisRepository
from services.analysis import AnalysisPipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run gemstone image analysis")
    parser.add_argument("--ids", nargs="+", help="Gemstone IDs to analyze")
    parser.add_argument("--limit", type=int, default=10, help="Pending gemstones to analyze (default 10)")
    parser.add_argument("--concurrency", type=int, default=None, help="Gemstones analyzed in parallel")
    parser.add_argument("--pending", action="store_true", help="Only list pending gemstones")
    parser.add_argument("--content", action="store_true", help="Also generate catalog content")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_pipeline(generate_content: bool) -> AnalysisPipeline:
    supabase_client = SupabaseClient()
    openai_client = create_openai_client(settings.openai_api_key)

    pipeline = AnalysisPipeline.from_settings(
        settings,
        gemstones_repo=GemstonesRepository(supabase_client),
        images_repo=GemstoneImagesRepository(supabase_client),
        analysis_repo=AnalysisRepository(supabase_client),
        vision_model=create_vision_model(openai_client, settings.vision_model, settings.vision_temperature),
        text_model=create_vision_model(openai_client, settings.text_model),
    )
    if generate_content:
        pipeline.generate_content = True
    return pipeline


def print_summary(summary):
    print()
    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"Total:              {summary.total}")
    print(f"Successful:         {summary.successful}")
    print(f"Failed:             {summary.failed}")
    print(f"Flagged for review: {summary.flagged_for_review}")
    if summary.avg_confidence is not None:
        print(f"Avg confidence:     {summary.avg_confidence:.2f}")
    print(f"Total cost:         ${summary.total_cost_usd:.4f}")
    print(f"Total time:         {summary.total_time_sec:.1f}s")

    if summary.failures:
        print()
        print("Failures by kind:")
        for kind, count in sorted(summary.failures_by_kind.items()):
            print(f"  {kind}: {count}")
        for failure in summary.failures:
            print(f"  - {failure.gemstone_id}: {failure.kind} {failure.message}")
    print("=" * 60)


async def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(level="DEBUG" if args.debug or settings.debug else "INFO")

    pipeline = build_pipeline(args.content)

    if args.pending:
        rows = await pipeline.pending_gemstones(args.limit)
        print(f"{len(rows)} gemstones pending analysis")
        for row in rows:
            print(f"  {row['id']}  {row.get('serial_number') or ''}  {row.get('name') or ''}")
        return 0

    if args.ids:
        summary = await pipeline.run_batch(args.ids, args.concurrency)
    else:
        summary = await pipeline.run_pending(args.limit, args.concurrency)

    if summary.total == 0:
        print("Nothing to analyze")
        return 0

    print_summary(summary)
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
