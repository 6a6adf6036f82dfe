#!/usr/bin/env python3
"""
Analysis Runner

Scores a single page for AI search readiness and prints the result as JSON.

Usage:
    # Optional: real-user TTFB from the Chrome UX Report
    export CHROME_UX_API_KEY=your_key

    python scripts/run_analysis.py example.com/blog/post

    # With options:
    python scripts/run_analysis.py https://example.com/docs \
        --no-dynamic \
        --enhance \
        --output result.json
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_analysis(url: str, dynamic: bool = True, enhance: bool = False):
    """Run one analysis, optionally waiting for field data enhancement."""
    from aisearch.analyzer import AiSearchAnalyzer
    from aisearch.collector import FetchError
    from aisearch.utils import InputError

    async with AiSearchAnalyzer() as analyzer:
        try:
            result = await analyzer.analyze(url, dynamic=dynamic)
        except InputError as e:
            print(f"ERROR: Invalid URL: {e}")
            return None
        except FetchError as e:
            print(f"ERROR: Could not fetch {e.url or url}: {e}")
            return None

        if enhance:
            task = analyzer.start_enhancement(result)
            if task is not None:
                result = await task

        return result.to_dict()


def main():
    """Main entry point."""
    load_dotenv()

    from aisearch.utils.config import get_settings
    logging.getLogger().setLevel(get_settings().LOG_LEVEL.upper())

    parser = argparse.ArgumentParser(
        description="Score a page for AI search readiness"
    )
    parser.add_argument(
        "url",
        help="Page to analyze (e.g., example.com/blog/post)"
    )
    parser.add_argument(
        "--no-dynamic",
        action="store_true",
        help="Use the balanced weights regardless of page type"
    )
    parser.add_argument(
        "--enhance",
        action="store_true",
        help="Wait for field data enhancement before printing"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write JSON to this file instead of stdout"
    )

    args = parser.parse_args()

    result = asyncio.run(run_analysis(
        url=args.url,
        dynamic=not args.no_dynamic,
        enhance=args.enhance,
    ))

    if result is None:
        sys.exit(1)

    payload = json.dumps(result, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(payload)
        print(f"Result saved to: {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
