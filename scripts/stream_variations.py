#!/usr/bin/env python3
"""Generate three LINE variations for an article against a running API.

Usage:
    # Against a local server
    python scripts/stream_variations.py https://example.com/blog/post

    # Company details, images, and no web enhancement
    python scripts/stream_variations.py https://example.com/blog/post \\
        --company-name "Example Co." --image https://example.com/a.jpg \\
        --no-web-search

    # Machine-readable output
    python scripts/stream_variations.py https://example.com/blog/post --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys

import httpx

from client.channel import HttpVariationChannel
from client.orchestrator import DEFAULT_SETTLE_DELAY, VariationOrchestrator
from client.state import VariationSession
from schemas.generation import GenerationRequest
from services.generation.exceptions import GenerationCancelled


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _print_progress(session: VariationSession) -> None:
    print(
        f"\r[variation {session.index + 1}] {session.status.value:<9} "
        f"{session.progress:3d}%  {len(session.accumulated_text)} chars",
        end="" if not session.is_terminal else "\n",
        file=sys.stderr,
        flush=True,
    )


async def _run(args: argparse.Namespace) -> int:
    request = GenerationRequest(
        blog_url=args.url,
        company_name=args.company_name,
        company_url=args.company_url,
        selected_images=args.image,
        use_web_search=args.web_search,
    )
    async with httpx.AsyncClient(
        base_url=args.base_url, timeout=httpx.Timeout(args.timeout, read=None)
    ) as http_client:
        channel = HttpVariationChannel(
            http_client, max_retries=args.max_retries, retry_delay=args.retry_delay
        )
        orchestrator = VariationOrchestrator(
            channel, settle_delay=args.settle_delay, on_update=_print_progress
        )

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
        except NotImplementedError:  # pragma: no cover - Windows event loop
            pass

        try:
            variations = await orchestrator.run(request)
        except GenerationCancelled:
            logger.warning("Generation cancelled")
            return 130

    if args.json:
        print(
            json.dumps(
                [v.model_dump() for v in variations], ensure_ascii=False, indent=2
            )
        )
    else:
        for i, variation in enumerate(variations, start=1):
            print(f"===== バリエーション {i} =====")
            print(variation.markdown)
            print()
    return 0


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("url", help="Source article URL")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--company-name", default="")
    parser.add_argument("--company-url", default="")
    parser.add_argument(
        "--image",
        action="append",
        default=[],
        help="Selected image URL; repeat to keep several, in order",
    )
    parser.add_argument(
        "--no-web-search", dest="web_search", action="store_false"
    )
    parser.add_argument("--max-retries", type=int, default=2)
    parser.add_argument("--retry-delay", type=float, default=1.0)
    parser.add_argument("--settle-delay", type=float, default=DEFAULT_SETTLE_DELAY)
    parser.add_argument("--timeout", type=float, default=30.0)
    parser.add_argument("--json", action="store_true", help="Print JSON output")
    return parser


def main() -> None:
    args = _create_parser().parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
