"""Helper functions for rewrite_headlines CLI."""

from __future__ import annotations

import argparse

from common.cli_helpers import parse_hours, parse_positive_int


def parse_rewrite_headlines_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for rewrite_headlines."""

    parser = argparse.ArgumentParser(description="Generate and validate rewritten headlines")

    # Input options
    parser.add_argument(
        "--lookback-hours",
        type=parse_hours,
        default=None,
        help="Rewrite articles published within this many hours (default: from config)",
    )
    parser.add_argument(
        "--limit",
        type=parse_positive_int,
        default=None,
        help="Max articles to rewrite in this run (default: from config)",
    )

    # Model options
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Chat model to use (default: REWRITE_MODEL or config)",
    )
    parser.add_argument(
        "--concurrency",
        type=parse_positive_int,
        default=None,
        help="Max simultaneous generator calls (default: from config)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)
