"""Helper functions for compute_embeddings CLI."""

from __future__ import annotations

import argparse

from common.cli_helpers import parse_hours, parse_positive_int


def parse_compute_embeddings_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for compute_embeddings."""

    parser = argparse.ArgumentParser(description="Backfill missing article embeddings")

    # Input options
    parser.add_argument(
        "--lookback-hours",
        type=parse_hours,
        default=None,
        help="Embed articles fetched within this many hours (default: from config)",
    )
    parser.add_argument(
        "--limit",
        type=parse_positive_int,
        default=None,
        help="Max articles to embed in this run (default: from config)",
    )

    # Model options
    parser.add_argument(
        "--provider",
        choices=["openai", "sentence-transformers"],
        default=None,
        help="Embedding provider (default: from config)",
    )
    parser.add_argument(
        "--word-limit",
        type=parse_positive_int,
        default=None,
        help="Max words to embed (default: no limit)",
    )
    parser.add_argument(
        "--concurrency",
        type=parse_positive_int,
        default=None,
        help="Max simultaneous provider calls (default: from config)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)
