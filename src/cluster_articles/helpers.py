"""Helper functions for cluster_articles CLI."""

from __future__ import annotations

import argparse

from common.cli_helpers import parse_hours, parse_positive_int


def parse_cluster_articles_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for cluster_articles."""

    parser = argparse.ArgumentParser(description="Assign unclustered articles to stories")

    # Input options
    parser.add_argument(
        "--lookback-hours",
        type=parse_hours,
        default=None,
        help="Cluster articles fetched within this many hours (default: from config)",
    )
    parser.add_argument(
        "--maintenance",
        action="store_true",
        help="Use the long maintenance lookback to retry articles left unclustered",
    )
    parser.add_argument(
        "--limit",
        type=parse_positive_int,
        default=None,
        help="Max articles to cluster in this run (default: from config)",
    )

    # Clustering options
    parser.add_argument(
        "--embed-missing",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Call the embedding provider for articles without a stored vector (default: True)",
    )
    parser.add_argument(
        "--concurrency",
        type=parse_positive_int,
        default=None,
        help="Max simultaneous assignments (default: from config)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)
