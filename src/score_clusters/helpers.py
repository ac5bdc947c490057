"""Helper functions for score_clusters CLI."""

from __future__ import annotations

import argparse

from common.cli_helpers import parse_hours, parse_positive_int


def parse_score_clusters_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for score_clusters."""

    parser = argparse.ArgumentParser(description="Recompute cluster scores and lead articles")

    parser.add_argument(
        "--window-hours",
        type=parse_hours,
        default=None,
        help="Score members published within this many hours (default: from config)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute scores without replacing cluster_scores",
    )
    parser.add_argument(
        "--top",
        type=parse_positive_int,
        default=10,
        help="Number of top clusters to log (default: 10)",
    )

    # Output options
    parser.add_argument("--load-local", action="store_true", help="Save scores to local file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)
