"""Helper functions for ingest_articles CLI."""

from __future__ import annotations

import argparse
from pathlib import Path

from common.cli_helpers import parse_positive_int


def parse_input_path(value: str) -> Path:
    """Parse the --input argument, requiring an existing file."""
    path = Path(value)
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"input file not found: {value}")
    return path


def parse_ingest_articles_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for ingest_articles."""

    parser = argparse.ArgumentParser(description="Register parsed feed items as articles")
    parser.add_argument(
        "--input",
        type=parse_input_path,
        required=True,
        help="JSONL file of parsed feed items",
    )
    parser.add_argument(
        "--cluster",
        action="store_true",
        help="Cluster newly registered articles in the same run",
    )
    parser.add_argument(
        "--concurrency",
        type=parse_positive_int,
        default=None,
        help="Max simultaneous store calls (default: from config)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)
