"""CLI for bootstrapping the database schema."""

from __future__ import annotations

import argparse
import asyncio
import logging

from dotenv import load_dotenv

from common.cli_helpers import emit_summary, setup_logging
from story_store.connection import dispose_engine, get_engine
from story_store.models import Base
from story_store.schema import ensure_schema

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)


async def _run() -> dict[str, object]:
    try:
        await ensure_schema(get_engine())
    finally:
        await dispose_engine()
    return {"tables": sorted(Base.metadata.tables)}


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the extension and tables if missing")
    parser.parse_args()

    emit_summary("init_db", asyncio.run(_run()))


if __name__ == "__main__":
    main()
