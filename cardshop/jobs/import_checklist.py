"""
Import a card checklist file into a product set.

Runs the same import as the admin paste endpoint, reading the checklist
from a file (or stdin with "-"). Can be run as a standalone script.

    python -m cardshop.jobs.import_checklist 1991-donruss-base checklist.txt
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from cardshop.db.database import init_db, session_scope
from cardshop.models.failure import KnownError
from cardshop.services.catalog import ImportResult, import_checklist

logger = logging.getLogger(__name__)


def read_checklist(source: str) -> str:
    """Read checklist text from a path, or stdin when source is "-"."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


async def run_import(product_set_id: str, text: str) -> ImportResult:
    """
    Import checklist text into a product set in one transaction.

    Args:
        product_set_id: Target product set, which must already exist
        text: Checklist text, one card per line

    Returns:
        Counts of inserted, updated and skipped lines plus line errors
    """
    await init_db()
    async with session_scope() as session:
        result = await import_checklist(session, product_set_id, text)

    for error in result.errors:
        logger.warning("Line %d: %s (%r)", error.line, error.reason, error.raw)
    return result


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for importing a checklist."""
    parser = argparse.ArgumentParser(description="Import a card checklist into a product set")
    parser.add_argument("product_set_id", help="Product set to import into")
    parser.add_argument("file", help="Checklist file, or - for stdin")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        text = read_checklist(args.file)
    except OSError as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return 1

    try:
        result = asyncio.run(run_import(args.product_set_id, text))
    except KnownError as e:
        logger.error("Import failed: %s", e.message)
        return 1

    logger.info(
        "Import complete: %d inserted, %d updated, %d skipped, %d errors",
        result.inserted,
        result.updated,
        result.skipped,
        result.error_count,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
