#!/usr/bin/env python3
"""
Import match dumps from a directory into the database.

Every *.json file in the directory is imported in name order. By default an
already stored match is replaced by the file's contents; with --skip it is
left untouched. Failing files are reported and the scan continues.

Usage:
    python scripts/ingest_matches.py
    python scripts/ingest_matches.py --dir ./matches --skip
"""
import argparse
import json
import sys
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import logging

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def main() -> int:
    from app.core.config import settings
    from app.core.database import SessionLocal, init_db
    from app.services.ingest import ConflictPolicy, ingest_directory

    parser = argparse.ArgumentParser(description="Import match JSON dumps from a directory")
    parser.add_argument(
        "--dir",
        default=settings.MATCHES_DIR,
        help=f"Directory containing match files (default: {settings.MATCHES_DIR})",
    )
    parser.add_argument(
        "--skip",
        action="store_true",
        help="Leave already imported matches untouched instead of overwriting them",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full summary as JSON",
    )
    args = parser.parse_args()

    policy = ConflictPolicy.SKIP if args.skip else ConflictPolicy.OVERWRITE

    init_db()
    db = SessionLocal()
    try:
        summary = ingest_directory(db, args.dir, policy=policy)
    finally:
        db.close()

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        logger.info(
            f"{summary.message}: {summary.imported} imported, "
            f"{summary.skipped} skipped, {summary.errors} errors"
        )
        for detail in summary.details:
            if detail["status"] == "error":
                logger.error(f"  {detail['file']}: {detail.get('error')}")

    return 1 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(main())
