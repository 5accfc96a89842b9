"""
Copy preorders from the local JSON file into the SQL database.

Reads preorders.json (or --source) and inserts every record whose id is not
already in the ``preorders`` table. Run once when moving from local files to a
database deployment.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.config import get_settings
from storefront.db import create_session_factory
from storefront.preorders import SqlPreorderLedger
from storefront.record_store import JsonRecordStore

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--source",
        type=str,
        default=settings.preorders_path,
        help="Path to the preorders JSON file",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=settings.database_url,
        help="SQLAlchemy URL (defaults to $DATABASE_URL)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many preorders would be imported without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    if not args.database_url:
        logger.error("No database configured; set DATABASE_URL or --database-url")
        return 1

    records = JsonRecordStore().read(args.source)
    if not records:
        logger.info("No preorders found in %s", args.source)
        return 0

    ledger = SqlPreorderLedger(create_session_factory(args.database_url))
    imported = ledger.import_records(records, dry_run=args.dry_run)
    verb = "Would import" if args.dry_run else "Imported"
    logger.info("%s %d of %d preorders", verb, imported, len(records))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
