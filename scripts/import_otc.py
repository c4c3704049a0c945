"""CLI entry point for OTC CSV import.

Usage:
    python -m scripts.import_otc --file otc.csv [--db-url sqlite:///otc.db] [--batch-size 100]

Replaces every row of otc_orders with the orders found in the file.
"""

import argparse
import logging
import sys

from ingestion import ImportProgress, OtcImportError, import_csv_file
from otcbackend import BackendError
from otcbackend.config import load_settings
from projects import refresh_analytics_views
from scripts.backend import open_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Import an OTC orders CSV (full replace)")
    parser.add_argument(
        "--db-url",
        default=settings.db_url,
        required=settings.db_url is None,
        help="Backend URL (sqlite:///, postgresql:// or https://<project>.supabase.co)",
    )
    parser.add_argument("--file", required=True, help="Path to CSV file")
    parser.add_argument(
        "--batch-size", type=int, default=settings.batch_size, help="Rows per insert call"
    )
    parser.add_argument(
        "--pause", type=float, default=settings.batch_pause, help="Seconds to wait between chunks"
    )
    parser.add_argument(
        "--no-refresh", action="store_true", help="Skip refreshing analytics views afterwards"
    )
    args = parser.parse_args()

    progress = ImportProgress()
    progress.listeners.append(
        lambda current, total: logger.info("Progress: %d/%d", current, total)
    )

    service = open_service(args.db_url, settings)
    try:
        total = import_csv_file(
            service,
            args.file,
            batch_size=args.batch_size,
            progress=progress,
            pause=args.pause,
        )
        logger.info("Done. %d orders imported.", total)
        if not args.no_refresh:
            try:
                refresh_analytics_views(service)
            except BackendError as e:
                logger.warning("Orders imported but analytics refresh failed: %s", e)
    except (OtcImportError, BackendError) as e:
        logger.error("Import failed: %s", e)
        sys.exit(1)
    finally:
        service.close()


if __name__ == "__main__":
    main()
