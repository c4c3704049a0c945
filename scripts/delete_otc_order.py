"""CLI entry point for deleting one OTC order.

Usage:
    python -m scripts.delete_otc_order --id 42 [--db-url URL] [--yes]
"""

import argparse
import logging
import sys

from ingestion.schema import OTC_TABLE
from orders import delete_order
from otcbackend import BackendError
from otcbackend.config import load_settings
from scripts.backend import open_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def confirm(prompt: str) -> bool:
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes", "o", "oui")


def main() -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Delete an OTC order by id")
    parser.add_argument("--db-url", default=settings.db_url, required=settings.db_url is None)
    parser.add_argument("--id", required=True, help="Order id")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    service = open_service(args.db_url, settings)
    try:
        found = service.select(OTC_TABLE, {"id": args.id})
        if not found:
            logger.error("Order %s not found", args.id)
            sys.exit(1)
        order = found[0]
        summary = f"{order['num_cde']} / {order['reference']} ({order['succursale']})"
        if not args.yes and not confirm(f"Delete order {summary}?"):
            logger.info("Cancelled.")
            return
        delete_order(service, args.id)
    except BackendError as e:
        logger.error("Delete failed: %s", e)
        sys.exit(1)
    finally:
        service.close()


if __name__ == "__main__":
    main()
