"""CLI entry point for OTC CSV export.

Usage:
    python -m scripts.export_otc [--db-url URL] [--out orders.csv] [--search TERM]
        [--status Pending] [--succursale GDC] [--from 2024-01-01] [--to 2024-12-31]
"""

import argparse
import logging
import sys

from orders import OrderFilters, default_export_name, export_orders_csv, fetch_orders, filter_orders
from otcbackend import BackendError
from otcbackend.config import load_settings
from scripts.backend import open_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Export filtered OTC orders to CSV")
    parser.add_argument("--db-url", default=settings.db_url, required=settings.db_url is None)
    parser.add_argument("--out", default=None, help="Output file (default: otc_orders_<date>.csv)")
    parser.add_argument("--search", default="", help="Text searched in order/customer fields")
    parser.add_argument("--status", default=None)
    parser.add_argument("--succursale", default=None)
    parser.add_argument("--from", dest="date_start", default=None, help="YYYY-MM-DD")
    parser.add_argument("--to", dest="date_end", default=None, help="YYYY-MM-DD")
    args = parser.parse_args()

    filters = OrderFilters(
        search=args.search,
        status=args.status,
        succursale=args.succursale,
        date_start=args.date_start,
        date_end=args.date_end,
    )
    out_path = args.out or default_export_name()

    service = open_service(args.db_url, settings)
    try:
        orders = filter_orders(fetch_orders(service), filters)
    except BackendError as e:
        logger.error("Could not load orders: %s", e)
        sys.exit(1)
    finally:
        service.close()

    with open(out_path, "w", newline="", encoding="utf-8") as f:
        count = export_orders_csv(orders, f)
    logger.info("Exported %d orders to %s", count, out_path)


if __name__ == "__main__":
    main()
