"""CLI entry point for project calculation settings.

Usage:
    python -m scripts.calculation_method list
    python -m scripts.calculation_method switch PROJECT_ID {or_based,otc_based}
    python -m scripts.calculation_method refresh
"""

import argparse
import logging
import sys

from otcbackend import BackendError
from otcbackend.config import load_settings
from projects import (
    CALCULATION_METHODS,
    describe_method,
    fetch_calculation_methods,
    refresh_analytics_views,
    switch_calculation_method,
)
from scripts.backend import open_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Manage project calculation methods")
    parser.add_argument("--db-url", default=settings.db_url, required=settings.db_url is None)
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Show every project and its method")
    switch = sub.add_parser("switch", help="Switch a project's method")
    switch.add_argument("project_id")
    switch.add_argument("method", choices=CALCULATION_METHODS)
    sub.add_parser("refresh", help="Refresh project analytics views")
    args = parser.parse_args()

    service = open_service(args.db_url, settings)
    try:
        if args.command == "list":
            for row in fetch_calculation_methods(service):
                print(
                    f"{row['project_id']}  {row['project_name']:<30} "
                    f"{describe_method(row['calculation_method']):<10} "
                    f"{row['machine_count']} machines"
                )
        elif args.command == "switch":
            switch_calculation_method(service, args.project_id, args.method)
            refresh_analytics_views(service)
        else:
            refresh_analytics_views(service)
    except BackendError as e:
        logger.error("Operation failed: %s", e)
        sys.exit(1)
    finally:
        service.close()


if __name__ == "__main__":
    main()
