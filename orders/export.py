"""CSV export of OTC orders."""

import csv
from datetime import date
from typing import TextIO

from ingestion.schema import OTC_COLUMNS
from otcbackend.types import Row

EXPORT_HEADERS = [column.replace("_", " ").upper() for column in OTC_COLUMNS]


def default_export_name(today: date | None = None) -> str:
    return f"otc_orders_{(today or date.today()).isoformat()}.csv"


def export_orders_csv(orders: list[Row], out: TextIO) -> int:
    """Write orders as comma-separated CSV with upper-case headers.

    Returns the number of data rows written.
    """
    writer = csv.writer(out)
    writer.writerow(EXPORT_HEADERS)
    for order in orders:
        writer.writerow(["" if order.get(col) is None else order[col] for col in OTC_COLUMNS])
    return len(orders)
