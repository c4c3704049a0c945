"""Reading, filtering and editing stored OTC orders."""

import logging
from dataclasses import dataclass
from typing import Any

from ingestion.schema import OTC_ANALYTICS_VIEW, OTC_TABLE
from otcbackend.service import BackendService
from otcbackend.types import Row

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["num_cde", "po_client", "reference", "designation", "num_client", "nom_clients"]


@dataclass(frozen=True)
class OrderFilters:
    """Search criteria. None (or empty) means "no restriction"."""

    search: str = ""
    status: str | None = None
    succursale: str | None = None
    date_start: str | None = None
    date_end: str | None = None


def matches(order: Row, filters: OrderFilters) -> bool:
    if filters.search:
        term = filters.search.lower()
        if not any(term in str(order.get(f) or "").lower() for f in SEARCH_FIELDS):
            return False
    if filters.status and order.get("status") != filters.status:
        return False
    if filters.succursale and order.get("succursale") != filters.succursale:
        return False

    # ISO dates compare correctly as strings.
    order_date = str(order.get("date_cde") or "")
    if filters.date_start and order_date < filters.date_start:
        return False
    if filters.date_end and order_date > filters.date_end:
        return False
    return True


def filter_orders(orders: list[Row], filters: OrderFilters) -> list[Row]:
    return [order for order in orders if matches(order, filters)]


def unique_values(orders: list[Row], field: str) -> list[Any]:
    """Sorted distinct non-empty values of `field`, for filter pickers."""
    return sorted({order[field] for order in orders if order.get(field)})


def fetch_orders(service: BackendService) -> list[Row]:
    """All orders, newest order date first."""
    return service.select(OTC_TABLE, order_by="date_cde", descending=True)


def fetch_analytics(service: BackendService) -> list[Row]:
    """Per-branch delivery statistics."""
    return service.select(OTC_ANALYTICS_VIEW)


def delete_order(service: BackendService, order_id: Any) -> None:
    service.delete(OTC_TABLE, {"id": order_id})
    logger.info("Deleted order %s", order_id)


def update_order(service: BackendService, order_id: Any, values: Row) -> None:
    """Update one order. The computed balance column is never written."""
    values = {k: v for k, v in values.items() if k not in ("id", "solde")}
    service.update(OTC_TABLE, values, {"id": order_id})
    logger.info("Updated order %s: %s", order_id, ", ".join(values))
