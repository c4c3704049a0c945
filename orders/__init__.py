"""Order tracking: fetch, filter, export and edit stored OTC orders."""

from orders.export import default_export_name, export_orders_csv
from orders.tracking import (
    OrderFilters,
    delete_order,
    fetch_analytics,
    fetch_orders,
    filter_orders,
    unique_values,
    update_order,
)

__all__ = [
    "OrderFilters",
    "default_export_name",
    "delete_order",
    "export_orders_csv",
    "fetch_analytics",
    "fetch_orders",
    "filter_orders",
    "unique_values",
    "update_order",
]
