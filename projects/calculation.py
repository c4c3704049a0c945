"""Per-project calculation method settings."""

import logging

from otcbackend.service import BackendService
from otcbackend.types import Row
from projects.schema import (
    CALCULATION_METHODS_VIEW,
    PROJECTS_TABLE,
    REFRESH_ANALYTICS_RPC,
    SWITCH_METHOD_RPC,
)

logger = logging.getLogger(__name__)

CALCULATION_METHODS = ("or_based", "otc_based")
METHOD_LABELS = {"or_based": "OR-based", "otc_based": "OTC-based"}


def describe_method(method: str) -> str:
    return METHOD_LABELS.get(method, method)


def fetch_projects(service: BackendService) -> list[Row]:
    return service.select(PROJECTS_TABLE, order_by="name")


def fetch_calculation_methods(service: BackendService) -> list[Row]:
    return service.select(CALCULATION_METHODS_VIEW, order_by="project_name")


def switch_calculation_method(service: BackendService, project_id: str, method: str) -> None:
    """Switch a project between OR-based and OTC-based analytics.

    Raises:
        ValueError: if `method` is not one of CALCULATION_METHODS.
        BackendError: if the backend rejects the switch.
    """
    if method not in CALCULATION_METHODS:
        raise ValueError(
            f"Unknown calculation method {method!r}; expected one of {', '.join(CALCULATION_METHODS)}"
        )
    service.rpc(SWITCH_METHOD_RPC, {"project_uuid": project_id, "method": method})
    logger.info("Project %s switched to %s", project_id, describe_method(method))


def refresh_analytics_views(service: BackendService) -> None:
    service.rpc(REFRESH_ANALYTICS_RPC)
    logger.info("Project analytics views refreshed")
