"""Project calculation settings: method switching and analytics refresh."""

from projects.calculation import (
    CALCULATION_METHODS,
    describe_method,
    fetch_calculation_methods,
    fetch_projects,
    refresh_analytics_views,
    switch_calculation_method,
)
from projects.schema import ensure_projects_schema

__all__ = [
    "CALCULATION_METHODS",
    "describe_method",
    "ensure_projects_schema",
    "fetch_calculation_methods",
    "fetch_projects",
    "refresh_analytics_views",
    "switch_calculation_method",
]
