"""Shared test fixtures."""

import pytest

from ingestion.schema import ensure_otc_schema
from otcbackend import create_service
from projects.schema import ensure_projects_schema


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite backend with the OTC and project schema installed."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    ensure_otc_schema(service)
    ensure_projects_schema(service)
    yield service
    service.close()
