"""Backend connection shared by the command-line entry points."""

import logging

from ingestion.schema import ensure_otc_schema
from otcbackend import BackendService, SQLiteBackendService, create_service
from otcbackend.config import Settings
from projects import ensure_projects_schema

logger = logging.getLogger(__name__)


def open_service(db_url: str, settings: Settings) -> BackendService:
    """Create and connect the backend for `db_url`.

    A local SQLite file gets its tables, views and stand-in procedures
    installed on every run: procedures only live as long as the service.
    Postgres and hosted schemas are managed by their own migrations.
    """
    service = create_service(db_url, api_key=settings.api_key, timeout=settings.timeout)
    service.connect()
    if isinstance(service, SQLiteBackendService):
        try:
            ensure_otc_schema(service)
            ensure_projects_schema(service)
        except Exception:
            service.close()
            raise
        logger.debug("Local schema ready at %s", db_url)
    return service
