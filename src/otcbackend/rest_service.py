"""Supabase implementation of BackendService."""

import logging
import time
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client
from supabase.client import ClientOptions

from otcbackend.service import BackendService
from otcbackend.types import BackendError, Match, Row

logger = logging.getLogger(__name__)


def _apply_match(query, match: Match | None):
    for column, value in (match or {}).items():
        query = query.eq(column, value)
    return query


class RestBackendService(BackendService):
    """Hosted backend reached through the Supabase client.

    Idempotent calls (reads and RPCs) are retried with exponential backoff
    on transport errors. Writes are sent exactly once.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        client: Client | None = None,
    ):
        self._url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        # A retried call is still attempted once.
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._client = client

    def connect(self) -> None:
        if self._client is None:
            self._client = create_client(
                self._url,
                self._api_key,
                options=ClientOptions(postgrest_client_timeout=self._timeout),
            )

    def close(self) -> None:
        self._client = None

    def _execute(self, description: str, build: Callable[[Client], Any], retry: bool = False):
        """Build a query on the client and execute it, mapping failures to BackendError."""
        if self._client is None:
            raise RuntimeError("Service not connected. Call connect() first.")
        attempts = self._max_retries if retry else 1

        for attempt in range(attempts):
            try:
                return build(self._client).execute()
            except APIError as e:
                raise BackendError(
                    e.message or str(e), code=e.code, details=e.details, hint=e.hint
                ) from e
            except httpx.TransportError as e:
                if attempt < attempts - 1:
                    delay = self._base_delay * (2**attempt)
                    logger.warning(
                        "%s attempt %d failed: %s. Retrying in %.1fs...",
                        description,
                        attempt + 1,
                        e,
                        delay,
                    )
                    time.sleep(delay)
                else:
                    raise BackendError(f"{description} failed: {e}") from e

    def select(
        self,
        table: str,
        match: Match | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        def build(client):
            query = _apply_match(client.table(table).select("*"), match)
            if order_by:
                query = query.order(order_by, desc=descending)
            return query

        response = self._execute(f"select {table}", build, retry=True)
        return response.data or []

    def insert(self, table: str, records: list[Row]) -> None:
        if not records:
            return
        self._execute(f"insert {table}", lambda client: client.table(table).insert(records))

    def update(self, table: str, values: Row, match: Match) -> None:
        if not values:
            return
        self._execute(
            f"update {table}",
            lambda client: _apply_match(client.table(table).update(values), match),
        )

    def delete(self, table: str, match: Match | None = None) -> None:
        def build(client):
            query = client.table(table).delete()
            if match:
                return _apply_match(query, match)
            # PostgREST refuses an unfiltered delete; every table has an `id`.
            return query.not_.is_("id", "null")

        self._execute(f"delete {table}", build)

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        response = self._execute(
            f"rpc {function}", lambda client: client.rpc(function, params or {}), retry=True
        )
        # Void functions answer with an empty body.
        return None if response.data in (None, "") else response.data
