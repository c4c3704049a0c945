"""Abstract BackendService interface."""

from abc import ABC, abstractmethod
from typing import Any

from otcbackend.types import Match, Row


class BackendService(ABC):
    """Backend-agnostic interface for row storage and remote procedures.

    Mirrors what the hosted backend exposes to a client: table reads and
    writes plus named remote procedure calls. There is no multi-statement
    transaction; every method is one independent remote operation.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open connections / sessions."""

    @abstractmethod
    def close(self) -> None:
        """Release all connections and resources."""

    @abstractmethod
    def select(
        self,
        table: str,
        match: Match | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Return rows of a table or view, optionally filtered by equality."""

    @abstractmethod
    def insert(self, table: str, records: list[Row]) -> None:
        """Insert records. All records must share the same keys."""

    @abstractmethod
    def update(self, table: str, values: Row, match: Match) -> None:
        """Update rows matching every key/value in `match`."""

    @abstractmethod
    def delete(self, table: str, match: Match | None = None) -> None:
        """Delete rows matching `match`, or every row when `match` is None."""

    @abstractmethod
    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        """Call a named remote procedure and return its result."""
