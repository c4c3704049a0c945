"""Full-replace batch upload of normalized orders."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ingestion.errors import BatchInsertError, ClearTableError, NoValidRowsError
from ingestion.schema import OTC_TABLE, TRUNCATE_RPC
from otcbackend.service import BackendService
from otcbackend.types import BackendError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_PAUSE = 0.05


@dataclass
class ImportProgress:
    """Import progress as (records inserted, total records).

    Listeners are called on every report(); reset() is silent.
    """

    current: int = 0
    total: int = 0
    listeners: list[Callable[[int, int], None]] = field(default_factory=list)

    def report(self, current: int, total: int) -> None:
        self.current = current
        self.total = total
        for listener in self.listeners:
            listener(current, total)

    def reset(self) -> None:
        self.current = 0
        self.total = 0


def clear_orders(service: BackendService, table: str = OTC_TABLE) -> None:
    """Remove every order, restarting the identity when the backend can.

    Falls back to a plain delete-all when the truncate procedure is missing
    or fails.
    """
    try:
        service.rpc(TRUNCATE_RPC)
        logger.info("Truncated %s", table)
        return
    except BackendError as e:
        logger.warning("%s unavailable (%s); falling back to delete", TRUNCATE_RPC, e)

    try:
        service.delete(table)
    except BackendError as e:
        raise ClearTableError(e) from e
    logger.info("Deleted all rows from %s", table)


def upload_orders(
    service: BackendService,
    records: list[dict[str, Any]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress: ImportProgress | None = None,
    pause: float = DEFAULT_PAUSE,
    sleep: Callable[[float], None] | None = None,
    table: str = OTC_TABLE,
) -> int:
    """Replace the table contents with `records`, inserted in chunks.

    Destructive and not atomic: the table is emptied first, then each chunk
    is a separate insert. On a failed chunk the earlier chunks stay
    committed and BatchInsertError reports how many made it. Re-running
    starts over from an empty table.

    Returns the number of records inserted.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if not records:
        raise NoValidRowsError()

    progress = progress if progress is not None else ImportProgress()
    sleep = sleep or time.sleep
    total = len(records)

    clear_orders(service, table)

    imported = 0
    for start in range(0, total, batch_size):
        chunk = records[start : start + batch_size]
        progress.report(imported, total)
        try:
            service.insert(table, chunk)
        except BackendError as e:
            logger.error("Chunk at row %d failed after %d records: %s", start, imported, e)
            raise BatchInsertError(imported, total, e) from e
        imported += len(chunk)
        logger.info("Inserted %d/%d orders", imported, total)
        sleep(pause)

    progress.report(imported, total)
    logger.info("Import complete: %d orders", imported)
    progress.reset()
    return imported
