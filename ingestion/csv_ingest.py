"""OTC CSV import: row normalization and the full import pipeline."""

import logging
import math
import re
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterator

from ingestion.errors import NoValidRowsError
from ingestion.headers import HeaderResolution, resolve_headers, split_line
from ingestion.schema import DEFAULT_STATUS, REQUIRED_FIELDS
from ingestion.uploader import DEFAULT_BATCH_SIZE, DEFAULT_PAUSE, ImportProgress, upload_orders
from otcbackend.service import BackendService

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DASHED_DATE_RE = re.compile(r"^\d{2}-\d{2}-\d{4}$")
LEADING_NUMBER_RE = re.compile(r"^[+-]?(\d+([.,]\d*)?|[.,]\d+)([eE][+-]?\d+)?")
# Only CR/LF end a record; other Unicode line breaks may sit inside a cell.
LINE_BREAK_RE = re.compile(r"\r?\n")

OPTIONAL_TEXT_FIELDS = {"po_client", "num_bl", "num_client", "nom_clients"}
QUANTITY_FIELDS = {"qte_cde", "qte_livree"}
# Balance is computed by the backend from the two quantities.
IGNORED_FIELDS = {"solde"}


def _iso(year: str, month: str, day: str) -> str | None:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def convert_date_format(value: str | None) -> str | None:
    """Convert DD/MM/YYYY or DD-MM-YYYY to YYYY-MM-DD.

    YYYY-MM-DD input is returned unchanged. Blank input and anything else,
    including impossible calendar dates, yields None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    if "/" in value:
        parts = value.split("/")
        if len(parts) != 3 or not all(p.isdigit() for p in parts) or len(parts[2]) != 4:
            return None
        day, month, year = parts
        return _iso(year, month, day)

    if DASHED_DATE_RE.match(value):
        day, month, year = value.split("-")
        return _iso(year, month, day)

    if ISO_DATE_RE.match(value):
        return value if _iso(*value.split("-")) else None

    return None


def parse_quantity(value: str) -> float:
    """Parse the leading number of a quantity cell, so "10 pcs" gives 10.

    A comma is read as the decimal separator. 0 when no number leads the
    cell or the number is not finite.
    """
    match = LEADING_NUMBER_RE.match(value.strip())
    if match is None:
        return 0
    number = float(match.group(0).replace(",", "."))
    return number if math.isfinite(number) else 0


def normalize_row(values: list[str], resolution: HeaderResolution) -> dict[str, Any] | None:
    """Map one split data row onto a canonical order record.

    Returns None when the row must be dropped: a required value is empty or
    the order date cannot be converted.
    """
    record: dict[str, Any] = {}
    for key, index in resolution.columns.items():
        if index is None:
            continue
        field = key.replace(" ", "_")
        value = values[index]

        if field in IGNORED_FIELDS:
            continue
        elif field in QUANTITY_FIELDS:
            record[field] = parse_quantity(value)
        elif field in OPTIONAL_TEXT_FIELDS:
            record[field] = value or None
        elif field == "status":
            record[field] = value or DEFAULT_STATUS
        elif field == "date_cde":
            converted = convert_date_format(value)
            if value and converted is None:
                logger.warning("Dropping order %r: unreadable order date %r", values, value)
                return None
            record[field] = converted
        elif field == "date_bl":
            record[field] = convert_date_format(value)
        else:
            record[field] = value

    record.setdefault("status", DEFAULT_STATUS)

    missing = [f for f in REQUIRED_FIELDS if not record.get(f)]
    if missing:
        logger.warning("Dropping row %r: empty %s", values, ", ".join(missing))
        return None
    return record


def _iter_records(
    lines: list[tuple[int, str]], resolution: HeaderResolution
) -> Iterator[dict[str, Any]]:
    expected = len(resolution.headers)
    for line_num, line in lines:
        values = split_line(line, resolution.delimiter)
        if len(values) != expected:
            if line.count('"') % 2:
                logger.warning(
                    "Skipping line %d: unbalanced quote, %d values for %d columns",
                    line_num,
                    len(values),
                    expected,
                )
            else:
                logger.debug(
                    "Skipping line %d: %d values for %d columns", line_num, len(values), expected
                )
            continue
        record = normalize_row(values, resolution)
        if record is not None:
            yield record


def normalize_csv(text: str) -> Iterator[dict[str, Any]]:
    """Normalize CSV text into canonical order records.

    Headers are resolved eagerly, so a missing required column raises
    MissingHeadersError before any data row is read. Records are then
    yielded lazily, one pass over the input.
    """
    lines = [
        (n, line) for n, line in enumerate(LINE_BREAK_RE.split(text), start=1) if line.strip()
    ]
    if not lines:
        raise NoValidRowsError("The CSV file is empty")

    resolution = resolve_headers(lines[0][1])
    logger.info(
        "Detected delimiter %r and %d columns", resolution.delimiter, len(resolution.headers)
    )
    return _iter_records(lines[1:], resolution)


def import_csv(
    service: BackendService,
    text: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress: ImportProgress | None = None,
    pause: float = DEFAULT_PAUSE,
    sleep: Callable[[float], None] | None = None,
) -> int:
    """Replace the contents of otc_orders with the orders in `text`.

    Not atomic: existing rows are deleted first, then chunks are inserted one
    by one. A failed chunk leaves earlier chunks committed.

    Returns the number of records imported.
    """
    records = list(normalize_csv(text))
    logger.info("Normalized %d valid orders", len(records))
    return upload_orders(
        service,
        records,
        batch_size=batch_size,
        progress=progress,
        pause=pause,
        sleep=sleep,
    )


def import_csv_file(
    service: BackendService,
    file_path: str | Path,
    encoding: str = "utf-8-sig",
    **kwargs,
) -> int:
    """Read a CSV file and import it with import_csv()."""
    text = Path(file_path).read_text(encoding=encoding)
    return import_csv(service, text, **kwargs)
