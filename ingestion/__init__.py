"""OTC CSV import: header resolution, row normalization and batch upload."""

from ingestion.csv_ingest import (
    convert_date_format,
    import_csv,
    import_csv_file,
    normalize_csv,
    normalize_row,
)
from ingestion.errors import (
    BatchInsertError,
    ClearTableError,
    MissingHeadersError,
    NoValidRowsError,
    OtcImportError,
)
from ingestion.headers import resolve_headers
from ingestion.uploader import ImportProgress, upload_orders

__all__ = [
    "BatchInsertError",
    "ClearTableError",
    "ImportProgress",
    "MissingHeadersError",
    "NoValidRowsError",
    "OtcImportError",
    "convert_date_format",
    "import_csv",
    "import_csv_file",
    "normalize_csv",
    "normalize_row",
    "resolve_headers",
    "upload_orders",
]
