"""Import failures surfaced to the caller."""


class OtcImportError(Exception):
    """Base class for every error that aborts an OTC import."""


class MissingHeadersError(OtcImportError):
    def __init__(self, missing: list[str], found: list[str]):
        self.missing = missing
        self.found = found
        super().__init__(
            f"Missing required columns: {', '.join(missing)}. "
            f"Columns found: {', '.join(found) or '(none)'}"
        )


class NoValidRowsError(OtcImportError):
    def __init__(self, message: str = "No valid rows found in the CSV file"):
        super().__init__(message)


class ClearTableError(OtcImportError):
    """Existing rows could not be removed; nothing was inserted."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Failed to clear existing orders: {cause}")


class BatchInsertError(OtcImportError):
    """A chunk insert failed. Earlier chunks stay committed."""

    def __init__(self, imported: int, total: int, cause: Exception):
        self.imported = imported
        self.total = total
        self.cause = cause
        super().__init__(f"{imported} records imported before error: {cause}")
