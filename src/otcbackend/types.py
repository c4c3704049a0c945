"""Shared types for the backend service layer."""

from typing import Any

Row = dict[str, Any]
Params = tuple | list | dict
Match = dict[str, Any]


class BackendError(RuntimeError):
    """A remote or storage operation failed.

    Carries the diagnostic fields PostgREST returns (code, message, details,
    hint) so callers can surface them verbatim.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status = status

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"code={self.code}")
        if self.details:
            parts.append(f"details={self.details}")
        if self.hint:
            parts.append(f"hint={self.hint}")
        return " | ".join(parts)
