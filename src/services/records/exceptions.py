"""Domain exceptions for the record submission workflow.

Each exception carries a stable `error_code` for log tagging. The `message`
is operator-facing and is what ends up in `Failed(reason)`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class RecordSubmissionError(Exception):
    """Base class for record submission domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class RecordValidationError(RecordSubmissionError):
    """Local validation failure; never reaches the upload service."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_code="invalid_record")


class TransportError(RecordSubmissionError):
    """The upload service could not accept the record."""

    def __init__(
        self,
        message: str = "Upload failed. Please try again.",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, error_code="transport_failed")
        self.status_code = status_code
