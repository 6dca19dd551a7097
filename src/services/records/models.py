"""Domain models for the record submission workflow.

* DraftRecord        - the editable form fields.
* Valid / Invalid    - ValidationResult variants returned by `validate`.
* SubmissionAttempt  - one dispatched upload (snapshot + origin + timestamp).
* Idle / Submitting / Succeeded / Failed - the WorkflowState tagged variant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime

from schemas.records import UploadRecord


@dataclass(frozen=True, slots=True)
class DraftRecord:
    """User-owned form fields. Immutable; edits produce a new instance."""

    phone_number: str = ""
    record_type: str = ""
    content: str = ""

    def with_changes(self, **changes: str) -> DraftRecord:
        return replace(self, **changes)

    def cleared_after_success(self) -> DraftRecord:
        # Phone number is kept so several records can be entered for one patient
        return replace(self, record_type="", content="")


@dataclass(frozen=True, slots=True)
class Valid:
    pass


@dataclass(frozen=True, slots=True)
class Invalid:
    reason: str


ValidationResult = Valid | Invalid


@dataclass(frozen=True, slots=True)
class SubmissionAttempt:
    token: int
    draft: DraftRecord
    hospital_id: str | None
    submitted_at: datetime

    def to_upload_record(self) -> UploadRecord:
        return UploadRecord(
            hospital_id=self.hospital_id,
            phone_number=self.draft.phone_number,
            record_type=self.draft.record_type,
            content=self.draft.content,
            timestamp=format_timestamp(self.submitted_at),
        )


@dataclass(frozen=True, slots=True)
class Idle:
    name = "idle"


@dataclass(frozen=True, slots=True)
class Submitting:
    attempt: SubmissionAttempt
    name = "submitting"


@dataclass(frozen=True, slots=True)
class Succeeded:
    name = "succeeded"


@dataclass(frozen=True, slots=True)
class Failed:
    reason: str
    name = "failed"


WorkflowState = Idle | Submitting | Succeeded | Failed


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
