"""Schemas for patient record intake.

Wire models exchanged with the upload service plus the operator-facing form
payloads served by the API.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RecordType(str, Enum):
    """Record classifications offered by the record type selector."""

    MEDICAL_HISTORY = "medical_history"
    LAB_RESULTS = "lab_results"
    MEDICATION = "medication"
    SURGICAL_PROCEDURE = "surgical_procedure"
    IMAGING = "imaging"
    DIAGNOSIS = "diagnosis"

    @property
    def label(self) -> str:
        return RECORD_TYPE_LABELS[self]


RECORD_TYPE_LABELS: dict[RecordType, str] = {
    RecordType.MEDICAL_HISTORY: "Medical History",
    RecordType.LAB_RESULTS: "Lab Results",
    RecordType.MEDICATION: "Medication",
    RecordType.SURGICAL_PROCEDURE: "Surgical Procedure",
    RecordType.IMAGING: "Imaging/Scans",
    RecordType.DIAGNOSIS: "Diagnosis",
}


class UploadRecord(BaseModel):
    """Record payload sent to the upload service.

    Serialized with camelCase keys (``model_dump(by_alias=True)``) to match
    the upload endpoint.
    """

    hospital_id: str | None = Field(default=None, alias="hospitalId")
    phone_number: str = Field(..., alias="phoneNumber")
    record_type: str = Field(..., alias="recordType")
    content: str
    timestamp: str = Field(..., description="ISO-8601 UTC submission time")

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class UploadReceipt(BaseModel):
    """Affirmative answer from the upload service."""

    record_id: str | None = Field(default=None, alias="recordId")
    message: str | None = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordTypeOption(BaseModel):
    value: str
    label: str


class DraftUpdate(BaseModel):
    """Partial edit of the form fields; omitted fields are left as they are."""

    phone_number: str | None = None
    record_type: str | None = None
    content: str | None = None

    model_config = ConfigDict(extra="forbid")


class FormView(BaseModel):
    """Snapshot of everything the upload form renders."""

    phone_number: str
    record_type: str
    content: str
    status: Literal["idle", "submitting", "succeeded", "failed"]
    is_loading: bool
    error: str | None = None
    success_message: str | None = None
    submit_enabled: bool
    reset_enabled: bool = True
    submit_label: str
    record_types: list[RecordTypeOption] = Field(
        default_factory=lambda: [
            RecordTypeOption(value=rt.value, label=rt.label) for rt in RecordType
        ]
    )

    model_config = ConfigDict(frozen=True)
