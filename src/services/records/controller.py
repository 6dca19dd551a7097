"""Record submission controller.

Owns the draft and the workflow state for one operator console and drives at
most one upload at a time:

    Idle/Succeeded/Failed --submit (valid)--> Submitting --ok--> Succeeded
                          --submit (invalid)-> Failed       --error--> Failed
    any --reset--> Idle

Submitting is split in two steps so the single-flight check can never race:
`begin_submit` validates, reads the hospital context and moves to Submitting
synchronously; `run_attempt` awaits the upload and applies its outcome.
A reset does not cancel an upload that is already running. Its result is
still applied when it arrives, unless a newer attempt was started after the
reset, in which case it is dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from core.error_handler import StructuredLogger
from schemas.records import FormView
from services.records.exceptions import RecordValidationError, TransportError
from services.records.interfaces import (
    HospitalContextProtocol,
    Notification,
    NotificationSinkProtocol,
    UploadServiceProtocol,
)
from services.records.models import (
    DraftRecord,
    Failed,
    SubmissionAttempt,
    Submitting,
    Succeeded,
    WorkflowState,
)
from services.records.notifications import failure_notification, success_notification
from services.records.validation import ensure_valid
from services.records.workflow import (
    AttemptFailed,
    AttemptSucceeded,
    DraftEdited,
    ResetRequested,
    SubmitAccepted,
    SubmitRejected,
    WorkflowSnapshot,
    is_current,
    is_submitting,
    next_token,
    reduce,
)


structured_logger = StructuredLogger(__name__)

UNEXPECTED_FAILURE = "Upload failed. Please try again."
SUCCESS_BANNER = "Record uploaded successfully"
SUBMIT_LABEL = "Upload Record"
SUBMITTING_LABEL = "Uploading..."


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RecordSubmissionController:
    """Validation plus the submit/result state machine for a single form."""

    def __init__(
        self,
        upload_service: UploadServiceProtocol,
        hospital_context: HospitalContextProtocol,
        notification_sink: NotificationSinkProtocol,
        *,
        clock: Callable[[], datetime] = _utcnow,
        strict_record_types: bool = False,
    ) -> None:
        self.upload_service = upload_service
        self.hospital_context = hospital_context
        self.notification_sink = notification_sink
        self._clock = clock
        self._strict_record_types = strict_record_types
        self._snapshot = WorkflowSnapshot()
        self._tasks: set[asyncio.Task[WorkflowState]] = set()

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #

    @property
    def snapshot(self) -> WorkflowSnapshot:
        return self._snapshot

    @property
    def state(self) -> WorkflowState:
        return self._snapshot.state

    @property
    def draft(self) -> DraftRecord:
        return self._snapshot.draft

    @property
    def is_submitting(self) -> bool:
        return is_submitting(self._snapshot)

    def view(self) -> FormView:
        """Render-ready snapshot of the form."""
        state = self.state
        submitting = isinstance(state, Submitting)
        return FormView(
            phone_number=self.draft.phone_number,
            record_type=self.draft.record_type,
            content=self.draft.content,
            status=state.name,
            is_loading=submitting,
            error=state.reason if isinstance(state, Failed) else None,
            success_message=SUCCESS_BANNER if isinstance(state, Succeeded) else None,
            submit_enabled=not submitting,
            reset_enabled=True,
            submit_label=SUBMITTING_LABEL if submitting else SUBMIT_LABEL,
        )

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #

    def update_draft(
        self,
        *,
        phone_number: str | None = None,
        record_type: str | None = None,
        content: str | None = None,
    ) -> DraftRecord:
        """Apply field edits; ``None`` leaves a field untouched."""
        self._snapshot = reduce(
            self._snapshot,
            DraftEdited(
                phone_number=phone_number, record_type=record_type, content=content
            ),
        )
        return self.draft

    def reset(self) -> None:
        """Clear every field and any outcome; detach from an in-flight upload."""
        if self.is_submitting:
            structured_logger.info(
                "Form reset while an upload is in flight; it keeps running",
                attempt=self._snapshot.last_token,
            )
        self._snapshot = reduce(self._snapshot, ResetRequested())

    def begin_submit(self) -> SubmissionAttempt | None:
        """Validate and move to Submitting.

        Returns the new attempt, or None when the submit was rejected because
        an upload is already in flight or the draft is invalid (the state is
        then ``Failed(reason)``).
        """
        if self.is_submitting:
            structured_logger.info(
                "Submit ignored; an upload is already in flight",
                attempt=self._snapshot.last_token,
            )
            return None

        draft = self.draft
        try:
            ensure_valid(draft, strict_record_types=self._strict_record_types)
        except RecordValidationError as exc:
            structured_logger.info(
                "Record failed validation",
                error_code=exc.error_code,
                reason=exc.message,
            )
            self._snapshot = reduce(self._snapshot, SubmitRejected(exc.message))
            return None

        attempt = SubmissionAttempt(
            token=next_token(self._snapshot),
            draft=draft,
            hospital_id=self.hospital_context.hospital_id,
            submitted_at=self._clock(),
        )
        self._snapshot = reduce(self._snapshot, SubmitAccepted(attempt))
        structured_logger.info(
            "Submitting record",
            attempt=attempt.token,
            record_type=draft.record_type,
            hospital_id=attempt.hospital_id,
        )
        return attempt

    async def run_attempt(self, attempt: SubmissionAttempt) -> WorkflowState:
        """Await the upload for ``attempt`` and apply its outcome if still current."""
        record = attempt.to_upload_record()
        try:
            await self.upload_service.submit(record)
        except TransportError as exc:
            event: AttemptSucceeded | AttemptFailed = AttemptFailed(
                attempt.token, exc.message
            )
        except Exception as exc:  # noqa: BLE001 - every failure must end in Failed
            structured_logger.exception(
                "Upload service raised an unexpected error",
                attempt=attempt.token,
                exception_type=type(exc).__name__,
            )
            event = AttemptFailed(attempt.token, UNEXPECTED_FAILURE)
        else:
            event = AttemptSucceeded(attempt.token)

        if not is_current(self._snapshot, attempt.token):
            structured_logger.info(
                "Dropping result of a superseded upload",
                attempt=attempt.token,
                outcome=type(event).__name__,
            )
            return self.state

        self._snapshot = reduce(self._snapshot, event)
        if isinstance(event, AttemptFailed):
            structured_logger.warning(
                "Record upload failed", attempt=attempt.token, reason=event.reason
            )
            self._notify(failure_notification(event.reason))
        else:
            structured_logger.info("Record uploaded", attempt=attempt.token)
            self._notify(success_notification())
        return self.state

    async def submit(self) -> WorkflowState:
        """Submit the current draft and wait for the outcome."""
        attempt = self.begin_submit()
        if attempt is None:
            return self.state
        return await self.run_attempt(attempt)

    def dispatch(self) -> asyncio.Task[WorkflowState] | None:
        """Submit in the background; returns the upload task, if one started."""
        attempt = self.begin_submit()
        if attempt is None:
            return None
        task = asyncio.get_running_loop().create_task(self.run_attempt(attempt))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_for_uploads(self) -> None:
        """Wait for every background upload to finish (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _notify(self, notification: Notification) -> None:
        # Notifications never influence the workflow state
        try:
            self.notification_sink.notify(notification)
        except Exception as exc:  # noqa: BLE001
            structured_logger.warning(
                "Notification delivery failed",
                severity=notification.severity,
                exception_type=type(exc).__name__,
            )
