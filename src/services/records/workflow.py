"""Pure state transitions for the record submission workflow.

`reduce` takes the current `WorkflowSnapshot` and an event and returns the
next snapshot. It never performs I/O; the controller feeds it events and
carries out the side effects (upload, notification, logging).

An attempt's resolution applies while that attempt is the one in `Submitting`,
and also after a reset detached it, as long as no newer attempt has been
accepted since. Once a newer attempt exists the resolution is stale and the
snapshot is returned unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from services.records.models import (
    DraftRecord,
    Failed,
    Idle,
    SubmissionAttempt,
    Submitting,
    Succeeded,
    WorkflowState,
)


@dataclass(frozen=True, slots=True)
class WorkflowSnapshot:
    state: WorkflowState = field(default_factory=Idle)
    draft: DraftRecord = field(default_factory=DraftRecord)
    # Highest attempt token handed out so far
    last_token: int = 0
    # Attempt still in flight when the form was reset
    detached_token: int | None = None


@dataclass(frozen=True, slots=True)
class DraftEdited:
    phone_number: str | None = None
    record_type: str | None = None
    content: str | None = None


@dataclass(frozen=True, slots=True)
class SubmitRejected:
    reason: str


@dataclass(frozen=True, slots=True)
class SubmitAccepted:
    attempt: SubmissionAttempt


@dataclass(frozen=True, slots=True)
class AttemptSucceeded:
    token: int


@dataclass(frozen=True, slots=True)
class AttemptFailed:
    token: int
    reason: str


@dataclass(frozen=True, slots=True)
class ResetRequested:
    pass


WorkflowEvent = (
    DraftEdited
    | SubmitRejected
    | SubmitAccepted
    | AttemptSucceeded
    | AttemptFailed
    | ResetRequested
)


def is_submitting(snapshot: WorkflowSnapshot) -> bool:
    return isinstance(snapshot.state, Submitting)


def is_current(snapshot: WorkflowSnapshot, token: int) -> bool:
    """True when a resolution for ``token`` should still be applied."""
    state = snapshot.state
    if isinstance(state, Submitting):
        return state.attempt.token == token
    return snapshot.detached_token == token


def next_token(snapshot: WorkflowSnapshot) -> int:
    return snapshot.last_token + 1


def reduce(snapshot: WorkflowSnapshot, event: WorkflowEvent) -> WorkflowSnapshot:
    match event:
        case DraftEdited():
            changes = {
                name: value
                for name, value in (
                    ("phone_number", event.phone_number),
                    ("record_type", event.record_type),
                    ("content", event.content),
                )
                if value is not None
            }
            return replace(snapshot, draft=snapshot.draft.with_changes(**changes))

        case SubmitRejected(reason=reason):
            if is_submitting(snapshot):
                return snapshot
            return replace(snapshot, state=Failed(reason))

        case SubmitAccepted(attempt=attempt):
            # Single flight: a second attempt never replaces the one in flight
            if is_submitting(snapshot) or attempt.token <= snapshot.last_token:
                return snapshot
            return replace(
                snapshot,
                state=Submitting(attempt),
                last_token=attempt.token,
                detached_token=None,
            )

        case AttemptSucceeded(token=token):
            if not is_current(snapshot, token):
                return snapshot
            return replace(
                snapshot,
                state=Succeeded(),
                draft=snapshot.draft.cleared_after_success(),
                detached_token=None,
            )

        case AttemptFailed(token=token, reason=reason):
            if not is_current(snapshot, token):
                return snapshot
            return replace(snapshot, state=Failed(reason), detached_token=None)

        case ResetRequested():
            state = snapshot.state
            detached = (
                state.attempt.token
                if isinstance(state, Submitting)
                else snapshot.detached_token
            )
            return replace(
                snapshot, state=Idle(), draft=DraftRecord(), detached_token=detached
            )

    raise TypeError(f"Unknown workflow event: {event!r}")  # pragma: no cover
