"""Operator endpoints for the patient record upload form."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from core.exceptions import SubmissionInProgressError
from dependencies.records import Controller, NotificationRecorder
from schemas.api import ApiResponse
from schemas.records import DraftUpdate, FormView


router = APIRouter(prefix="/records", tags=["records"])


@router.get("/form", response_model=ApiResponse[FormView])
def get_form(controller: Controller) -> ApiResponse[FormView]:
    """Current field values and submission status."""
    return ApiResponse(data=controller.view(), message="Form loaded")


@router.patch("/form", response_model=ApiResponse[FormView])
def update_form(payload: DraftUpdate, controller: Controller) -> ApiResponse[FormView]:
    """Edit one or more form fields."""
    controller.update_draft(**payload.model_dump(exclude_none=True))
    return ApiResponse(data=controller.view(), message="Form updated")


@router.post(
    "/form/submit",
    response_model=ApiResponse[FormView],
    responses={202: {"model": ApiResponse[FormView]}},
)
async def submit_form(controller: Controller) -> ApiResponse[FormView] | JSONResponse:
    """Validate and start uploading the record.

    Validation failures are returned inline (200, ``data.error`` set); an
    accepted record answers 202 while the upload runs in the background.
    """
    if controller.is_submitting:
        raise SubmissionInProgressError("An upload for this form is still running")

    task = controller.dispatch()
    view = controller.view()
    if task is None:
        return ApiResponse(data=view, success=False, message=view.error or "Rejected")

    body = ApiResponse(data=view, message="Upload started")
    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=body.model_dump())


@router.post("/form/reset", response_model=ApiResponse[FormView])
def reset_form(controller: Controller) -> ApiResponse[FormView]:
    """Clear every field and any outcome message."""
    controller.reset()
    return ApiResponse(data=controller.view(), message="Form reset")


@router.get("/notifications", response_model=ApiResponse[list[dict[str, str]]])
def drain_notifications(
    recorder: NotificationRecorder,
) -> ApiResponse[list[dict[str, str]]]:
    """Return and clear pending toasts."""
    toasts = [
        {"severity": n.severity, "title": n.title, "message": n.message}
        for n in recorder.drain()
    ]
    return ApiResponse(data=toasts, message=f"{len(toasts)} notification(s)")
