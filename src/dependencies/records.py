"""Dependency wiring for the record submission controller.

The console serves a single operator form, so one controller lives on
``app.state`` for the lifetime of the application.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from core.config import Settings
from services.records.controller import RecordSubmissionController
from services.records.factory import get_upload_service
from services.records.hospital_context import MutableHospitalContext
from services.records.notifications import (
    FanOutNotificationSink,
    LoggingNotificationSink,
    RecordingNotificationSink,
)


def build_controller(
    settings: Settings,
) -> tuple[RecordSubmissionController, RecordingNotificationSink]:
    """Create the controller and the in-memory sink the API drains toasts from."""
    recorder = RecordingNotificationSink()
    controller = RecordSubmissionController(
        upload_service=get_upload_service(settings),
        hospital_context=MutableHospitalContext(settings.HOSPITAL_ID),
        notification_sink=FanOutNotificationSink(LoggingNotificationSink(), recorder),
        strict_record_types=settings.STRICT_RECORD_TYPES,
    )
    return controller, recorder


def get_controller(request: Request) -> RecordSubmissionController:
    return request.app.state.record_controller


def get_notification_recorder(request: Request) -> RecordingNotificationSink:
    return request.app.state.notification_recorder


Controller = Annotated[RecordSubmissionController, Depends(get_controller)]
NotificationRecorder = Annotated[
    RecordingNotificationSink, Depends(get_notification_recorder)
]
