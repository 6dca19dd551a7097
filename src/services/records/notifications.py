"""Outcome notifications for record submissions."""

from __future__ import annotations

from core.error_handler import StructuredLogger
from services.records.interfaces import Notification, NotificationSinkProtocol


structured_logger = StructuredLogger(__name__)

UPLOAD_SUCCESS_TITLE = "Upload Successful"
UPLOAD_SUCCESS_MESSAGE = "Patient data has been securely encrypted and uploaded"
UPLOAD_FAILURE_TITLE = "Upload Failed"


def success_notification() -> Notification:
    return Notification(
        severity="success", title=UPLOAD_SUCCESS_TITLE, message=UPLOAD_SUCCESS_MESSAGE
    )


def failure_notification(reason: str) -> Notification:
    return Notification(severity="error", title=UPLOAD_FAILURE_TITLE, message=reason)


class LoggingNotificationSink:
    """Writes notifications to the structured log."""

    def notify(self, notification: Notification) -> None:
        if notification.severity == "error":
            structured_logger.warning(
                notification.title, notification_message=notification.message
            )
        else:
            structured_logger.info(
                notification.title, notification_message=notification.message
            )


class RecordingNotificationSink:
    """Keeps every notification in memory, newest last.

    Backs the operator API so a console can poll for toasts.
    """

    def __init__(self, limit: int = 50) -> None:
        self._limit = limit
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        del self.notifications[: -self._limit]

    def drain(self) -> list[Notification]:
        drained, self.notifications = self.notifications, []
        return drained


class FanOutNotificationSink:
    """Delivers each notification to several sinks."""

    def __init__(self, *sinks: NotificationSinkProtocol) -> None:
        self._sinks = sinks

    def notify(self, notification: Notification) -> None:
        # One failing sink must not starve the others
        for sink in self._sinks:
            try:
                sink.notify(notification)
            except Exception as exc:  # noqa: BLE001
                structured_logger.warning(
                    "Notification sink failed",
                    sink=type(sink).__name__,
                    severity=notification.severity,
                    exception_type=type(exc).__name__,
                )
