"""Collaborator interfaces for the record submission controller.

The controller only talks to these protocols; concrete implementations are
passed in at construction so the workflow can be exercised without a
network, a UI, or an authenticated session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from schemas.records import UploadReceipt, UploadRecord


class UploadServiceProtocol(Protocol):
    """Remote repository that encrypts and stores a record."""

    async def submit(self, record: UploadRecord) -> UploadReceipt:
        """Store ``record``; raise ``TransportError`` when it cannot."""
        ...


class HospitalContextProtocol(Protocol):
    """Read-only view of the acting hospital."""

    @property
    def hospital_id(self) -> str | None:
        """Identifier of the hospital, or None before authentication completes."""
        ...


@dataclass(frozen=True, slots=True)
class Notification:
    severity: Literal["success", "error"]
    title: str
    message: str


class NotificationSinkProtocol(Protocol):
    """Fire-and-forget outcome reporting (toasts, logs)."""

    def notify(self, notification: Notification) -> None:
        ...
