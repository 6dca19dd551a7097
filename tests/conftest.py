"""Shared test fixtures for pytest.

ENVIRONMENT is pinned to ``test`` before any application import so settings
never read developer ``.env`` files.
"""

import asyncio
import os
from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient


os.environ["ENVIRONMENT"] = "test"

from core.config import get_settings  # noqa: E402
from main import app  # noqa: E402
from schemas.records import UploadReceipt, UploadRecord  # noqa: E402
from services.records.controller import RecordSubmissionController  # noqa: E402
from services.records.hospital_context import MutableHospitalContext  # noqa: E402
from services.records.notifications import RecordingNotificationSink  # noqa: E402


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=UTC)


class ControlledUploadService:
    """Upload service whose calls stay pending until the test resolves them."""

    def __init__(self) -> None:
        self.records: list[UploadRecord] = []
        self._pending: list[asyncio.Future[UploadReceipt]] = []

    async def submit(self, record: UploadRecord) -> UploadReceipt:
        future: asyncio.Future[UploadReceipt] = (
            asyncio.get_running_loop().create_future()
        )
        self.records.append(record)
        self._pending.append(future)
        return await future

    @property
    def call_count(self) -> int:
        return len(self.records)

    def succeed(self, index: int = -1) -> None:
        self._pending[index].set_result(UploadReceipt(record_id="rec-1"))

    def fail(self, exc: BaseException, index: int = -1) -> None:
        self._pending[index].set_exception(exc)

    def settle_pending(self) -> None:
        for future in self._pending:
            if not future.done():
                future.set_result(UploadReceipt())


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def upload_service() -> ControlledUploadService:
    return ControlledUploadService()


@pytest.fixture
def hospital_context() -> MutableHospitalContext:
    return MutableHospitalContext("hosp-042")


@pytest.fixture
def notification_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def controller(
    upload_service: ControlledUploadService,
    hospital_context: MutableHospitalContext,
    notification_sink: RecordingNotificationSink,
) -> RecordSubmissionController:
    return RecordSubmissionController(
        upload_service=upload_service,
        hospital_context=hospital_context,
        notification_sink=notification_sink,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client that runs the application lifespan."""
    with TestClient(app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client(
    controller: RecordSubmissionController,
    upload_service: ControlledUploadService,
    notification_sink: RecordingNotificationSink,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the test controller (no lifespan)."""
    app.state.record_controller = controller
    app.state.notification_recorder = notification_sink
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    upload_service.settle_pending()
    await controller.wait_for_uploads()
