"""Unit tests for upload service implementations."""

from __future__ import annotations

import json

import httpx
import pytest

from core.config import Settings
from schemas.records import UploadReceipt, UploadRecord
from services.records.exceptions import TransportError
from services.records.factory import get_upload_service
from services.records.upload_service import (
    GENERIC_FAILURE,
    HttpUploadService,
    SimulatedUploadService,
)


RECORD = UploadRecord(
    hospital_id="hosp-042",
    phone_number="5551234567",
    record_type="lab_results",
    content="Blood panel normal.",
    timestamp="2024-05-01T12:30:45.123Z",
)


def _service(handler) -> HttpUploadService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpUploadService("https://repo.example.test/", client=client)


@pytest.mark.asyncio
class TestHttpUploadService:
    async def test_posts_camel_case_json_to_upload_endpoint(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"recordId": "rec-9", "message": "stored"})

        receipt = await _service(handler).submit(RECORD)

        assert receipt == UploadReceipt(record_id="rec-9", message="stored")
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "https://repo.example.test/api/upload"
        assert json.loads(seen[0].content) == {
            "hospitalId": "hosp-042",
            "phoneNumber": "5551234567",
            "recordType": "lab_results",
            "content": "Blood panel normal.",
            "timestamp": "2024-05-01T12:30:45.123Z",
        }

    async def test_empty_success_body_gives_empty_receipt(self) -> None:
        receipt = await _service(lambda request: httpx.Response(204)).submit(RECORD)
        assert receipt == UploadReceipt()

    async def test_server_message_becomes_failure_reason(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "Repository is read-only"})

        with pytest.raises(TransportError) as exc_info:
            await _service(handler).submit(RECORD)

        assert exc_info.value.message == "Repository is read-only"
        assert exc_info.value.status_code == 503
        assert exc_info.value.error_code == "transport_failed"

    async def test_non_json_error_uses_status_in_reason(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad gateway</html>")

        with pytest.raises(TransportError) as exc_info:
            await _service(handler).submit(RECORD)

        assert "502" in exc_info.value.message

    async def test_connection_error_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _service(handler).submit(RECORD)

        assert exc_info.value.message == GENERIC_FAILURE
        assert exc_info.value.status_code is None

    async def test_timeout_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(TransportError) as exc_info:
            await _service(handler).submit(RECORD)

        assert "timed out" in exc_info.value.message


@pytest.mark.asyncio
async def test_simulated_service_accepts_record() -> None:
    receipt = await SimulatedUploadService(delay=0).submit(RECORD)
    assert receipt.record_id


def test_simulated_service_does_not_log_patient_data(caplog) -> None:
    import asyncio

    caplog.set_level("INFO")
    asyncio.run(SimulatedUploadService(delay=0).submit(RECORD))

    assert "Uploading data" in caplog.text
    assert "5551234567" not in caplog.text
    assert "Blood panel normal." not in caplog.text


class TestFactory:
    def test_http_backend(self) -> None:
        settings = Settings(
            UPLOAD_BACKEND="http",
            UPLOAD_API_BASE_URL="https://repo.example.test/",
            UPLOAD_TIMEOUT_SECONDS=3,
        )
        service = get_upload_service(settings)
        assert isinstance(service, HttpUploadService)
        assert service.url == "https://repo.example.test/api/upload"
        assert service.timeout == 3

    def test_simulated_backend(self) -> None:
        service = get_upload_service(
            Settings(UPLOAD_BACKEND="simulated", SIMULATED_UPLOAD_DELAY_SECONDS=0.25)
        )
        assert isinstance(service, SimulatedUploadService)
        assert service.delay == 0.25

    def test_unknown_backend(self) -> None:
        settings = Settings.model_construct(UPLOAD_BACKEND="carrier_pigeon")
        with pytest.raises(ValueError, match="carrier_pigeon"):
            get_upload_service(settings)
