"""Upload service implementations.

`HttpUploadService` posts the record to the remote repository, which owns
encryption, persistence and retries. `SimulatedUploadService` stands in for
it during local development with a fixed delay and no network.
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

import httpx

from core.error_handler import StructuredLogger
from schemas.records import UploadReceipt, UploadRecord
from services.records.exceptions import TransportError


structured_logger = StructuredLogger(__name__)

UPLOAD_PATH = "/api/upload"
GENERIC_FAILURE = "Upload failed. Please try again."


def _error_message(response: httpx.Response) -> str:
    """Pull a human-readable reason out of an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"Upload failed with status {response.status_code}. Please try again."


class HttpUploadService:
    """POSTs records as JSON to ``{base_url}/api/upload``.

    Pass ``client`` to share a connection pool (or a mock transport in tests);
    otherwise a short-lived client is opened per submission.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}{UPLOAD_PATH}"

    async def submit(self, record: UploadRecord) -> UploadReceipt:
        payload = record.model_dump(by_alias=True)
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.url, json=payload, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload)
        except httpx.TimeoutException as exc:
            structured_logger.warning(
                "Upload request timed out", exception_type=type(exc).__name__
            )
            raise TransportError("Upload timed out. Please try again.") from exc
        except httpx.HTTPError as exc:
            structured_logger.warning(
                "Upload request failed", exception_type=type(exc).__name__
            )
            raise TransportError(GENERIC_FAILURE) from exc

        if response.is_error:
            structured_logger.warning(
                "Upload rejected by repository", status_code=response.status_code
            )
            raise TransportError(_error_message(response), status_code=response.status_code)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        return UploadReceipt.model_validate(body if isinstance(body, dict) else {})


class SimulatedUploadService:
    """Accepts every record after ``delay`` seconds."""

    def __init__(self, delay: float = 1.5) -> None:
        self.delay = delay

    async def submit(self, record: UploadRecord) -> UploadReceipt:
        structured_logger.info(
            "Uploading data",
            hospital_id=record.hospital_id,
            phone_number=record.phone_number,
            record_type=record.record_type,
            content=record.content,
            timestamp=record.timestamp,
        )
        await asyncio.sleep(self.delay)
        return UploadReceipt(record_id=str(uuid4()), message="simulated")
