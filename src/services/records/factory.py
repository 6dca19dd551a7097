"""Build record workflow collaborators from settings.

New upload backends register one line in `_build_registry`; nothing else
needs to change.
"""

from __future__ import annotations

from collections.abc import Callable

from core.config import Settings
from services.records.interfaces import UploadServiceProtocol
from services.records.upload_service import HttpUploadService, SimulatedUploadService


def _build_registry() -> dict[str, Callable[[Settings], UploadServiceProtocol]]:
    return {
        "http": lambda s: HttpUploadService(
            s.UPLOAD_API_BASE_URL, timeout=s.UPLOAD_TIMEOUT_SECONDS
        ),
        "simulated": lambda s: SimulatedUploadService(
            delay=s.SIMULATED_UPLOAD_DELAY_SECONDS
        ),
    }


def get_upload_service(settings: Settings) -> UploadServiceProtocol:
    """Return the upload service selected by ``settings.UPLOAD_BACKEND``.

    Raises:
        ValueError: unknown backend name
    """
    registry = _build_registry()
    builder = registry.get(settings.UPLOAD_BACKEND)
    if builder is None:
        raise ValueError(
            f"Unknown UPLOAD_BACKEND: {settings.UPLOAD_BACKEND!r}. "
            f"Known backends: {list(registry.keys())}"
        )
    return builder(settings)
