import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.v1.api import api_router
from core.config import get_settings
from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
    setup_logging,
)
from core.exceptions import DomainError
from core.middleware import CorrelationIdMiddleware
from dependencies.records import build_controller


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging()
    controller, recorder = build_controller(settings)
    app.state.record_controller = controller
    app.state.notification_recorder = recorder
    logger.info(
        "Record intake ready (upload backend: %s, environment: %s)",
        settings.UPLOAD_BACKEND,
        settings.ENVIRONMENT,
    )
    yield
    # Uploads are never cancelled; let the in-flight one finish
    await app.state.record_controller.wait_for_uploads()


app = FastAPI(
    title="Health Nexus Intake API",
    description="Encrypted patient record submission for hospital operators",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ExceptionNormalizationMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(DomainError, global_exception_handler)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root() -> dict[str, str]:
    return {"message": "Health Nexus Intake"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
