from fastapi import APIRouter

from .health import router as health_router
from .records import router as records_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(records_router)
