"""API Routes module"""
from fastapi import APIRouter

from .templates import router as templates_router
from .requests import router as requests_router
from .directory import router as directory_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(templates_router, prefix="/templates", tags=["Templates"])
api_router.include_router(requests_router, prefix="/requests", tags=["Requests"])
api_router.include_router(directory_router, prefix="/directory", tags=["Directory"])

__all__ = ["api_router"]
