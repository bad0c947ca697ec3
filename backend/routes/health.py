"""
Health check routes for the gallery API
"""
from fastapi import APIRouter, Depends

from core.dependencies import get_storage
from services.storage import StorageService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(storage: StorageService = Depends(get_storage)):
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "service": "photo-gallery-api", "storage": storage.mode}
