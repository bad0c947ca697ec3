"""
Gallery routes: collections, uploads, image metadata and downloads
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from core.dependencies import (
    get_client_info, get_collection_service, get_current_user, get_gallery_service
)
from models.analytics import ClientInfo
from models.gallery import CollectionAccess, CollectionCreate, CollectionUpdate
from models.schemas import success_response
from services.collections import CollectionService
from services.gallery import GalleryService

router = APIRouter(prefix="/api/gallery", tags=["gallery"])


# ============ Collections ============

@router.get("/collections")
async def list_collections(
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    collections = await service.list_collections(current_user)
    return success_response(collections, count=len(collections))


@router.post("/collections", status_code=201)
async def create_collection(
    data: CollectionCreate,
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    return success_response(await service.create_collection(current_user, data))


@router.get("/collections/{collection_id}")
async def get_collection(
    collection_id: str,
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    return success_response(await service.get_collection(current_user, collection_id))


@router.put("/collections/{collection_id}")
async def update_collection(
    collection_id: str,
    data: CollectionUpdate,
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    return success_response(await service.update_collection(current_user, collection_id, data))


@router.delete("/collections/{collection_id}")
async def delete_collection(
    collection_id: str,
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    deleted_images = await service.delete_collection(current_user, collection_id)
    return success_response({"deleted_images": deleted_images})


@router.put("/collections/{collection_id}/access")
async def update_collection_access(
    collection_id: str,
    data: CollectionAccess,
    current_user: dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    return success_response(await service.grant_access(current_user, collection_id, data.user_ids))


@router.get("/collections/{collection_id}/images")
async def list_collection_images(
    collection_id: str,
    current_user: dict = Depends(get_current_user),
    service: GalleryService = Depends(get_gallery_service),
):
    images = await service.list_images(current_user, collection_id)
    return success_response(images, count=len(images))


# ============ Uploads ============

@router.post("/upload/{collection_id}", status_code=201)
async def upload_image(
    collection_id: str,
    image: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    service: GalleryService = Depends(get_gallery_service),
):
    return success_response(await service.upload_single(current_user, collection_id, image))


@router.post("/upload-batch/{collection_id}", status_code=201)
async def upload_images(
    collection_id: str,
    images: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_user),
    service: GalleryService = Depends(get_gallery_service),
):
    """Partial success is a normal outcome; failures are listed in the body"""
    result = await service.upload_batch(current_user, collection_id, images or [])
    return success_response(result, count=len(result.stored))


# ============ Images ============

@router.get("/images/{image_id}")
async def get_image(
    image_id: str,
    current_user: dict = Depends(get_current_user),
    client: ClientInfo = Depends(get_client_info),
    service: GalleryService = Depends(get_gallery_service),
):
    return success_response(await service.get_image(current_user, image_id, client))


@router.delete("/images/{image_id}")
async def delete_image(
    image_id: str,
    current_user: dict = Depends(get_current_user),
    service: GalleryService = Depends(get_gallery_service),
):
    await service.delete_image(current_user, image_id)
    return success_response()


@router.get("/images/{image_id}/download")
async def get_image_download_url(
    image_id: str,
    current_user: dict = Depends(get_current_user),
    client: ClientInfo = Depends(get_client_info),
    service: GalleryService = Depends(get_gallery_service),
):
    return success_response(await service.get_download_url(current_user, image_id, client))
