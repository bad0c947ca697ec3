"""
Upload/download orchestration for gallery images.

An upload moves through Validating -> Staged (local disk) -> Stored (object
storage) -> Recorded (images collection) -> Linked (collection.image_ids).
A failure after Stored rolls back whatever was already written so no image
record or remote object is left dangling.
"""
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from core.config import (
    ACTION_DOWNLOAD, ACTION_VIEW, DOWNLOAD_URL_TTL_SECONDS,
    MAX_BATCH_FILES, MAX_FILE_SIZE, STAGING_DIR
)
from core.errors import Forbidden, GalleryError, NotFound, ValidationError
from models.analytics import ClientInfo
from models.gallery import BatchUploadResult, DownloadUrl, Image, UploadFailure
from services.access import can_access_collection, can_access_image, can_modify_collection, can_modify_image
from services.analytics import record_event
from services.storage import StorageService
from services.uploads import stage_upload

logger = logging.getLogger(__name__)


class GalleryService:
    """Ties access control, staging, object storage and image records together"""

    def __init__(
        self,
        db,
        storage: StorageService,
        max_file_size: int = MAX_FILE_SIZE,
        max_batch_files: int = MAX_BATCH_FILES,
        staging_dir: Path = STAGING_DIR,
        download_ttl: int = DOWNLOAD_URL_TTL_SECONDS,
    ):
        self.db = db
        self.storage = storage
        self.max_file_size = max_file_size
        self.max_batch_files = max_batch_files
        self.staging_dir = staging_dir
        self.download_ttl = download_ttl

    async def _get_collection(self, collection_id: str) -> dict:
        collection = await self.db.collections.find_one({"id": collection_id}, {"_id": 0})
        if not collection:
            raise NotFound("Collection not found")
        return collection

    async def _get_image_and_collection(self, image_id: str) -> Tuple[dict, Optional[dict]]:
        image = await self.db.images.find_one({"id": image_id}, {"_id": 0})
        if not image:
            raise NotFound("Image not found")
        collection = await self.db.collections.find_one({"id": image["collection_id"]}, {"_id": 0})
        return image, collection

    async def _discard_remote(self, key: str):
        if not await self.storage.delete(key):
            logger.error(f"Rollback could not delete stored object {key}; it is left for the orphan sweep")

    async def _store_one(self, actor: dict, collection: dict, upload) -> Image:
        staged = await stage_upload(upload, max_size=self.max_file_size, staging_dir=self.staging_dir)
        try:
            stored = await self.storage.store(
                staged.path, staged.original_name, staged.mime_type, collection["id"]
            )
        finally:
            await staged.cleanup()

        image_doc = {
            "id": str(uuid.uuid4()),
            "filename": stored.key.rsplit('/', 1)[-1],
            "original_name": staged.original_name,
            "storage_key": stored.key,
            "url": stored.url,
            "size": stored.size,
            "mime_type": stored.mime_type,
            "collection_id": collection["id"],
            "uploaded_by_user_id": actor["id"],
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
            "view_count": 0,
            "download_count": 0,
        }

        try:
            await self.db.images.insert_one(image_doc)
        except PyMongoError as e:
            logger.error(f"Error saving image record for {stored.key}: {e}")
            await self._discard_remote(stored.key)
            raise

        try:
            result = await self.db.collections.update_one(
                {"id": collection["id"]},
                {"$push": {"image_ids": image_doc["id"]}}
            )
            if result.matched_count == 0:
                raise NotFound("Collection not found")
        except (PyMongoError, NotFound) as e:
            logger.error(f"Error linking image {image_doc['id']} to collection {collection['id']}: {e}")
            try:
                await self.db.images.delete_one({"id": image_doc["id"]})
            except PyMongoError as cleanup_error:
                logger.error(f"Rollback could not delete image record {image_doc['id']}: {cleanup_error}")
            await self._discard_remote(stored.key)
            raise

        image_doc.pop("_id", None)
        logger.info(f"Stored {staged.original_name} as {stored.key} in collection {collection['id']}")
        return Image(**image_doc)

    async def upload_single(self, actor: dict, collection_id: str, upload) -> Image:
        """Upload one file into a collection the actor may modify"""
        collection = await self._get_collection(collection_id)
        if not can_modify_collection(actor, collection):
            raise Forbidden("Not authorized to upload to this collection")
        return await self._store_one(actor, collection, upload)

    async def upload_batch(self, actor: dict, collection_id: str, uploads: List) -> BatchUploadResult:
        """
        Best-effort batch upload. Permission is checked once; each file is
        then stored independently and failures are reported, not raised.
        """
        collection = await self._get_collection(collection_id)
        if not can_modify_collection(actor, collection):
            raise Forbidden("Not authorized to upload to this collection")

        uploads = [u for u in (uploads or []) if u is not None]
        if not uploads:
            raise ValidationError("Please upload at least one file")
        if len(uploads) > self.max_batch_files:
            raise ValidationError(f"Too many files. Maximum is {self.max_batch_files} per batch")

        result = BatchUploadResult()
        for upload in uploads:
            name = getattr(upload, 'filename', None)
            try:
                result.stored.append(await self._store_one(actor, collection, upload))
            except GalleryError as e:
                logger.warning(f"Batch upload skipped {name}: {e.message}")
                result.failures.append(UploadFailure(original_name=name, error=e.message))
            except PyMongoError as e:
                logger.error(f"Batch upload database error for {name}: {e}")
                result.failures.append(UploadFailure(original_name=name, error="Failed to save image record"))

        result.failed_count = len(result.failures)
        logger.info(
            f"Batch upload to {collection_id}: {len(result.stored)} stored, {result.failed_count} failed"
        )
        return result

    async def list_images(self, actor: dict, collection_id: str) -> List[Image]:
        """Images of a collection, newest upload first"""
        collection = await self._get_collection(collection_id)
        if not can_access_collection(actor, collection):
            raise Forbidden("Not authorized to access this collection")

        images = await self.db.images.find(
            {"id": {"$in": collection.get("image_ids", [])}},
            {"_id": 0}
        ).sort("uploaded_at", -1).to_list(None)
        return [Image(**image) for image in images]

    async def _increment(self, image: dict, field: str) -> dict:
        """Approximate counter bump; a failed write does not fail the read"""
        try:
            updated = await self.db.images.find_one_and_update(
                {"id": image["id"]},
                {"$inc": {field: 1}},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
            return updated or image
        except PyMongoError as e:
            logger.warning(f"Error incrementing {field} for image {image['id']}: {e}")
            return image

    async def get_image(self, actor: dict, image_id: str, client: Optional[ClientInfo] = None) -> Image:
        image, collection = await self._get_image_and_collection(image_id)
        if not can_access_image(actor, image, collection):
            raise Forbidden("Not authorized to access this image")

        image = await self._increment(image, "view_count")
        await record_event(
            self.db, actor["id"], ACTION_VIEW, client,
            image_id=image["id"], collection_id=image["collection_id"]
        )
        return Image(**image)

    async def delete_image(self, actor: dict, image_id: str):
        """
        Remove the stored object, unlink the image from its collection and
        delete the record. A failed remote delete does not stop the
        metadata cleanup.
        """
        image, collection = await self._get_image_and_collection(image_id)
        if not can_modify_image(actor, image, collection):
            raise Forbidden("Not authorized to delete this image")

        if not await self.storage.delete(image["storage_key"]):
            logger.warning(f"Error deleting {image['storage_key']} from storage; continuing with record cleanup")

        if collection:
            await self.db.collections.update_one(
                {"id": collection["id"]},
                {"$pull": {"image_ids": image_id}}
            )
        await self.db.images.delete_one({"id": image_id})
        logger.info(f"Deleted image {image_id} ({image['storage_key']})")

    async def get_download_url(self, actor: dict, image_id: str, client: Optional[ClientInfo] = None) -> DownloadUrl:
        image, collection = await self._get_image_and_collection(image_id)
        if not can_access_image(actor, image, collection):
            raise Forbidden("Not authorized to download this image")

        url, expires_in = await self.storage.signed_download_url(image["storage_key"], ttl=self.download_ttl)

        await self._increment(image, "download_count")
        await record_event(
            self.db, actor["id"], ACTION_DOWNLOAD, client,
            image_id=image["id"], collection_id=image["collection_id"]
        )
        return DownloadUrl(url=url, expires_in=expires_in)
