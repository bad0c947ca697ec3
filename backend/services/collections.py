"""
Collection management: CRUD and access grants.

A collection's ``accessible_user_ids`` and each user's ``collection_ids``
describe the same relation from both ends. ``grant_access`` is the only
writer of either side.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from pymongo.errors import PyMongoError

from core.errors import Forbidden, NotFound, ValidationError
from models.gallery import Collection, CollectionCreate, CollectionUpdate
from services.access import can_access_collection, can_modify_collection, is_admin
from services.storage import StorageService

logger = logging.getLogger(__name__)


class CollectionService:

    def __init__(self, db, storage: StorageService):
        self.db = db
        self.storage = storage

    async def _get(self, collection_id: str) -> dict:
        collection = await self.db.collections.find_one({"id": collection_id}, {"_id": 0})
        if not collection:
            raise NotFound("Collection not found")
        return collection

    async def _get_modifiable(self, actor: dict, collection_id: str, action: str) -> dict:
        collection = await self._get(collection_id)
        if not can_modify_collection(actor, collection):
            raise Forbidden(f"Not authorized to {action} this collection")
        return collection

    async def list_collections(self, actor: dict) -> List[Collection]:
        """Admins see every collection; others see what they created or were granted"""
        if is_admin(actor):
            query = {}
        else:
            query = {"$or": [
                {"created_by_user_id": actor["id"]},
                {"accessible_user_ids": actor["id"]},
            ]}
        collections = await self.db.collections.find(query, {"_id": 0}).sort("created_at", -1).to_list(None)
        return [Collection(**c) for c in collections]

    async def get_collection(self, actor: dict, collection_id: str) -> Collection:
        collection = await self._get(collection_id)
        if not can_access_collection(actor, collection):
            raise Forbidden("Not authorized to access this collection")
        return Collection(**collection)

    async def create_collection(self, actor: dict, data: CollectionCreate) -> Collection:
        name = data.name.strip()
        if not name:
            raise ValidationError("Please provide a collection name")

        collection_doc = {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": data.description or "",
            "image_ids": [],
            "accessible_user_ids": [],
            "created_by_user_id": actor["id"],
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        await self.db.collections.insert_one(collection_doc)
        collection_doc.pop("_id", None)
        logger.info(f"Collection created: {name} ({collection_doc['id']}) by {actor.get('username')}")
        return Collection(**collection_doc)

    async def update_collection(self, actor: dict, collection_id: str, data: CollectionUpdate) -> Collection:
        """Only name and description are editable here"""
        collection = await self._get_modifiable(actor, collection_id, "update")

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in update_data:
            update_data["name"] = update_data["name"].strip()
            if not update_data["name"]:
                raise ValidationError("Please provide a collection name")

        if update_data:
            await self.db.collections.update_one({"id": collection_id}, {"$set": update_data})
            collection.update(update_data)
        return Collection(**collection)

    async def delete_collection(self, actor: dict, collection_id: str) -> int:
        """
        Delete a collection together with its images and stored files, and
        drop it from every user's membership list. Returns the number of
        images removed.
        """
        await self._get_modifiable(actor, collection_id, "delete")

        images = await self.db.images.find(
            {"collection_id": collection_id},
            {"_id": 0, "id": 1, "storage_key": 1}
        ).to_list(None)
        for image in images:
            if not await self.storage.delete(image["storage_key"]):
                logger.warning(f"Error deleting {image['storage_key']} from storage while deleting collection")

        await self.db.images.delete_many({"collection_id": collection_id})
        await self.db.users.update_many(
            {"collection_ids": collection_id},
            {"$pull": {"collection_ids": collection_id}}
        )
        await self.db.collections.delete_one({"id": collection_id})

        logger.info(f"Deleted collection {collection_id} with {len(images)} images")
        return len(images)

    async def _sync_user_memberships(self, collection_id: str, user_ids: List[str]):
        await self.db.users.update_many(
            {"id": {"$in": user_ids}},
            {"$addToSet": {"collection_ids": collection_id}}
        )
        await self.db.users.update_many(
            {"id": {"$nin": user_ids}, "collection_ids": collection_id},
            {"$pull": {"collection_ids": collection_id}}
        )

    async def grant_access(self, actor: dict, collection_id: str, user_ids: List[str]) -> Collection:
        """
        Replace the set of users allowed to view a collection and bring every
        affected user's collection_ids in line. If the user side cannot be
        written, the collection's previous access list is put back.
        """
        collection = await self._get_modifiable(actor, collection_id, "update access for")

        user_ids = list(dict.fromkeys(user_ids))
        found = await self.db.users.find({"id": {"$in": user_ids}}, {"_id": 0, "id": 1}).to_list(None)
        missing = set(user_ids) - {u["id"] for u in found}
        if missing:
            raise ValidationError(f"Unknown user ids: {', '.join(sorted(missing))}")

        previous = collection.get("accessible_user_ids", [])
        await self.db.collections.update_one(
            {"id": collection_id},
            {"$set": {"accessible_user_ids": user_ids}}
        )

        try:
            await self._sync_user_memberships(collection_id, user_ids)
        except PyMongoError as e:
            logger.error(f"Access update for collection {collection_id} failed on the user side: {e}")
            await self.db.collections.update_one(
                {"id": collection_id},
                {"$set": {"accessible_user_ids": previous}}
            )
            try:
                await self._sync_user_memberships(collection_id, previous)
            except PyMongoError as restore_error:
                logger.error(f"Could not restore memberships for collection {collection_id}: {restore_error}")
            raise

        collection["accessible_user_ids"] = user_ids
        logger.info(f"Collection {collection_id} access set to {len(user_ids)} users")
        return Collection(**collection)
