"""
User accounts: login, admin CRUD and bulk operations
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError as SchemaValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.config import ACTION_LOGIN, ROLE_ADMIN
from core.errors import AuthenticationError, Conflict, GalleryError, NotFound, ValidationError
from models.analytics import ClientInfo
from models.user import (
    BulkUserCreateResult, BulkUserError, CreatedUser, User, UserCreate, UserUpdate
)
from services.analytics import record_event
from services.auth import create_access_token, generate_random_password, hash_password, verify_password

logger = logging.getLogger(__name__)

PUBLIC_PROJECTION = {"_id": 0, "password_hash": 0}


def _entry_username(entry) -> str:
    if isinstance(entry, UserCreate):
        return entry.username
    if isinstance(entry, dict) and isinstance(entry.get("username"), str):
        return entry["username"]
    return ""


def _describe_schema_error(error: SchemaValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"{field}: {first['msg']}" if field else first["msg"]


class UserService:

    def __init__(self, db):
        self.db = db

    async def login(self, username: str, password: str, client: Optional[ClientInfo] = None) -> Tuple[str, User]:
        user = await self.db.users.find_one({"username": username}, {"_id": 0})
        if not user or not verify_password(password, user.get("password_hash", "")):
            raise AuthenticationError("Invalid credentials")

        now = datetime.now(timezone.utc).isoformat()
        await self.db.users.update_one({"id": user["id"]}, {"$set": {"last_login_at": now}})
        user["last_login_at"] = now

        await record_event(self.db, user["id"], ACTION_LOGIN, client)

        token = create_access_token({"sub": user["id"], "role": user["role"]})
        logger.info(f"User logged in: {username}")
        return token, User(**user)

    async def list_users(self) -> List[User]:
        users = await self.db.users.find({}, PUBLIC_PROJECTION).sort("created_at", 1).to_list(None)
        return [User(**u) for u in users]

    async def get_user(self, user_id: str) -> User:
        user = await self.db.users.find_one({"id": user_id}, PUBLIC_PROJECTION)
        if not user:
            raise NotFound("User not found")
        return User(**user)

    async def create_user(self, data: UserCreate) -> CreatedUser:
        """Create an account. A random password is generated when none is given."""
        username = data.username.strip()
        if not username:
            raise ValidationError("Please provide a username")
        if await self.db.users.find_one({"username": username}, {"_id": 0, "id": 1}):
            raise Conflict("Username already exists")

        password = data.password or generate_random_password()
        user_doc = {
            "id": str(uuid.uuid4()),
            "username": username,
            "password_hash": hash_password(password),
            "role": data.role,
            "collection_ids": [],
            "last_login_at": None,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.db.users.insert_one(user_doc)
        except DuplicateKeyError:
            raise Conflict("Username already exists")

        user_doc.pop("_id", None)
        logger.info(f"User created: {username} ({data.role})")
        return CreatedUser(user=User(**user_doc), password=password)

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if "username" in update_data:
            update_data["username"] = update_data["username"].strip()
            if not update_data["username"]:
                raise ValidationError("Please provide a username")
            existing = await self.db.users.find_one(
                {"username": update_data["username"], "id": {"$ne": user_id}},
                {"_id": 0, "id": 1}
            )
            if existing:
                raise Conflict("Username already exists")

        if update_data:
            try:
                result = await self.db.users.update_one({"id": user_id}, {"$set": update_data})
            except DuplicateKeyError:
                raise Conflict("Username already exists")
            if result.matched_count == 0:
                raise NotFound("User not found")

        return await self.get_user(user_id)

    async def _drop_from_collections(self, user_ids: List[str]):
        await self.db.collections.update_many(
            {"accessible_user_ids": {"$in": user_ids}},
            {"$pullAll": {"accessible_user_ids": user_ids}}
        )

    async def delete_user(self, user_id: str):
        result = await self.db.users.delete_one({"id": user_id})
        if result.deleted_count == 0:
            raise NotFound("User not found")
        await self._drop_from_collections([user_id])
        logger.info(f"User deleted: {user_id}")

    async def bulk_create_users(self, entries: List[Union[dict, UserCreate]]) -> BulkUserCreateResult:
        """Create each entry independently and report per-item outcomes.

        Entries arrive unvalidated; a malformed entry is reported in
        `errors` without affecting its neighbours.
        """
        result = BulkUserCreateResult()
        for entry in entries:
            username = _entry_username(entry)
            try:
                result.created_users.append(await self.create_user(UserCreate.model_validate(entry)))
            except SchemaValidationError as e:
                result.errors.append(BulkUserError(username=username, error=_describe_schema_error(e)))
            except GalleryError as e:
                result.errors.append(BulkUserError(username=username, error=e.message))
            except PyMongoError as e:
                logger.error(f"Bulk create failed for {username}: {e}")
                result.errors.append(BulkUserError(username=username, error="Failed to create user"))

        result.total_created = len(result.created_users)
        result.total_failed = len(result.errors)
        return result

    async def bulk_delete_users(self, user_ids: List[str]) -> int:
        result = await self.db.users.delete_many({"id": {"$in": user_ids}})
        await self._drop_from_collections(user_ids)
        logger.info(f"Bulk deleted {result.deleted_count} users")
        return result.deleted_count

    async def ensure_admin_user(self, username: str, password: str) -> Optional[CreatedUser]:
        """Seed an admin account when none exists"""
        if await self.db.users.find_one({"role": ROLE_ADMIN}, {"_id": 0, "id": 1}):
            return None
        try:
            created = await self.create_user(UserCreate(username=username, password=password, role=ROLE_ADMIN))
        except Conflict:
            logger.warning(f"No admin exists and username '{username}' is taken by a non-admin; skipping seed")
            return None
        logger.warning(f"Seeded admin user '{username}'. Change its password after first login!")
        return created
