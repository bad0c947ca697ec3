"""
FastAPI dependencies for authentication and service wiring
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import ROLE_ADMIN
from .errors import AuthenticationError, Forbidden
from models.analytics import ClientInfo
from services.auth import decode_access_token
from services.collections import CollectionService
from services.gallery import GalleryService
from services.storage import StorageService
from services.users import UserService

security = HTTPBearer(auto_error=False)


def get_db(request: Request):
    return request.app.state.db


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_gallery_service(db=Depends(get_db), storage: StorageService = Depends(get_storage)) -> GalleryService:
    return GalleryService(db, storage)


def get_collection_service(db=Depends(get_db), storage: StorageService = Depends(get_storage)) -> CollectionService:
    return CollectionService(db, storage)


def get_user_service(db=Depends(get_db)) -> UserService:
    return UserService(db)


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db=Depends(get_db),
) -> dict:
    """Get current authenticated user from JWT token"""
    if credentials is None:
        raise AuthenticationError("Not authorized to access this route")

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise AuthenticationError("Token is not valid")

    user = await db.users.find_one({"id": user_id}, {"_id": 0, "password_hash": 0})
    if not user:
        raise AuthenticationError("Not authorized to access this route")
    return user


async def get_admin_user(current_user: dict = Depends(get_current_user)) -> dict:
    """Require the authenticated user to hold the admin role"""
    if current_user.get("role") != ROLE_ADMIN:
        raise Forbidden(f"User role {current_user.get('role')} is not authorized to access this route")
    return current_user
