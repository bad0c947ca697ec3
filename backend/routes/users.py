"""
User administration routes (admin only)
"""
from fastapi import APIRouter, Depends

from core.dependencies import get_admin_user, get_user_service
from models.schemas import success_response
from models.user import BulkUserCreate, BulkUserDelete, UserCreate, UserUpdate
from services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(get_admin_user)])


@router.get("")
async def list_users(service: UserService = Depends(get_user_service)):
    users = await service.list_users()
    return success_response(users, count=len(users))


@router.post("", status_code=201)
async def create_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    """The generated password is only returned by this response"""
    return success_response(await service.create_user(data))


@router.post("/bulk", status_code=201)
async def bulk_create_users(data: BulkUserCreate, service: UserService = Depends(get_user_service)):
    return success_response(await service.bulk_create_users(data.users))


@router.delete("/bulk")
async def bulk_delete_users(data: BulkUserDelete, service: UserService = Depends(get_user_service)):
    deleted_count = await service.bulk_delete_users(data.user_ids)
    return success_response({"deleted_count": deleted_count})


@router.get("/{user_id}")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return success_response(await service.get_user(user_id))


@router.put("/{user_id}")
async def update_user(user_id: str, data: UserUpdate, service: UserService = Depends(get_user_service)):
    return success_response(await service.update_user(user_id, data))


@router.delete("/{user_id}")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    await service.delete_user(user_id)
    return success_response()
