"""
Authentication routes
"""
from fastapi import APIRouter, Depends

from core.dependencies import get_client_info, get_current_user, get_user_service
from models.analytics import ClientInfo
from models.schemas import success_response
from models.user import Token, User, UserLogin
from services.users import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(
    credentials: UserLogin,
    client: ClientInfo = Depends(get_client_info),
    service: UserService = Depends(get_user_service),
):
    token, user = await service.login(credentials.username, credentials.password, client)
    return Token(token=token, user=user)


@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    return success_response(User(**current_user))
