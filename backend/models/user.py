"""
User-related Pydantic models
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

Role = Literal["admin", "user"]


class UserLogin(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class User(BaseModel):
    """Public view of a user document (never carries the password hash)"""
    model_config = ConfigDict(extra="ignore")
    id: str
    username: str
    role: Role = "user"
    collection_ids: List[str] = []
    last_login_at: Optional[str] = None
    created_at: str


class Token(BaseModel):
    success: bool = True
    token: str
    user: User


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    role: Role = "user"
    # Generated when omitted and returned once
    password: Optional[str] = Field(default=None, min_length=6)


class UserUpdate(BaseModel):
    """Password and collection membership are not writable through this model"""
    model_config = ConfigDict(extra="ignore")
    username: Optional[str] = Field(default=None, min_length=1)
    role: Optional[Role] = None


class CreatedUser(BaseModel):
    user: User
    password: str  # shown only once


class BulkUserCreate(BaseModel):
    """Entries are validated one by one so a bad entry fails alone"""
    users: List[Dict[str, Any]] = Field(min_length=1)


class BulkUserError(BaseModel):
    username: str
    error: str


class BulkUserCreateResult(BaseModel):
    created_users: List[CreatedUser] = []
    errors: List[BulkUserError] = []
    total_created: int = 0
    total_failed: int = 0


class BulkUserDelete(BaseModel):
    user_ids: List[str] = Field(min_length=1)
