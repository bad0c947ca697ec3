"""
Gallery-related Pydantic models
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CollectionCreate(BaseModel):
    """Model for creating a new collection"""
    name: str = Field(min_length=1)
    description: str = ""


class CollectionUpdate(BaseModel):
    """Model for updating collection details"""
    model_config = ConfigDict(extra="ignore")
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class CollectionAccess(BaseModel):
    """Replacement set of users allowed to view a collection"""
    user_ids: List[str]


class Collection(BaseModel):
    """Model for collection response"""
    model_config = ConfigDict(extra="ignore")
    id: str
    name: str
    description: str = ""
    image_ids: List[str] = []
    accessible_user_ids: List[str] = []
    created_by_user_id: str
    created_at: str


class Image(BaseModel):
    """Metadata for one stored file"""
    model_config = ConfigDict(extra="ignore")
    id: str
    filename: str  # storage-generated
    original_name: str  # as supplied by the uploader
    storage_key: str
    url: str
    size: int
    mime_type: str
    collection_id: str
    uploaded_by_user_id: str
    uploaded_at: str
    view_count: int = 0
    download_count: int = 0


class UploadFailure(BaseModel):
    original_name: Optional[str] = None
    error: str


class BatchUploadResult(BaseModel):
    """Outcome of a best-effort batch upload"""
    stored: List[Image] = []
    failed_count: int = 0
    failures: List[UploadFailure] = []


class DownloadUrl(BaseModel):
    url: str
    # None when the URL does not expire (local storage fallback)
    expires_in: Optional[int] = None
