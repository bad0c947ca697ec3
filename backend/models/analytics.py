"""
Analytics-related Pydantic models
"""
from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional

ActionType = Literal["login", "download", "view"]


class ClientInfo(BaseModel):
    """Request metadata attached to analytics events"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AnalyticsEvent(BaseModel):
    """Append-only usage fact"""
    model_config = ConfigDict(extra="ignore")
    id: str
    user_id: str
    action_type: ActionType
    image_id: Optional[str] = None
    collection_id: Optional[str] = None
    timestamp: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
