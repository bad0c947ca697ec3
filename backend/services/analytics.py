"""
Usage analytics recording
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import PyMongoError

from models.analytics import AnalyticsEvent, ClientInfo

logger = logging.getLogger(__name__)


async def record_event(
    db,
    user_id: str,
    action_type: str,
    client: Optional[ClientInfo] = None,
    image_id: Optional[str] = None,
    collection_id: Optional[str] = None,
) -> bool:
    """Append an analytics event. Failures are logged and never raised."""
    client = client or ClientInfo()
    event = AnalyticsEvent(
        id=str(uuid.uuid4()),
        user_id=user_id,
        action_type=action_type,
        image_id=image_id,
        collection_id=collection_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    try:
        await db.analytics_events.insert_one(event.model_dump())
        return True
    except PyMongoError as e:
        logger.warning(f"Failed to record {action_type} event for user {user_id}: {e}")
        return False
