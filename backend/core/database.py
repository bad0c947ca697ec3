"""
Database connection and initialization
"""
import logging
from motor.motor_asyncio import AsyncIOMotorClient

from .config import MONGO_URL, DB_NAME

logger = logging.getLogger(__name__)


def create_client(mongo_url: str = MONGO_URL) -> AsyncIOMotorClient:
    """Create a pooled MongoDB client. No connection is made until first use."""
    return AsyncIOMotorClient(
        mongo_url,
        maxPoolSize=100,
        minPoolSize=10,
        maxIdleTimeMS=30000,
        connectTimeoutMS=5000,
        serverSelectionTimeoutMS=5000,
        waitQueueTimeoutMS=10000
    )


def get_database(client, db_name: str = DB_NAME):
    return client[db_name]


async def create_database_indexes(db):
    """Create necessary indexes for optimal query performance"""
    logger.info("Creating database indexes...")

    try:
        # Users collection indexes
        await db.users.create_index("id", unique=True)
        await db.users.create_index("username", unique=True)
        await db.users.create_index("role")

        # Collections indexes
        await db.collections.create_index("id", unique=True)
        await db.collections.create_index("created_by_user_id")
        await db.collections.create_index("accessible_user_ids")
        await db.collections.create_index([("created_at", -1)])

        # Images indexes
        await db.images.create_index("id", unique=True)
        await db.images.create_index("storage_key")
        await db.images.create_index([("collection_id", 1), ("uploaded_at", -1)])

        # Analytics indexes
        await db.analytics_events.create_index([("user_id", 1), ("timestamp", -1)])
        await db.analytics_events.create_index("action_type")
        await db.analytics_events.create_index("timestamp")

        logger.info("Database indexes created successfully")
    except Exception as e:
        logger.error(f"Error creating indexes (may already exist): {e}")
