"""
Background Tasks Module for the gallery API

Tasks are started during application lifespan and run in the background.

Dependencies (injected at startup):
- db: MongoDB database connection
- storage: Storage service (B2/local)
- logger: Logging instance
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from pymongo.errors import PyMongoError

from core.config import ORPHAN_GRACE_SECONDS, ORPHAN_SWEEP_INTERVAL_SECONDS
from core.errors import StorageUnavailable

# Module-level references to dependencies (set by init_tasks)
_db = None
_storage = None
_logger = None
_sync_task_running = True

logger = logging.getLogger(__name__)


def init_tasks(db, storage, logger):
    """
    Initialize the tasks module with required dependencies.
    Must be called before starting any background tasks.
    """
    global _db, _storage, _logger, _sync_task_running

    _db = db
    _storage = storage
    _logger = logger
    _sync_task_running = True

    _logger.info("Background tasks module initialized")


def stop_tasks():
    """Signal all tasks to stop"""
    global _sync_task_running
    _sync_task_running = False


async def reconcile_orphaned_objects(db, storage, grace_seconds: int = ORPHAN_GRACE_SECONDS) -> int:
    """
    Delete stored objects that no image record points at.

    Objects younger than the grace period are left alone so that uploads
    still between the store and the record insert are not removed.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace_seconds)
    stored_keys = await storage.list_keys("collections/")
    if not stored_keys:
        return 0

    candidates = [key for key, modified in stored_keys if modified < cutoff]
    if not candidates:
        return 0

    referenced = await db.images.find(
        {"storage_key": {"$in": candidates}}, {"_id": 0, "storage_key": 1}
    ).to_list(None)
    referenced_keys = {doc["storage_key"] for doc in referenced}

    removed = 0
    for key in candidates:
        if key in referenced_keys:
            continue
        if await storage.delete(key):
            removed += 1
        else:
            logger.warning(f"Could not remove orphaned object {key}")
    return removed


async def orphan_sweep_task(interval_seconds: int = ORPHAN_SWEEP_INTERVAL_SECONDS,
                            grace_seconds: int = ORPHAN_GRACE_SECONDS):
    """Background task removing stored objects left behind by failed uploads"""
    _logger.info("Orphaned object sweep task started")

    while _sync_task_running:
        try:
            removed = await reconcile_orphaned_objects(_db, _storage, grace_seconds)
            if removed:
                _logger.info(f"Removed {removed} orphaned stored objects")
        except (StorageUnavailable, PyMongoError) as e:
            _logger.error(f"Orphan sweep error: {e}")
        except Exception as e:
            _logger.exception(f"Unexpected orphan sweep error: {e}")

        await asyncio.sleep(interval_seconds)
