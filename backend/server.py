from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
import asyncio
import logging
from contextlib import asynccontextmanager

from core.config import (
    ADMIN_PASSWORD, ADMIN_USERNAME, CORS_ORIGINS, ORPHAN_GRACE_SECONDS, ORPHAN_SWEEP_INTERVAL_SECONDS
)
from core.database import create_client, create_database_indexes, get_database
from core.errors import register_error_handlers
from routes import auth_router, files_router, gallery_router, health_router, users_router
from services.storage import create_storage_service
from services.users import UserService
from tasks import init_tasks, orphan_sweep_task, stop_tasks

logger = logging.getLogger(__name__)


def create_app(db=None, storage=None, start_background_tasks: bool = True) -> FastAPI:
    """
    Build the API application.

    The database and storage service may be injected, otherwise they are
    built from environment configuration.
    """
    client = None
    if db is None:
        client = create_client()
        db = get_database(client)
    if storage is None:
        storage = create_storage_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown"""
        # Create database indexes for optimized performance
        await create_database_indexes(db)
        created = await UserService(db).ensure_admin_user(ADMIN_USERNAME, ADMIN_PASSWORD)
        if created:
            logger.info(f"Created initial admin user '{created.user.username}'")

        init_tasks(db, storage, logger)
        sweep_task = None
        if start_background_tasks and ORPHAN_SWEEP_INTERVAL_SECONDS > 0:
            sweep_task = asyncio.create_task(
                orphan_sweep_task(ORPHAN_SWEEP_INTERVAL_SECONDS, ORPHAN_GRACE_SECONDS)
            )
        app.state.sweep_task = sweep_task
        yield
        # Stop background task
        stop_tasks()
        if sweep_task:
            sweep_task.cancel()
            try:
                await sweep_task
            except asyncio.CancelledError:
                pass
        if client:
            client.close()

    app = FastAPI(title="Photo Gallery API", lifespan=lifespan)
    app.state.db = db
    app.state.storage = storage

    register_error_handlers(app)

    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(gallery_router)
    app.include_router(files_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
