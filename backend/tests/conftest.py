"""
Shared fixtures for Photo Gallery API tests
"""
import os
import tempfile

# Configuration is read at import time, so the environment is set up first
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-for-gallery-tests')
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='gallery-uploads-')
os.environ['ORPHAN_SWEEP_INTERVAL_SECONDS'] = '0'
os.environ['ADMIN_USERNAME'] = 'admin'
os.environ['ADMIN_PASSWORD'] = 'admin-pass-123'
for name in ('B2_APPLICATION_KEY_ID', 'B2_APPLICATION_KEY', 'B2_ENDPOINT'):
    os.environ[name] = ''

import uuid
from datetime import datetime, timezone
from io import BytesIO

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from PIL import Image
from pymongo.errors import PyMongoError
from starlette.datastructures import Headers

from server import create_app
from services.auth import hash_password
from services.storage import StorageService


# ============ Database / storage ============

@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    client = AsyncMongoMockClient()
    return client[f"gallery_test_{uuid.uuid4().hex[:8]}"]


@pytest.fixture
def storage(tmp_path):
    """Local-disk storage rooted in the test's temp directory"""
    return StorageService(local_dir=tmp_path / "uploads", local_fallback=True)


@pytest.fixture
def staging_dir(tmp_path):
    return tmp_path / "staging"


class _FailingCollection:
    """Proxy for a collection whose listed methods raise PyMongoError"""

    def __init__(self, wrapped, failing_methods):
        self._wrapped = wrapped
        self._failing_methods = set(failing_methods)

    def __getattr__(self, name):
        if name in self._failing_methods:
            async def fail(*args, **kwargs):
                raise PyMongoError(f"simulated {name} failure")
            return fail
        return getattr(self._wrapped, name)


class FaultyDatabase:
    """Database proxy that injects write failures, e.g. {"images": ["insert_one"]}"""

    def __init__(self, db, faults):
        self._db = db
        self._faults = faults

    def __getattr__(self, name):
        collection = getattr(self._db, name)
        if name in self._faults:
            return _FailingCollection(collection, self._faults[name])
        return collection


@pytest.fixture
def faulty_db(db):
    def wrap(faults):
        return FaultyDatabase(db, faults)
    return wrap


# ============ Documents ============

@pytest.fixture
def make_user(db):
    """Factory inserting a user document and returning it without secrets"""
    async def create(username=None, role="user", password="secret-pass"):
        doc = {
            "id": str(uuid.uuid4()),
            "username": username or f"user_{uuid.uuid4().hex[:6]}",
            "password_hash": hash_password(password),
            "role": role,
            "collection_ids": [],
            "last_login_at": None,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        await db.users.insert_one(doc)
        doc.pop("_id", None)
        doc.pop("password_hash")
        return doc
    return create


@pytest.fixture
def make_collection(db):
    """Factory inserting a collection owned by the given user"""
    async def create(owner, name="Wedding", accessible_user_ids=None):
        doc = {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": "",
            "image_ids": [],
            "accessible_user_ids": list(accessible_user_ids or []),
            "created_by_user_id": owner["id"],
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        await db.collections.insert_one(doc)
        doc.pop("_id", None)
        return doc
    return create


# ============ Files ============

def jpeg_bytes(color='red'):
    img = Image.new('RGB', (100, 100), color=color)
    img_bytes = BytesIO()
    img.save(img_bytes, format='JPEG')
    return img_bytes.getvalue()


@pytest.fixture
def test_image():
    """Create a test image file"""
    return jpeg_bytes()


@pytest.fixture
def make_upload():
    """Factory for multipart uploads as the routes receive them"""
    def create(data=None, filename="photo.jpg", content_type="image/jpeg", size=None):
        if data is None:
            data = jpeg_bytes()
        return UploadFile(
            file=BytesIO(data),
            size=size,
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )
    return create


# ============ API ============

@pytest.fixture
def app(db, storage):
    return create_app(db=db, storage=storage, start_background_tasks=False)


@pytest.fixture
def api_client(app):
    """Test client with the lifespan run, so the admin account is seeded"""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers(api_client):
    response = api_client.post("/api/auth/login", json={"username": "admin", "password": "admin-pass-123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def create_account(api_client, admin_headers):
    """Create a regular account through the API and return (user, auth headers)"""
    def create(username=None, role="user"):
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        response = api_client.post(
            "/api/users", headers=admin_headers, json={"username": username, "role": role}
        )
        assert response.status_code == 201, response.text
        created = response.json()["data"]
        login = api_client.post(
            "/api/auth/login", json={"username": username, "password": created["password"]}
        )
        assert login.status_code == 200, login.text
        return created["user"], {"Authorization": f"Bearer {login.json()['token']}"}
    return create
