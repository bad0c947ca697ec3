"""
Application configuration and constants
"""
import os
from pathlib import Path
from dotenv import load_dotenv
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).parent.parent
load_dotenv(ROOT_DIR / '.env')


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'photo_gallery')

# JWT configuration
SECRET_KEY = os.environ['JWT_SECRET_KEY']
ALGORITHM = 'HS256'
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get('JWT_EXPIRE_MINUTES', 60 * 24 * 7))

# Seed admin credentials
ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin123')

# User roles
ROLE_ADMIN = "admin"
ROLE_USER = "user"
ALL_ROLES = [ROLE_ADMIN, ROLE_USER]

# Backblaze B2 (S3-compatible) configuration
B2_APPLICATION_KEY_ID = os.environ.get('B2_APPLICATION_KEY_ID', '')
B2_APPLICATION_KEY = os.environ.get('B2_APPLICATION_KEY', '')
B2_BUCKET_NAME = os.environ.get('B2_BUCKET_NAME', 'photo-gallery')
B2_ENDPOINT = os.environ.get('B2_ENDPOINT', '')
B2_REGION = os.environ.get('B2_REGION', 'us-west-004')

# When B2 credentials are missing, serve files from local disk instead
LOCAL_STORAGE_FALLBACK = _env_flag('LOCAL_STORAGE_FALLBACK', True)

# Storage client timeouts (seconds)
STORAGE_CONNECT_TIMEOUT = int(os.environ.get('STORAGE_CONNECT_TIMEOUT', 5))
STORAGE_READ_TIMEOUT = int(os.environ.get('STORAGE_READ_TIMEOUT', 60))
STORAGE_MAX_ATTEMPTS = int(os.environ.get('STORAGE_MAX_ATTEMPTS', 3))

# Upload directories
UPLOAD_DIR = Path(os.environ.get('UPLOAD_DIR', ROOT_DIR / 'uploads'))
STAGING_DIR = UPLOAD_DIR / 'tmp'

# Concurrency control for storage writes
MAX_CONCURRENT_UPLOADS = 50

# Upload limits
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MAX_BATCH_FILES = 20
UPLOAD_CHUNK_SIZE = 1024 * 1024

# Accepted extension -> MIME types
ALLOWED_FILE_TYPES = {
    'jpg': ['image/jpeg', 'image/jpg', 'image/pjpeg'],
    'jpeg': ['image/jpeg', 'image/jpg', 'image/pjpeg'],
    'png': ['image/png', 'image/x-png'],
    'gif': ['image/gif'],
    'bmp': ['image/bmp'],
    'webp': ['image/webp'],
    'mp4': ['video/mp4'],
    'mov': ['video/quicktime'],
    'avi': ['video/x-msvideo', 'video/avi'],
    'webm': ['video/webm'],
}

# Signed download URLs
DOWNLOAD_URL_TTL_SECONDS = 60 * 60

# Orphaned object reconciliation (0 disables the sweep)
ORPHAN_SWEEP_INTERVAL_SECONDS = int(os.environ.get('ORPHAN_SWEEP_INTERVAL_SECONDS', 6 * 60 * 60))
ORPHAN_GRACE_SECONDS = int(os.environ.get('ORPHAN_GRACE_SECONDS', 60 * 60))

# Analytics action types
ACTION_LOGIN = "login"
ACTION_DOWNLOAD = "download"
ACTION_VIEW = "view"

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
