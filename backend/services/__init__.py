# Services module exports
from .auth import (
    hash_password, verify_password, create_access_token, decode_access_token, generate_random_password
)
from .access import (
    can_access_collection, can_modify_collection, can_access_image, can_modify_image
)
from .storage import StorageService, StoredObject, create_storage_service
from .uploads import StagedFile, stage_upload, validate_file_type
from .analytics import record_event
from .gallery import GalleryService
from .collections import CollectionService
from .users import UserService
