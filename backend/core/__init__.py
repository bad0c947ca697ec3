# Core module exports
from .config import *
from .errors import (
    GalleryError, ValidationError, UnsupportedFileType, AuthenticationError,
    Forbidden, NotFound, Conflict, StorageUnavailable, InternalError
)
