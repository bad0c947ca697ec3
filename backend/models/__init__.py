# Models package
from .user import (
    Role, UserLogin, User, Token, UserCreate, UserUpdate, CreatedUser,
    BulkUserCreate, BulkUserError, BulkUserCreateResult, BulkUserDelete
)
from .gallery import (
    CollectionCreate, CollectionUpdate, CollectionAccess, Collection,
    Image, UploadFailure, BatchUploadResult, DownloadUrl
)
from .analytics import ActionType, ClientInfo, AnalyticsEvent
from .schemas import success_response
