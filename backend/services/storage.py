"""
Storage Service - Backblaze B2 Integration
Provides a unified interface for file storage operations.
Supports B2 through its S3-compatible API (production) and the local
filesystem (development fallback when no credentials are configured).
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

import aioboto3
import aiofiles
import aiofiles.os
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core import config
from core.errors import NotFound, StorageUnavailable
from utils.helpers import collection_storage_key, generate_storage_filename

logger = logging.getLogger(__name__)

MODE_B2 = "b2"
MODE_LOCAL = "local"
MODE_DISABLED = "disabled"

LOCAL_URL_PREFIX = "/uploads"
COPY_CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredObject:
    key: str
    url: str
    size: int
    mime_type: str


class StorageService:
    """
    Unified storage service that abstracts B2 and local filesystem operations.
    """

    def __init__(
        self,
        key_id: str = '',
        application_key: str = '',
        bucket: str = '',
        endpoint_url: str = '',
        region: str = '',
        local_dir: Path = None,
        local_fallback: bool = True,
        connect_timeout: int = 5,
        read_timeout: int = 60,
        max_attempts: int = 3,
        max_concurrent_uploads: int = 50,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.local_dir = Path(local_dir) if local_dir else None
        self._upload_semaphore = asyncio.Semaphore(max_concurrent_uploads)

        if key_id and application_key and endpoint_url:
            self.mode = MODE_B2
            self.session = aioboto3.Session(
                aws_access_key_id=key_id,
                aws_secret_access_key=application_key,
            )
            self.client_config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={'max_attempts': max_attempts, 'mode': 'standard'},
            )
            logger.info(f"B2 storage initialized - Bucket: {bucket}")
        elif local_fallback and self.local_dir is not None:
            self.mode = MODE_LOCAL
            self.session = None
            self.local_dir.mkdir(parents=True, exist_ok=True)
            logger.warning(
                "B2 credentials not configured - storing files on local disk at "
                f"{self.local_dir}. Download URLs will not expire; do not use in production."
            )
        else:
            self.mode = MODE_DISABLED
            self.session = None
            logger.error("B2 credentials not configured and local fallback disabled - uploads will fail")

    @property
    def is_local(self) -> bool:
        return self.mode == MODE_LOCAL

    def _client(self):
        return self.session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region or None,
            config=self.client_config,
        )

    def _require_backend(self):
        if self.mode == MODE_DISABLED:
            raise StorageUnavailable("File storage is not configured")

    def get_public_url(self, key: str) -> str:
        """Get the direct (unsigned) URL for a file"""
        if self.mode == MODE_B2:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"{LOCAL_URL_PREFIX}/{key}"

    async def store(
        self,
        source_path: Path,
        original_name: str,
        mime_type: str,
        collection_id: str,
    ) -> StoredObject:
        """
        Store a staged file under collections/{collection_id}/{generated name}.
        Raises StorageUnavailable when the backing store cannot be written.
        """
        self._require_backend()
        key = collection_storage_key(collection_id, generate_storage_filename(original_name))
        try:
            size = (await aiofiles.os.stat(source_path)).st_size
        except OSError as e:
            logger.error(f"Staged file unreadable for {key}: {e}")
            raise StorageUnavailable("Failed to store file") from e

        async with self._upload_semaphore:
            if self.mode == MODE_B2:
                await self._upload_to_b2(key, source_path, mime_type)
            else:
                await self._copy_to_local(key, source_path)

        return StoredObject(key=key, url=self.get_public_url(key), size=size, mime_type=mime_type)

    async def _upload_to_b2(self, key: str, source_path: Path, mime_type: str):
        """Upload file to Backblaze B2"""
        try:
            async with aiofiles.open(source_path, 'rb') as f:
                content = await f.read()
            async with self._client() as s3_client:
                await s3_client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=content,
                    ContentType=mime_type,
                )
            logger.info(f"Uploaded to B2: {key}")
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"B2 upload failed for {key}: {e}")
            raise StorageUnavailable("Failed to store file") from e

    async def _copy_to_local(self, key: str, source_path: Path):
        """Copy file into the local upload directory (fallback)"""
        file_path = self.local_dir / key
        try:
            await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
            async with aiofiles.open(source_path, 'rb') as src, aiofiles.open(file_path, 'wb') as dst:
                while True:
                    chunk = await src.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    await dst.write(chunk)
            logger.info(f"Stored locally: {file_path}")
        except OSError as e:
            logger.error(f"Local store failed for {key}: {e}")
            if file_path.exists():
                file_path.unlink()
            raise StorageUnavailable("Failed to store file") from e

    async def signed_download_url(
        self,
        key: str,
        ttl: int = config.DOWNLOAD_URL_TTL_SECONDS
    ) -> Tuple[str, Optional[int]]:
        """
        Return (url, expires_in). Local fallback URLs never expire and
        expires_in is None for them.
        """
        self._require_backend()
        if self.mode == MODE_LOCAL:
            return f"{LOCAL_URL_PREFIX}/{key}", None

        try:
            async with self._client() as s3_client:
                url = await s3_client.generate_presigned_url(
                    'get_object',
                    Params={'Bucket': self.bucket, 'Key': key},
                    ExpiresIn=ttl,
                )
            return url, ttl
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Signing download URL failed for {key}: {e}")
            raise StorageUnavailable("Failed to generate download URL") from e

    async def delete(self, key: str) -> bool:
        """
        Delete a file from storage. Deleting a missing key succeeds.
        Returns False (and logs) when the backing store rejects the request.
        """
        if self.mode == MODE_B2:
            return await self._delete_from_b2(key)
        if self.mode == MODE_LOCAL:
            return await self._delete_from_local(key)
        logger.warning(f"Storage disabled - cannot delete {key}")
        return False

    async def _delete_from_b2(self, key: str) -> bool:
        """Delete file from B2"""
        try:
            async with self._client() as s3_client:
                await s3_client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Deleted from B2: {key}")
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                logger.info(f"B2 object already absent: {key}")
                return True
            logger.error(f"B2 delete failed for {key}: {e}")
            return False
        except BotoCoreError as e:
            logger.error(f"B2 delete failed for {key}: {e}")
            return False

    async def _delete_from_local(self, key: str) -> bool:
        """Delete file from local filesystem"""
        try:
            file_path = self._resolve_local(key)
        except NotFound:
            return True
        try:
            if file_path.exists():
                await aiofiles.os.remove(file_path)
                logger.info(f"Deleted local file: {file_path}")
            return True
        except OSError as e:
            logger.error(f"Local delete failed for {key}: {e}")
            return False

    async def list_keys(self, prefix: str = "collections/") -> List[Tuple[str, datetime]]:
        """List (key, last_modified) pairs under a prefix"""
        self._require_backend()
        if self.mode == MODE_LOCAL:
            return self._list_local(prefix)

        keys = []
        try:
            async with self._client() as s3_client:
                paginator = s3_client.get_paginator('list_objects_v2')
                async for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                    for item in page.get('Contents', []):
                        keys.append((item['Key'], item['LastModified']))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"B2 listing failed for prefix {prefix}: {e}")
            raise StorageUnavailable("Failed to list stored files") from e
        return keys

    def _list_local(self, prefix: str) -> List[Tuple[str, datetime]]:
        root = self.local_dir / prefix
        if not root.exists():
            return []
        keys = []
        for path in root.rglob('*'):
            if path.is_file():
                modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                keys.append((path.relative_to(self.local_dir).as_posix(), modified))
        return keys

    def _resolve_local(self, key: str) -> Path:
        base = self.local_dir.resolve()
        file_path = (base / key).resolve()
        if file_path == base or base not in file_path.parents:
            raise NotFound("File not found")
        return file_path

    def open_local(self, key: str) -> Path:
        """Path of a locally stored file, for the development file route"""
        if self.mode != MODE_LOCAL:
            raise NotFound("File not found")
        file_path = self._resolve_local(key)
        if not file_path.is_file():
            raise NotFound("File not found")
        return file_path


def create_storage_service() -> StorageService:
    """Build the storage service from environment configuration"""
    return StorageService(
        key_id=config.B2_APPLICATION_KEY_ID,
        application_key=config.B2_APPLICATION_KEY,
        bucket=config.B2_BUCKET_NAME,
        endpoint_url=config.B2_ENDPOINT,
        region=config.B2_REGION,
        local_dir=config.UPLOAD_DIR,
        local_fallback=config.LOCAL_STORAGE_FALLBACK,
        connect_timeout=config.STORAGE_CONNECT_TIMEOUT,
        read_timeout=config.STORAGE_READ_TIMEOUT,
        max_attempts=config.STORAGE_MAX_ATTEMPTS,
        max_concurrent_uploads=config.MAX_CONCURRENT_UPLOADS,
    )
