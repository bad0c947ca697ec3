"""
Upload validation and local staging.

Incoming multipart files are checked against the type allow-list and
streamed to the staging directory in chunks, so the size limit is enforced
before any byte reaches object storage.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from core.config import ALLOWED_FILE_TYPES, MAX_FILE_SIZE, STAGING_DIR, UPLOAD_CHUNK_SIZE
from core.errors import InternalError, UnsupportedFileType, ValidationError
from utils.helpers import file_extension, format_file_size

logger = logging.getLogger(__name__)


@dataclass
class StagedFile:
    path: Path
    original_name: str
    mime_type: str
    size: int

    async def cleanup(self):
        """Remove the staged copy; safe to call more than once"""
        try:
            await aiofiles.os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove staged file {self.path}: {e}")


def validate_file_type(filename: str, mime_type: str):
    """Both the extension and the declared MIME type must be on the allow-list"""
    ext = file_extension(filename)
    allowed_types = ALLOWED_FILE_TYPES.get(ext)
    if not allowed_types or (mime_type or '').lower() not in allowed_types:
        raise UnsupportedFileType(
            f"Unsupported file type: {filename} ({mime_type}). Only image and video files are allowed"
        )


async def _discard(path: Path):
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial upload {path}: {e}")


def _too_large(size: int, max_size: int) -> ValidationError:
    return ValidationError(
        f"File too large. Maximum size is {format_file_size(max_size)}, got {format_file_size(size)}"
    )


async def stage_upload(
    upload,
    max_size: int = MAX_FILE_SIZE,
    staging_dir: Path = STAGING_DIR,
    chunk_size: int = UPLOAD_CHUNK_SIZE,
) -> StagedFile:
    """
    Validate an UploadFile and write it to the staging directory.
    Raises ValidationError for a missing, empty, oversized or disallowed file
    and InternalError when the upload cannot be read or written to disk.
    """
    if upload is None or not upload.filename:
        raise ValidationError("Please upload a file")

    mime_type = (upload.content_type or '').lower()
    validate_file_type(upload.filename, mime_type)

    declared_size = getattr(upload, 'size', None)
    if declared_size is not None and declared_size > max_size:
        raise _too_large(declared_size, max_size)

    staged_path = Path(staging_dir) / f"{uuid.uuid4().hex}.upload"
    size = 0
    try:
        await aiofiles.os.makedirs(staging_dir, exist_ok=True)
        async with aiofiles.open(staged_path, 'wb') as f:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise _too_large(size, max_size)
                await f.write(chunk)
        if size == 0:
            raise ValidationError("File is empty")
    except OSError as e:
        await _discard(staged_path)
        logger.error(f"Could not stage upload {upload.filename}: {e}")
        raise InternalError("Failed to read uploaded file") from e
    except BaseException:
        await _discard(staged_path)
        raise

    return StagedFile(path=staged_path, original_name=upload.filename, mime_type=mime_type, size=size)
