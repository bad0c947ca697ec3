"""
Utility helper functions for the gallery backend
"""
import secrets
import time
from pathlib import PurePath


# ============ Size Utilities ============

def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


# ============ File Name Utilities ============

def file_extension(filename: str) -> str:
    """Lower-case extension without the dot, or '' when there is none"""
    suffix = PurePath(filename or '').suffix
    return suffix[1:].lower() if suffix else ''


def generate_storage_filename(original_name: str) -> str:
    """Unique object name: epoch milliseconds plus 64 random bits, keeping the extension"""
    ext = file_extension(original_name)
    stem = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}"
    return f"{stem}.{ext}" if ext else stem


def collection_storage_key(collection_id: str, filename: str) -> str:
    """Object key layout inside the bucket"""
    return f"collections/{collection_id}/{filename}"
