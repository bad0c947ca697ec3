"""
Utils package for the gallery backend
"""
from .helpers import (
    format_file_size,
    file_extension,
    generate_storage_filename,
    collection_storage_key,
)

__all__ = [
    'format_file_size',
    'file_extension',
    'generate_storage_filename',
    'collection_storage_key',
]
