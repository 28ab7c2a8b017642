"""
Storage package for inspection evidence photos.
"""

from .storage_provider import (
    StorageProvider,
    LocalStorageProvider,
    S3StorageProvider,
    AzureBlobStorageProvider,
    GCSStorageProvider,
    build_object_key,
    create_storage_provider
)

__all__ = [
    'StorageProvider',
    'LocalStorageProvider',
    'S3StorageProvider',
    'AzureBlobStorageProvider',
    'GCSStorageProvider',
    'build_object_key',
    'create_storage_provider',
]
