"""Storage infrastructure module.

Provides pre-signed upload URLs and public image URLs via the StorageProvider interface.
"""

from tire_inspection_service.infrastructure.storage.factory import get_storage_provider, reset_storage_provider
from tire_inspection_service.infrastructure.storage.provider import StorageProvider
from tire_inspection_service.infrastructure.storage.s3_storage import S3Storage

__all__ = [
    "get_storage_provider",
    "reset_storage_provider",
    "StorageProvider",
    "S3Storage",
]
