"""Storage Provider Factory

Lazily builds the process-wide S3 storage provider from settings.
"""

import logging
from typing import Optional

from tire_inspection_service.config.settings import settings
from tire_inspection_service.infrastructure.storage.provider import StorageProvider
from tire_inspection_service.infrastructure.storage.s3_storage import S3Storage

logger = logging.getLogger(__name__)

# Singleton instance to avoid recreating sessions
_storage_instance: Optional[StorageProvider] = None


def get_storage_provider() -> StorageProvider:
    """Get or create the global storage provider instance.

    Environment Variables:
        AWS_BUCKET_NAME: S3 bucket name (required)
        AWS_REGION: AWS region (default: "us-east-1")
        S3_ENDPOINT_URL: Custom endpoint for MinIO/LocalStack (optional)
        AWS_ACCESS_KEY_ID: AWS access key (optional, uses boto3 defaults)
        AWS_SECRET_ACCESS_KEY: AWS secret key (optional, uses boto3 defaults)

    Example:
        ```python
        # AWS S3
        AWS_BUCKET_NAME=tire-images-prod
        AWS_REGION=us-west-2

        # Local MinIO
        AWS_BUCKET_NAME=tires
        S3_ENDPOINT_URL=http://minio:9000
        AWS_ACCESS_KEY_ID=minioadmin
        AWS_SECRET_ACCESS_KEY=minioadmin
        ```

    Raises:
        ValueError: If AWS_BUCKET_NAME is not configured
    """
    global _storage_instance

    if _storage_instance is not None:
        return _storage_instance

    _storage_instance = S3Storage(
        bucket_name=settings.aws_bucket_name,
        region=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.aws_access_key_id,
        secret_key=settings.aws_secret_access_key
    )

    logger.info(
        f"S3 storage provider initialized: "
        f"bucket={settings.aws_bucket_name}, "
        f"endpoint={settings.s3_endpoint_url or 'AWS'}"
    )
    return _storage_instance


def reset_storage_provider():
    """Reset the global storage provider instance.

    Used for testing or reconfiguration. Should not be called in production code.
    """
    global _storage_instance
    _storage_instance = None
    logger.warning("Storage provider instance reset")
