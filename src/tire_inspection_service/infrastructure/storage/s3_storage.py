"""S3/MinIO Storage Implementation

S3-compatible image storage using aioboto3 for non-blocking async I/O.
Supports AWS S3 and self-hosted MinIO for local development.
"""

import logging
from typing import Optional
from urllib.parse import quote

import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError

from tire_inspection_service.core.errors import StorageError
from tire_inspection_service.infrastructure.storage.provider import StorageProvider

logger = logging.getLogger(__name__)


class S3Storage(StorageProvider):
    """S3/MinIO storage provider.

    Uses aioboto3 so credential signing never blocks the FastAPI event loop.
    """

    def __init__(
        self,
        bucket_name: Optional[str],
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None
    ):
        """Initialize S3 storage provider.

        Args:
            bucket_name: S3 bucket name (required)
            region: AWS region (default: us-east-1)
            endpoint_url: Custom S3 endpoint for MinIO/LocalStack (optional)
            access_key: AWS access key ID (optional, boto3 default chain otherwise)
            secret_key: AWS secret access key (optional, boto3 default chain otherwise)

        Raises:
            ValueError: If bucket_name is not provided
        """
        if not bucket_name:
            raise ValueError("AWS_BUCKET_NAME is required for S3 storage")

        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url

        self.session = aioboto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region
        )

        logger.info(
            f"S3 storage initialized - bucket: {self.bucket_name}, "
            f"region: {self.region}, "
            f"endpoint: {self.endpoint_url or 'AWS'}"
        )

    def _client(self):
        # Presigned PUTs must be SigV4 so the Content-Type header is signed
        return self.session.client(
            "s3",
            region_name=self.region,
            endpoint_url=self.endpoint_url,
            config=Config(signature_version="s3v4")
        )

    async def generate_upload_url(self, key: str, content_type: str, expiration: int = 600) -> str:
        """Generate presigned PUT URL for a direct browser/client upload.

        Args:
            key: S3 object key
            content_type: MIME type signed into the request
            expiration: URL expiration in seconds (default: 10 minutes)

        Returns:
            Presigned URL string

        Raises:
            StorageError: If URL generation fails
        """
        try:
            async with self._client() as s3:
                url = await s3.generate_presigned_url(
                    "put_object",
                    Params={
                        "Bucket": self.bucket_name,
                        "Key": key,
                        "ContentType": content_type,
                    },
                    ExpiresIn=expiration
                )

            logger.debug(f"Generated upload URL for {key} (expires in {expiration}s)")
            return url

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Failed to generate upload URL for {key} (error: {error_code}): {e}")
            raise StorageError(f"Could not generate upload URL: {error_code}") from e
        except Exception as e:
            logger.error(f"Failed to generate upload URL for {key}: {e}")
            raise StorageError(f"Could not generate upload URL: {str(e)}") from e

    def public_url(self, key: str) -> str:
        """Flat virtual-hosted URL, or path-style when a custom endpoint is set"""
        quoted = quote(key, safe="/")
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{quoted}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{quoted}"

    async def health_check(self) -> bool:
        """Check S3 storage health by verifying bucket access.

        Returns:
            True if S3 is accessible and bucket exists, False otherwise
        """
        try:
            async with self._client() as s3:
                await s3.head_bucket(Bucket=self.bucket_name)
                logger.debug(f"S3 health check passed for bucket: {self.bucket_name}")
                return True

        except Exception as e:
            logger.error(f"S3 health check failed: {e}")
            return False
