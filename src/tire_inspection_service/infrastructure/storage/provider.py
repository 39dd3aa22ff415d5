"""Storage Provider Interface

Abstract base class defining the contract for the image object store.

The service never receives image bytes: clients write directly to the
store through pre-signed URLs, and records reference images by public URL.
"""

from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """Abstract storage provider interface for tire image storage."""

    @abstractmethod
    async def generate_upload_url(self, key: str, content_type: str, expiration: int = 600) -> str:
        """Generate a time-limited URL allowing a single PUT to `key`.

        Args:
            key: Storage key the URL is bound to
            content_type: MIME type the client must send as Content-Type
            expiration: URL expiration time in seconds (default: 10 minutes)

        Returns:
            Pre-signed URL string

        Raises:
            StorageError: If URL generation fails
        """
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Build the absolute read URL of a stored object.

        Pure string templating; no existence check is made.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage backend is healthy and accessible.

        Returns:
            True if storage is healthy, False otherwise
        """
        pass
