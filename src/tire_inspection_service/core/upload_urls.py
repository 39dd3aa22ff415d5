"""
Upload URL Issuer

Mints one pre-signed, write-scoped upload URL per file a client is about
to send directly to the object store.
"""

import asyncio
import logging
import re
import time
from typing import List, Optional, Sequence

from tire_inspection_service.config.settings import settings
from tire_inspection_service.core.errors import ValidationError
from tire_inspection_service.infrastructure.storage import StorageProvider, get_storage_provider
from tire_inspection_service.models.inspection import FileDescriptor, UploadCredential

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_key_part(value: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore"""
    return _UNSAFE_KEY_CHARS.sub("_", value)


def build_storage_key(plate: str, index: int, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the storage key of one upload

    Structure: tires/{plate}/{epoch_ms}-{index + 1}-{sanitized filename}

    The millisecond timestamp plus the file's position in its request keeps
    keys unique within a plate without any coordination.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"tires/{sanitize_key_part(plate)}/{timestamp_ms}-{index + 1}-{sanitize_key_part(filename)}"


class UploadUrlIssuer:
    """Issues pre-signed upload credentials for inspection images"""

    def __init__(
        self,
        storage: Optional[StorageProvider] = None,
        expiration: Optional[int] = None,
        batch_size: Optional[int] = None,
        max_files: Optional[int] = None,
        allowed_types: Optional[Sequence[str]] = None
    ):
        self.storage = storage or get_storage_provider()
        self.expiration = expiration or settings.upload_url_expiration
        self.batch_size = batch_size or settings.presign_batch_size
        self.max_files = max_files or settings.max_upload_files
        self.allowed_types = [t.lower() for t in (allowed_types or settings.allowed_image_type_list)]

    def validate(self, plate: Optional[str], files: Optional[List[FileDescriptor]]) -> None:
        """
        Validate a credential request before anything is minted

        Raises:
            ValidationError: If validation fails
        """
        if not plate or not plate.strip() or not files:
            raise ValidationError("Missing plate or files")

        if len(files) > self.max_files:
            raise ValidationError(f"Too many files. Maximum {self.max_files} files allowed.")

        invalid = [f for f in files if (f.type or "").lower() not in self.allowed_types]
        if invalid:
            raise ValidationError(
                "Invalid file types found. Only JPEG, PNG, and WebP images are allowed."
            )

    async def _issue_one(self, plate: str, file: FileDescriptor, index: int) -> UploadCredential:
        key = build_storage_key(plate, index, file.name)
        upload_url = await self.storage.generate_upload_url(
            key=key,
            content_type=file.type,
            expiration=self.expiration
        )
        return UploadCredential(
            upload_url=upload_url,
            key=key,
            original_name=file.name,
            index=index
        )

    async def issue(self, plate: Optional[str], files: Optional[List[FileDescriptor]]) -> List[UploadCredential]:
        """
        Issue one upload credential per file

        Args:
            plate: Vehicle plate the images belong to
            files: File descriptors (name, MIME type) in client order

        Returns:
            Credentials in the same order as `files`

        Raises:
            ValidationError: If the request is invalid
            StorageError: If the storage provider cannot sign a URL
        """
        self.validate(plate, files)
        plate = plate.strip()

        credentials: List[UploadCredential] = []
        # Groups only bound concurrent signing calls; gather preserves order
        for start in range(0, len(files), self.batch_size):
            batch = files[start:start + self.batch_size]
            credentials.extend(await asyncio.gather(*[
                self._issue_one(plate, file, start + offset)
                for offset, file in enumerate(batch)
            ]))

        logger.info(f"Generated {len(credentials)} pre-signed URLs for plate {plate}")
        return credentials
