"""
Batch Uploader

Client-side direct-to-storage upload of inspection images through
pre-signed URLs, in bounded concurrent groups.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import httpx

from tire_inspection_service.core.errors import UploadError
from tire_inspection_service.models.inspection import UploadCredential

logger = logging.getLogger(__name__)

DEFAULT_GROUP_SIZE = 6
DEFAULT_GROUP_PAUSE = 0.1


@dataclass
class LocalFile:
    """Raw file payload held by the client"""

    name: str
    content_type: str
    content: bytes


@dataclass
class UploadResult:
    success: bool
    index: int
    error: Optional[str] = None


@dataclass
class UploadProgress:
    """Cumulative count of uploaded files within one attempt"""

    current: int = 0
    total: int = 0


ProgressCallback = Callable[[UploadProgress], None]


def raise_for_failures(results: Sequence[UploadResult]) -> None:
    """
    Raise if any upload failed

    Raises:
        UploadError: With the number of failed files
    """
    failed = [r for r in results if not r.success]
    if failed:
        raise UploadError(failed_count=len(failed), total=len(results))


class BatchUploader:
    """Uploads files to their pre-signed URLs, a group at a time"""

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        group_size: int = DEFAULT_GROUP_SIZE,
        group_pause: float = DEFAULT_GROUP_PAUSE,
        on_progress: Optional[ProgressCallback] = None
    ):
        if group_size < 1:
            raise ValueError("group_size must be at least 1")
        self.http = http
        self.group_size = group_size
        self.group_pause = group_pause
        self.on_progress = on_progress
        self.progress = UploadProgress()

    def reset(self, total: int = 0) -> None:
        """Start a fresh attempt (e.g. when the user retries the whole flow)"""
        self.progress = UploadProgress(current=0, total=total)
        self._report()

    def _report(self) -> None:
        if self.on_progress:
            self.on_progress(UploadProgress(self.progress.current, self.progress.total))

    async def _upload_one(
        self,
        http: httpx.AsyncClient,
        file: LocalFile,
        credential: UploadCredential,
        index: int
    ) -> UploadResult:
        try:
            response = await http.put(
                credential.upload_url,
                content=file.content,
                headers={"Content-Type": file.content_type}
            )
        except Exception as e:
            # Covers transport errors and malformed URLs (httpx.InvalidURL)
            message = f"Failed to upload file {index + 1}: {e}"
            logger.error(message)
            return UploadResult(success=False, index=index, error=message)

        if not response.is_success:
            message = f"Failed to upload file {index + 1}: HTTP {response.status_code}"
            logger.error(message)
            return UploadResult(success=False, index=index, error=message)

        self.progress.current += 1
        self._report()
        return UploadResult(success=True, index=index)

    async def upload_all(
        self,
        files: Sequence[LocalFile],
        credentials: Sequence[UploadCredential]
    ) -> List[UploadResult]:
        """
        Upload every file to its matching credential

        Args:
            files: File payloads
            credentials: Upload credentials, same length and order as `files`

        Returns:
            One result per file; a failure never stops the other uploads

        Raises:
            ValueError: If files and credentials do not line up
        """
        if len(files) != len(credentials):
            raise ValueError(
                f"Got {len(files)} files but {len(credentials)} upload credentials"
            )

        self.reset(total=len(files))
        owns_client = self.http is None
        http = self.http or httpx.AsyncClient(timeout=httpx.Timeout(60.0))

        results: List[UploadResult] = []
        try:
            for start in range(0, len(files), self.group_size):
                group = range(start, min(start + self.group_size, len(files)))
                results.extend(await asyncio.gather(*[
                    self._upload_one(http, files[i], credentials[i], i) for i in group
                ]))

                # Brief pause between groups to spare the storage service
                if start + self.group_size < len(files):
                    await asyncio.sleep(self.group_pause)
        finally:
            if owns_client:
                await http.aclose()

        failed = sum(1 for r in results if not r.success)
        logger.info(f"Uploaded {len(results) - failed}/{len(results)} files ({failed} failed)")
        return results
